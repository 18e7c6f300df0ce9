"""Condition predicates for affixes.

A condition is evaluated against an EvaluationContext and yields a
ConditionResult: whether the owning affix is blocked, and a multiplier
that scales its value. Pass/fail kinds keep the multiplier at 1.0;
"per-X" scaling kinds never block and carry the counted quantity.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

from .constants import HEAVY_WEAPON_TAG, MIN_DIE_VALUE
from .context import EquipmentSlot, EvaluationContext

logger = logging.getLogger(__name__)


class ConditionType(Enum):
    """Kinds of condition predicates."""

    NONE = "none"

    # Threshold comparisons
    SELF_VALUE_ABOVE = "self_value_above"
    SELF_VALUE_BELOW = "self_value_below"
    HEALTH_ABOVE_PERCENT = "health_above_percent"
    HEALTH_BELOW_PERCENT = "health_below_percent"
    STAT_ABOVE = "stat_above"
    MIN_DICE_USED = "min_dice_used"
    MIN_EQUIPMENT_SLOTS_FILLED = "min_equipment_slots_filled"

    # Structural checks
    HAS_HEAVY_WEAPON = "has_heavy_weapon"
    HAS_DUAL_WIELD = "has_dual_wield"
    ALL_SLOTS_FILLED = "all_slots_filled"
    CLASS_IS = "class_is"
    NEIGHBORS_USED = "neighbors_used"
    SELF_VALUE_IS_MAX = "self_value_is_max"
    SELF_VALUE_IS_MIN = "self_value_is_min"
    SELF_VALUE_BELOW_HALF_MAX = "self_value_below_half_max"
    HAS_TAG = "has_tag"
    IN_COMBAT = "in_combat"

    # Scaling (never block)
    PER_USED_DIE = "per_used_die"
    PER_QUALIFYING_NEIGHBOR = "per_qualifying_neighbor"
    PER_EQUIPPED_ITEM = "per_equipped_item"
    PER_STAT_POINT = "per_stat_point"
    PER_EQUIPMENT_RARITY = "per_equipment_rarity"


SCALING_CONDITIONS: frozenset[ConditionType] = frozenset({
    ConditionType.PER_USED_DIE,
    ConditionType.PER_QUALIFYING_NEIGHBOR,
    ConditionType.PER_EQUIPPED_ITEM,
    ConditionType.PER_STAT_POINT,
    ConditionType.PER_EQUIPMENT_RARITY,
})

# Keys each kind reads from Condition.data
REQUIRED_DATA_KEYS: dict[ConditionType, tuple[str, ...]] = {
    ConditionType.STAT_ABOVE: ("stat",),
    ConditionType.PER_STAT_POINT: ("stat",),
    ConditionType.CLASS_IS: ("class_name",),
    ConditionType.HAS_TAG: ("tag",),
}


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of a condition evaluation."""
    blocked: bool = False
    multiplier: float = 1.0


PASSED = ConditionResult()
BLOCKED = ConditionResult(blocked=True)


def resolve_self_value(self_ref: Any, context: Optional[EvaluationContext] = None) -> Optional[float]:
    """
    Resolve the scalar an entity contributes as "self value".

    Dice contribute their modified value, numbers themselves, and a stat
    name the player's stat. Returns None when nothing can be resolved.
    """
    if self_ref is None:
        return None
    if hasattr(self_ref, "modified_value"):
        return float(self_ref.modified_value)
    if isinstance(self_ref, bool):
        return None
    if isinstance(self_ref, (int, float)):
        return float(self_ref)
    if isinstance(self_ref, str) and context is not None:
        return context.player.get_stat(self_ref)
    return None


def _find_by_slot(related: Sequence[Any], slot_index: int) -> Optional[Any]:
    for entity in related:
        if getattr(entity, "slot_index", None) == slot_index:
            return entity
    return None


@dataclass
class Condition:
    """
    A gating/scaling predicate attached to an affix or sub-effect.

    Attributes:
        kind: Predicate kind.
        threshold: Comparison threshold for threshold kinds.
        invert: Flip the blocked outcome (never the multiplier).
        data: Extra parameters ("stat", "class_name", "tag").
    """

    kind: ConditionType = ConditionType.NONE
    threshold: float = 0.0
    invert: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_scaling(self) -> bool:
        return self.kind in SCALING_CONDITIONS

    def evaluate(
        self,
        context: EvaluationContext,
        self_ref: Any = None,
        related: Optional[Sequence[Any]] = None,
        self_index: Optional[int] = None,
    ) -> ConditionResult:
        """
        Evaluate the condition.

        Args:
            context: Evaluation context.
            self_ref: The entity owning the affix (a die, a number, a stat name).
            related: Entities to look up neighbors in (defaults to context.hand).
            self_index: Slot index of self (defaults to self_ref.slot_index).

        Returns:
            ConditionResult with blocked flag and multiplier.
        """
        if related is None:
            related = context.hand
        if self_index is None:
            self_index = getattr(self_ref, "slot_index", -1)

        result = self._evaluate_kind(context, self_ref, related, self_index)
        if self.invert:
            return ConditionResult(blocked=not result.blocked, multiplier=result.multiplier)
        return result

    def _evaluate_kind(
        self,
        context: EvaluationContext,
        self_ref: Any,
        related: Sequence[Any],
        self_index: int,
    ) -> ConditionResult:
        kind = self.kind

        if kind == ConditionType.NONE:
            return PASSED

        if kind in (
            ConditionType.SELF_VALUE_ABOVE,
            ConditionType.SELF_VALUE_BELOW,
            ConditionType.SELF_VALUE_IS_MAX,
            ConditionType.SELF_VALUE_IS_MIN,
            ConditionType.SELF_VALUE_BELOW_HALF_MAX,
        ):
            return self._evaluate_self_value(context, self_ref)

        if kind in (ConditionType.HEALTH_ABOVE_PERCENT, ConditionType.HEALTH_BELOW_PERCENT):
            if context.player.max_health <= 0:
                logger.debug("Health condition without max health; passing")
                return PASSED
            percent = context.player.health_percent
            if kind == ConditionType.HEALTH_ABOVE_PERCENT:
                return _gate(percent >= self.threshold)
            return _gate(percent <= self.threshold)

        if kind == ConditionType.STAT_ABOVE:
            value = self._stat_value(context)
            if value is None:
                return PASSED
            return _gate(value >= self.threshold)

        if kind == ConditionType.MIN_DICE_USED:
            return _gate(context.used_count >= self.threshold)

        if kind == ConditionType.MIN_EQUIPMENT_SLOTS_FILLED:
            return _gate(context.filled_slot_count() >= self.threshold)

        if kind == ConditionType.HAS_HEAVY_WEAPON:
            weapon = context.get_equipped(EquipmentSlot.MAIN_HAND)
            return _gate(
                weapon is not None
                and (weapon.is_two_handed or HEAVY_WEAPON_TAG in weapon.tags)
            )

        if kind == ConditionType.HAS_DUAL_WIELD:
            main_hand = context.get_equipped(EquipmentSlot.MAIN_HAND)
            off_hand = context.get_equipped(EquipmentSlot.OFF_HAND)
            # A two-handed weapon fills both slots with the same object
            return _gate(
                main_hand is not None
                and off_hand is not None
                and main_hand is not off_hand
            )

        if kind == ConditionType.ALL_SLOTS_FILLED:
            return _gate(context.all_slots_filled())

        if kind == ConditionType.CLASS_IS:
            class_name = self.data.get("class_name")
            if not class_name:
                logger.debug("CLASS_IS without class_name; passing")
                return PASSED
            return _gate(context.player.class_name.lower() == str(class_name).lower())

        if kind == ConditionType.NEIGHBORS_USED:
            left = _find_by_slot(related, self_index - 1)
            right = _find_by_slot(related, self_index + 1)
            if left is None or right is None:
                return BLOCKED
            return _gate(
                _is_used(left, context) and _is_used(right, context)
            )

        if kind == ConditionType.HAS_TAG:
            tag = self.data.get("tag")
            if not tag:
                logger.debug("HAS_TAG without tag; passing")
                return PASSED
            return _gate(tag in getattr(self_ref, "tags", ()))

        if kind == ConditionType.IN_COMBAT:
            return _gate(context.in_combat)

        if kind in SCALING_CONDITIONS:
            return ConditionResult(blocked=False, multiplier=self._scale(context, related, self_index))

        logger.debug("Unhandled condition kind %s; passing", kind)
        return PASSED

    def _evaluate_self_value(self, context: EvaluationContext, self_ref: Any) -> ConditionResult:
        value = resolve_self_value(self_ref, context)
        if value is None:
            logger.debug("%s without a self value; passing", self.kind.name)
            return PASSED

        kind = self.kind
        if kind == ConditionType.SELF_VALUE_ABOVE:
            return _gate(value >= self.threshold)
        if kind == ConditionType.SELF_VALUE_BELOW:
            return _gate(value <= self.threshold)
        if kind == ConditionType.SELF_VALUE_IS_MIN:
            return _gate(value <= MIN_DIE_VALUE)

        max_value = getattr(self_ref, "max_value", None)
        if max_value is None:
            logger.debug("%s on an entity without max value; passing", kind.name)
            return PASSED
        if kind == ConditionType.SELF_VALUE_IS_MAX:
            return _gate(value >= max_value)
        return _gate(value < max_value / 2.0)

    def _stat_value(self, context: EvaluationContext) -> Optional[float]:
        stat_name = self.data.get("stat")
        if not stat_name:
            logger.debug("%s without stat key", self.kind.name)
            return None
        value = context.player.get_stat(stat_name)
        if value is None:
            logger.debug("Unknown stat %r in %s", stat_name, self.kind.name)
        return value

    def _scale(self, context: EvaluationContext, related: Sequence[Any], self_index: int) -> float:
        kind = self.kind
        if kind == ConditionType.PER_USED_DIE:
            return float(context.used_count)
        if kind == ConditionType.PER_QUALIFYING_NEIGHBOR:
            count = 0
            for offset in (-1, 1):
                neighbor = _find_by_slot(related, self_index + offset)
                value = resolve_self_value(neighbor, context)
                if value is not None and value >= self.threshold:
                    count += 1
            return float(count)
        if kind == ConditionType.PER_EQUIPPED_ITEM:
            return float(context.filled_slot_count())
        if kind == ConditionType.PER_STAT_POINT:
            value = self._stat_value(context)
            return 0.0 if value is None else value
        if kind == ConditionType.PER_EQUIPMENT_RARITY:
            return float(context.equipment_rarity_sum())
        return 1.0

    def validate(self) -> list[str]:
        """Return authoring warnings for this condition (empty when valid)."""
        warnings = []
        for key in REQUIRED_DATA_KEYS.get(self.kind, ()):
            if not self.data.get(key):
                warnings.append(f"{self.kind.name} requires data key {key!r}")
        if self.kind in (ConditionType.HEALTH_ABOVE_PERCENT, ConditionType.HEALTH_BELOW_PERCENT):
            if not 0.0 <= self.threshold <= 1.0:
                warnings.append(f"{self.kind.name} threshold {self.threshold} is outside 0..1")
        if self.invert and self.is_scaling:
            warnings.append(f"invert on scaling condition {self.kind.name} blocks every evaluation")
        return warnings


def _gate(passed: bool) -> ConditionResult:
    return PASSED if passed else BLOCKED


def _is_used(die: Any, context: EvaluationContext) -> bool:
    if getattr(die, "is_consumed", False):
        return True
    return context.is_used(getattr(die, "slot_index", -1))


def evaluate_condition(
    condition: Optional[Condition],
    context: EvaluationContext,
    self_ref: Any = None,
    related: Optional[Sequence[Any]] = None,
    self_index: Optional[int] = None,
) -> ConditionResult:
    """Evaluate an optional condition; a missing condition always passes."""
    if condition is None:
        return PASSED
    return condition.evaluate(context, self_ref, related, self_index)
