"""Combat Modifiers.

Transient numeric adjustments created by CREATE_COMBAT_MODIFIER effects.
They live in a combat-scoped list owned by the orchestrator, tick down
once per turn boundary, and feed die value resolution as extra pool
members: flat terms add before percent terms multiply.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..core.affix import Affix, AffixCategory
from ..core.affix_pool import AffixEvaluator, AffixPool
from ..core.constants import DIE_VALUE_STAT
from ..core.context import EvaluationContext
from ..core.effects import (
    ModifierDuration,
    ModifierTargetFilter,
    ModifierType,
    SpecialEffect,
    SpecialEffectType,
)
from .dice import Die

logger = logging.getLogger(__name__)


@dataclass
class CombatModifier:
    """
    A duration-bound adjustment to die values.

    Attributes:
        mod_type: FLAT adds value; PERCENT multiplies by (1 + value).
        value: Flat amount, or fraction for PERCENT (0.25 = +25%).
        duration: COMBAT (until combat ends) or TURNS.
        turns_remaining: Turns left under TURNS duration.
        target_filter: Which slots it applies to.
        source_slot_index: Slot of the die that created it.
        source_name: Name of the affix that created it.
        target_slot_index: Slot for SINGLE (defaults to the source slot).
    """

    mod_type: ModifierType = ModifierType.FLAT
    value: float = 0.0
    duration: ModifierDuration = ModifierDuration.COMBAT
    turns_remaining: int = 0
    target_filter: ModifierTargetFilter = ModifierTargetFilter.ALL
    source_slot_index: int = -1
    source_name: str = ""
    target_slot_index: Optional[int] = None

    @property
    def is_expired(self) -> bool:
        return self.duration == ModifierDuration.TURNS and self.turns_remaining <= 0

    def applies_to(self, slot_index: int) -> bool:
        if self.target_filter == ModifierTargetFilter.ALL:
            return True
        if self.target_filter == ModifierTargetFilter.ALL_EXCEPT_SOURCE:
            return slot_index != self.source_slot_index
        target = self.source_slot_index if self.target_slot_index is None else self.target_slot_index
        return slot_index == target

    def tick(self) -> bool:
        """Advance one turn. Returns True if the modifier expired."""
        if self.duration == ModifierDuration.TURNS and self.turns_remaining > 0:
            self.turns_remaining -= 1
        return self.is_expired

    def to_affix(self) -> Affix:
        """Express the modifier as a die_value pool member."""
        if self.mod_type == ModifierType.PERCENT:
            return Affix(
                name=self.source_name or "combat_modifier",
                category=AffixCategory.STAT_MULTIPLIER,
                stat_name=DIE_VALUE_STAT,
                effect_value=1.0 + self.value,
            )
        return Affix(
            name=self.source_name or "combat_modifier",
            category=AffixCategory.STAT_FLAT,
            stat_name=DIE_VALUE_STAT,
            effect_value=self.value,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mod_type": self.mod_type.value,
            "value": self.value,
            "duration": self.duration.value,
            "turns_remaining": self.turns_remaining,
            "target_filter": self.target_filter.value,
            "source_slot_index": self.source_slot_index,
            "source_name": self.source_name,
            "target_slot_index": self.target_slot_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatModifier":
        return cls(
            mod_type=ModifierType(data.get("mod_type", "flat")),
            value=float(data.get("value", 0.0)),
            duration=ModifierDuration(data.get("duration", "combat")),
            turns_remaining=int(data.get("turns_remaining", 0)),
            target_filter=ModifierTargetFilter(data.get("target_filter", "all")),
            source_slot_index=int(data.get("source_slot_index", -1)),
            source_name=data.get("source_name", ""),
            target_slot_index=data.get("target_slot_index"),
        )


class CombatModifierSystem:
    """
    Manages the active combat modifiers of one combat.

    Usage:
        modifiers = CombatModifierSystem()
        modifiers.add_from_effects(result.special_effects)
        value = modifiers.resolve_die_value(die)
        modifiers.tick_turn()
    """

    def __init__(self):
        """Initialize with no active modifiers."""
        self._modifiers: list[CombatModifier] = []
        self.evaluator = AffixEvaluator()

    def __len__(self) -> int:
        return len(self._modifiers)

    @property
    def modifiers(self) -> list[CombatModifier]:
        return list(self._modifiers)

    def add_modifier(self, modifier: CombatModifier) -> CombatModifier:
        self._modifiers.append(modifier)
        logger.debug(
            "Combat modifier added: %s %s %+g from slot %d",
            modifier.source_name, modifier.mod_type.value, modifier.value, modifier.source_slot_index,
        )
        return modifier

    def add_from_effects(self, effects: Iterable[SpecialEffect]) -> list[CombatModifier]:
        """Add every modifier carried by CREATE_COMBAT_MODIFIER special effects."""
        added = []
        for effect in effects:
            if effect.type != SpecialEffectType.CREATE_COMBAT_MODIFIER:
                continue
            modifier = effect.data.get("modifier")
            if isinstance(modifier, CombatModifier):
                added.append(self.add_modifier(modifier))
        return added

    def get_modifiers_for_slot(self, slot_index: int) -> list[CombatModifier]:
        return [
            m for m in self._modifiers
            if not m.is_expired and m.applies_to(slot_index)
        ]

    def tick_turn(self) -> list[CombatModifier]:
        """
        Advance all modifiers by one turn boundary.

        Returns:
            The modifiers that expired and were removed.
        """
        expired = [m for m in self._modifiers if m.tick()]
        if expired:
            self._modifiers = [m for m in self._modifiers if not m.is_expired]
            logger.debug("%d combat modifiers expired", len(expired))
        return expired

    def end_combat(self) -> int:
        """Drop every modifier. Returns how many were active."""
        count = len(self._modifiers)
        self._modifiers.clear()
        return count

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def as_affixes(self, slot_index: int) -> list[Affix]:
        return [m.to_affix() for m in self.get_modifiers_for_slot(slot_index)]

    def build_pool(self, slot_index: int) -> AffixPool:
        pool = AffixPool()
        for affix in self.as_affixes(slot_index):
            pool.add_affix(affix)
        return pool

    def resolve_die_value(self, die: Die, context: Optional[EvaluationContext] = None) -> int:
        """Die's working value with active modifiers applied (truncated)."""
        value = self.evaluator.resolve_stat(
            self.build_pool(die.slot_index),
            DIE_VALUE_STAT,
            float(die.modified_value),
            context or EvaluationContext(),
        )
        return int(value)

    def get_hand_values(
        self,
        hand: Iterable[Die],
        context: Optional[EvaluationContext] = None,
    ) -> dict[int, int]:
        """Modified values of the unconsumed dice in a hand, by slot."""
        return {
            die.slot_index: self.resolve_die_value(die, context)
            for die in hand
            if not die.is_consumed
        }
