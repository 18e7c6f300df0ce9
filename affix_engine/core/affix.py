"""Affix and SubEffect descriptors.

An Affix is a data-described modifier owned by an item, a die or a run.
It names when it fires (trigger), what it does (effect type and payload),
how much (value source and effect_value), to whom (target selector), and
when it is allowed to (condition). Sub-effects layer extra effects on the
same affix, optionally with their own target and condition.
"""

import copy
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .conditions import Condition
from .effects import (
    EffectData,
    EffectType,
    GrantActionData,
    NoEffectData,
    check_effect_data,
)
from .value_sources import ValueSource


class AffixTrigger(Enum):
    """When an affix fires."""
    PASSIVE = "passive"                  # Always on (stat/item affixes)
    ON_COMBAT_START = "on_combat_start"  # When combat begins
    ON_TURN_START = "on_turn_start"      # At the start of each turn
    ON_ROLL = "on_roll"                  # When the hand is rolled
    ON_USE = "on_use"                    # When the owning die is consumed


class TargetSelector(Enum):
    """Which hand slots receive an effect, relative to the source die."""
    SELF = "self"
    LEFT = "left"
    RIGHT = "right"
    NEIGHBORS = "neighbors"
    ALL = "all"
    ALL_EXCEPT_SOURCE = "all_except_source"


class AffixCategory(Enum):
    """Pool grouping used by aggregation."""
    STAT_FLAT = "stat_flat"                        # Additive stat terms
    STAT_MULTIPLIER = "stat_multiplier"            # Multiplicative stat terms
    DAMAGE_FLAT = "damage_flat"
    DAMAGE_MULTIPLIER = "damage_multiplier"
    ELEMENTAL_MULTIPLIER = "elemental_multiplier"
    DEFENSE_FLAT = "defense_flat"
    HEALING = "healing"
    GRANTED_ACTION = "granted_action"
    DICE = "dice"
    MISC = "misc"


@dataclass
class SubEffect:
    """
    A compound unit nested in an Affix.

    Without override_condition the sub-effect shares the parent's gating
    (and multiplier); with one it is gated on its own. Without
    override_target it reuses the parent's targets.
    """

    effect_type: EffectType = EffectType.STAT_BONUS
    effect_value: float = 0.0
    effect_data: EffectData = field(default_factory=NoEffectData)
    value_source: ValueSource = ValueSource.STATIC
    source_stat: str = ""
    override_target: Optional[TargetSelector] = None
    override_condition: Optional[Condition] = None

    def validate(self) -> list[str]:
        warnings = []
        mismatch = check_effect_data(self.effect_type, self.effect_data)
        if mismatch:
            warnings.append(mismatch)
        if self.value_source == ValueSource.PLAYER_STAT and not self.source_stat:
            warnings.append("PLAYER_STAT value source requires source_stat")
        if self.override_condition is not None:
            warnings.extend(self.override_condition.validate())
        return warnings


@dataclass
class Affix:
    """
    A modifier descriptor.

    Attributes:
        name: Display name.
        trigger: When the affix fires.
        category: Pool category for aggregation.
        effect_type: What the primary effect does.
        value_source: How the magnitude is computed.
        target_selector: Who receives the primary effect.
        effect_value: Base magnitude / fraction for the value source.
        effect_data: Typed payload for the effect type.
        condition: Optional gating/scaling condition.
        sub_effects: Extra effects, fired in declaration order.
        tags: Free-form tags for tag queries.
        stat_name: Stat this affix modifies (STAT_FLAT / STAT_MULTIPLIER).
        source_stat: Stat read by the PLAYER_STAT value source.
        value_range: (low, high) for rerolling effect_value.
        id: Template identifier.
        description: Authored description.
    """

    name: str
    trigger: AffixTrigger = AffixTrigger.PASSIVE
    category: AffixCategory = AffixCategory.MISC
    effect_type: EffectType = EffectType.STAT_BONUS
    value_source: ValueSource = ValueSource.STATIC
    target_selector: TargetSelector = TargetSelector.SELF
    effect_value: float = 0.0
    effect_data: EffectData = field(default_factory=NoEffectData)
    condition: Optional[Condition] = None
    sub_effects: list[SubEffect] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    stat_name: str = ""
    source_stat: str = ""
    value_range: Optional[tuple[float, float]] = None
    id: str = ""
    description: str = ""

    def __repr__(self) -> str:
        return f"Affix({self.name!r}, {self.effect_type.name}, {self.effect_value})"

    @property
    def is_compound(self) -> bool:
        return bool(self.sub_effects)

    @property
    def granted_action_id(self) -> Optional[str]:
        if isinstance(self.effect_data, GrantActionData):
            return self.effect_data.action_id
        return None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def duplicate(self) -> "Affix":
        """Deep copy, so runtime changes never touch a shared template."""
        return copy.deepcopy(self)

    def roll_value(self, rng: Optional[random.Random] = None) -> float:
        """
        Reroll effect_value within value_range.

        Returns:
            The new effect_value (unchanged if the affix has no range).
        """
        if self.value_range is None:
            return self.effect_value
        rng = rng or random.Random()
        low, high = self.value_range
        if float(low).is_integer() and float(high).is_integer():
            self.effect_value = float(rng.randint(int(low), int(high)))
        else:
            self.effect_value = round(rng.uniform(low, high), 2)
        return self.effect_value

    def validate(self) -> list[str]:
        """Return authoring warnings for this affix (empty when valid)."""
        warnings = []
        mismatch = check_effect_data(self.effect_type, self.effect_data)
        if mismatch:
            warnings.append(mismatch)
        if self.category in (AffixCategory.STAT_FLAT, AffixCategory.STAT_MULTIPLIER) and not self.stat_name:
            warnings.append(f"{self.category.name} affix requires stat_name")
        if self.category == AffixCategory.GRANTED_ACTION and self.effect_type != EffectType.GRANT_ACTION:
            warnings.append("GRANTED_ACTION affix should use the GRANT_ACTION effect")
        if self.value_source == ValueSource.PLAYER_STAT and not self.source_stat:
            warnings.append("PLAYER_STAT value source requires source_stat")
        if self.value_range is not None and self.value_range[0] > self.value_range[1]:
            warnings.append(f"value_range {self.value_range} is reversed")
        if self.condition is not None:
            warnings.extend(self.condition.validate())
        for index, sub_effect in enumerate(self.sub_effects):
            warnings.extend(f"sub_effect[{index}]: {w}" for w in sub_effect.validate())
        return [f"{self.name}: {w}" for w in warnings]
