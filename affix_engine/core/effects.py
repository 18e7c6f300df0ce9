"""Effect kinds and their typed payloads.

Each EffectType carries one payload class (EFFECT_DATA_TYPES). Effects
that change numbers or dice apply in place; the rest emit a SpecialEffect
for the combat orchestrator to carry out after the engine call returns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class EffectType(Enum):
    """What an affix (or sub-effect) does when it fires."""

    # Numeric output for pool aggregation (stat/item affixes)
    STAT_BONUS = "stat_bonus"
    GRANT_ACTION = "grant_action"

    # Dice mutations (applied in place)
    FLAT_BONUS = "flat_bonus"
    SET_MINIMUM = "set_minimum"
    ADD_TAG = "add_tag"
    REMOVE_TAG = "remove_tag"
    SET_ELEMENT = "set_element"

    # Emitted as special effects
    RANDOMIZE_ELEMENT = "randomize_element"
    LEECH_HEAL = "leech_heal"
    DESTROY_SELF = "destroy_self"
    CREATE_COMBAT_MODIFIER = "create_combat_modifier"


class Element(Enum):
    """Damage element carried by a die."""
    NONE = "none"
    FIRE = "fire"
    ICE = "ice"
    SHOCK = "shock"
    POISON = "poison"
    SHADOW = "shadow"


class ModifierType(Enum):
    """How a combat modifier adjusts a value."""
    FLAT = "flat"
    PERCENT = "percent"


class ModifierDuration(Enum):
    """How long a combat modifier lives."""
    COMBAT = "combat"   # Until combat ends
    TURNS = "turns"     # For a number of turns


class ModifierTargetFilter(Enum):
    """Which dice a combat modifier applies to."""
    ALL = "all"
    ALL_EXCEPT_SOURCE = "all_except_source"
    SINGLE = "single"


# =============================================================================
# EFFECT PAYLOADS
# =============================================================================


@dataclass(frozen=True)
class NoEffectData:
    """Effect without parameters."""


@dataclass(frozen=True)
class TagData:
    tag: str


@dataclass(frozen=True)
class ElementData:
    element: Element


@dataclass(frozen=True)
class RandomizeElementData:
    """Element pool to pick from (empty = every element but NONE)."""
    pool: tuple[Element, ...] = ()

    @property
    def elements(self) -> tuple[Element, ...]:
        if self.pool:
            return self.pool
        return tuple(e for e in Element if e != Element.NONE)


@dataclass(frozen=True)
class LeechHealData:
    percent: float


@dataclass(frozen=True)
class CombatModifierData:
    """Template for the combat modifier an effect creates.

    The modifier's value comes from the resolved effect value.
    """
    mod_type: ModifierType = ModifierType.FLAT
    duration: ModifierDuration = ModifierDuration.COMBAT
    turns: int = 0
    target_filter: ModifierTargetFilter = ModifierTargetFilter.ALL


@dataclass(frozen=True)
class GrantActionData:
    action_id: str


EffectData = Union[
    NoEffectData,
    TagData,
    ElementData,
    RandomizeElementData,
    LeechHealData,
    CombatModifierData,
    GrantActionData,
]

EFFECT_DATA_TYPES: dict[EffectType, type] = {
    EffectType.STAT_BONUS: NoEffectData,
    EffectType.GRANT_ACTION: GrantActionData,
    EffectType.FLAT_BONUS: NoEffectData,
    EffectType.SET_MINIMUM: NoEffectData,
    EffectType.ADD_TAG: TagData,
    EffectType.REMOVE_TAG: TagData,
    EffectType.SET_ELEMENT: ElementData,
    EffectType.RANDOMIZE_ELEMENT: RandomizeElementData,
    EffectType.LEECH_HEAL: LeechHealData,
    EffectType.DESTROY_SELF: NoEffectData,
    EffectType.CREATE_COMBAT_MODIFIER: CombatModifierData,
}


def default_effect_data(effect_type: EffectType) -> EffectData:
    """Payload for an effect type when none was authored."""
    data_type = EFFECT_DATA_TYPES[effect_type]
    if data_type in (NoEffectData, RandomizeElementData, CombatModifierData):
        return data_type()
    return NoEffectData()


def check_effect_data(effect_type: EffectType, effect_data: EffectData) -> Optional[str]:
    """Return a warning if the payload does not match the effect type."""
    expected = EFFECT_DATA_TYPES[effect_type]
    if not isinstance(effect_data, expected):
        return (
            f"{effect_type.name} expects {expected.__name__}, "
            f"got {type(effect_data).__name__}"
        )
    if (
        isinstance(effect_data, CombatModifierData)
        and effect_data.duration == ModifierDuration.TURNS
        and effect_data.turns <= 0
    ):
        return f"TURNS combat modifier with {effect_data.turns} turns expires immediately"
    return None


# =============================================================================
# SPECIAL EFFECTS
# =============================================================================


class SpecialEffectType(Enum):
    """Side effects handed back to the combat orchestrator."""
    RANDOMIZE_ELEMENT = "randomize_element"
    LEECH_HEAL = "leech_heal"
    DESTROY_FROM_POOL = "destroy_from_pool"
    CREATE_COMBAT_MODIFIER = "create_combat_modifier"


@dataclass
class SpecialEffect:
    """
    A typed side effect produced during affix application.

    Attributes:
        type: Kind of side effect.
        source_slot: Slot index of the die whose affix produced it.
        target_slot: Slot index the effect concerns (None for pool-wide).
        source_name: Name of the producing affix.
        data: Kind-specific payload ("percent", "elements", "modifier").
    """

    type: SpecialEffectType
    source_slot: int = -1
    target_slot: Optional[int] = None
    source_name: str = ""
    data: dict[str, Any] = field(default_factory=dict)
