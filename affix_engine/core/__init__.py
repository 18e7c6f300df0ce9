# Core affix engine modules
from .constants import (
    RARITY_WEIGHT_DIVISORS,
    RUN_AFFIX_SOURCE,
    ITEM_RARITY_RANK,
    HEAVY_WEAPON_TAG,
    MIN_DIE_VALUE,
    MAX_HAND_SIZE,
    DIE_VALUE_STAT,
)

from .context import (
    EvaluationContext,
    PlayerSnapshot,
    EquippedItem,
    EquipmentSlot,
    ItemRarity,
)
from .conditions import (
    Condition,
    ConditionType,
    ConditionResult,
    SCALING_CONDITIONS,
    evaluate_condition,
    resolve_self_value,
)
from .value_sources import ValueSource, resolve_value, resolve_base_value
from .effects import (
    EffectType,
    Element,
    ModifierType,
    ModifierDuration,
    ModifierTargetFilter,
    NoEffectData,
    TagData,
    ElementData,
    RandomizeElementData,
    LeechHealData,
    CombatModifierData,
    GrantActionData,
    EFFECT_DATA_TYPES,
    SpecialEffect,
    SpecialEffectType,
)
from .affix import Affix, SubEffect, AffixTrigger, AffixCategory, TargetSelector
from .affix_pool import AffixPool, AffixEvaluator, CompoundEffectResult
from .run_affix import RunAffixEntry, RunAffixRarity, RunState, grant_run_affix
from .run_affix_roller import RunAffixRoller

__all__ = [
    # Constants
    "RARITY_WEIGHT_DIVISORS",
    "RUN_AFFIX_SOURCE",
    "ITEM_RARITY_RANK",
    "HEAVY_WEAPON_TAG",
    "MIN_DIE_VALUE",
    "MAX_HAND_SIZE",
    "DIE_VALUE_STAT",
    # Context
    "EvaluationContext",
    "PlayerSnapshot",
    "EquippedItem",
    "EquipmentSlot",
    "ItemRarity",
    # Conditions
    "Condition",
    "ConditionType",
    "ConditionResult",
    "SCALING_CONDITIONS",
    "evaluate_condition",
    "resolve_self_value",
    # Value sources
    "ValueSource",
    "resolve_value",
    "resolve_base_value",
    # Effects
    "EffectType",
    "Element",
    "ModifierType",
    "ModifierDuration",
    "ModifierTargetFilter",
    "NoEffectData",
    "TagData",
    "ElementData",
    "RandomizeElementData",
    "LeechHealData",
    "CombatModifierData",
    "GrantActionData",
    "EFFECT_DATA_TYPES",
    "SpecialEffect",
    "SpecialEffectType",
    # Affixes
    "Affix",
    "SubEffect",
    "AffixTrigger",
    "AffixCategory",
    "TargetSelector",
    "AffixPool",
    "AffixEvaluator",
    "CompoundEffectResult",
    # Run affixes
    "RunAffixEntry",
    "RunAffixRarity",
    "RunState",
    "grant_run_affix",
    "RunAffixRoller",
]
