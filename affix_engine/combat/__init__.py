"""Dice combat bindings for the affix engine.

This module provides:
- Dice and the order-stable dice hand
- Trigger dispatch of dice affixes against a hand
- Duration-bound combat modifiers
"""

# Dice
from .dice import Die, DieType, create_die, create_starting_dice

# Combat modifiers
from .combat_modifier import CombatModifier, CombatModifierSystem

# Affix dispatch
from .dice_affix_processor import DiceAffixProcessor, TriggerResult, process_trigger

# Hand
from .dice_hand import DiceHand

__all__ = [
    "Die",
    "DieType",
    "create_die",
    "create_starting_dice",
    "CombatModifier",
    "CombatModifierSystem",
    "DiceAffixProcessor",
    "TriggerResult",
    "process_trigger",
    "DiceHand",
]
