"""Affix Engine Constants."""

from typing import Final

# =============================================================================
# RUN AFFIX OFFERS
# =============================================================================
# Offer weight divisor per rarity. Effective weight = offer_weight / divisor,
# so a legendary entry is sixteen times less likely than a common one.
RARITY_WEIGHT_DIVISORS: Final[dict[str, float]] = {
    "common": 1.0,
    "uncommon": 2.0,
    "rare": 4.0,
    "epic": 8.0,
    "legendary": 16.0,
}

# Source key used when run affixes are registered with a pool
RUN_AFFIX_SOURCE: Final[str] = "run"

# =============================================================================
# EQUIPMENT
# =============================================================================
# Rarity rank of an equipped item, summed by PER_EQUIPMENT_RARITY and
# EQUIPMENT_RARITY_SUM.
ITEM_RARITY_RANK: Final[dict[str, int]] = {
    "common": 0,
    "uncommon": 1,
    "rare": 2,
    "epic": 3,
    "legendary": 4,
}

# Weapon tag checked by HAS_HEAVY_WEAPON
HEAVY_WEAPON_TAG: Final[str] = "heavy"

# =============================================================================
# DICE
# =============================================================================
MIN_DIE_VALUE: Final[int] = 1
MAX_HAND_SIZE: Final[int] = 12

# Stat name used when combat modifiers are resolved as pool members
DIE_VALUE_STAT: Final[str] = "die_value"
