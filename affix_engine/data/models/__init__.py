# Data Models
from .affix_content import (
    AffixModel,
    SubEffectModel,
    ConditionModel,
    EffectDataModel,
    build_effect_data,
)

__all__ = [
    "AffixModel",
    "SubEffectModel",
    "ConditionModel",
    "EffectDataModel",
    "build_effect_data",
]
