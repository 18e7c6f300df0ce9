"""Authored affix content models.

JSON content is validated with these models and converted into engine
types. The effect_data bag of the JSON files becomes the typed payload
its effect type expects.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from ...core.affix import Affix, AffixCategory, AffixTrigger, SubEffect, TargetSelector
from ...core.conditions import Condition, ConditionType
from ...core.effects import (
    CombatModifierData,
    EffectData,
    EffectType,
    Element,
    ElementData,
    GrantActionData,
    LeechHealData,
    ModifierDuration,
    ModifierTargetFilter,
    ModifierType,
    NoEffectData,
    RandomizeElementData,
    TagData,
)
from ...core.value_sources import ValueSource


class ConditionModel(BaseModel):
    """Condition content."""
    kind: ConditionType = Field(default=ConditionType.NONE)
    threshold: float = Field(default=0.0)
    invert: bool = Field(default=False)
    data: dict[str, Any] = Field(default_factory=dict)

    def to_condition(self) -> Condition:
        return Condition(
            kind=self.kind,
            threshold=self.threshold,
            invert=self.invert,
            data=dict(self.data),
        )


class EffectDataModel(BaseModel):
    """Union of every effect payload key found in content."""
    tag: Optional[str] = Field(default=None, description="ADD_TAG / REMOVE_TAG")
    element: Optional[Element] = Field(default=None, description="SET_ELEMENT")
    elements: list[Element] = Field(default_factory=list, description="RANDOMIZE_ELEMENT pool")
    percent: Optional[float] = Field(default=None, description="LEECH_HEAL fraction")
    mod_type: ModifierType = Field(default=ModifierType.FLAT)
    duration: ModifierDuration = Field(default=ModifierDuration.COMBAT)
    turns: int = Field(default=0)
    target_filter: ModifierTargetFilter = Field(default=ModifierTargetFilter.ALL)
    action_id: Optional[str] = Field(default=None, description="GRANT_ACTION")


def build_effect_data(effect_type: EffectType, model: Optional[EffectDataModel]) -> EffectData:
    """
    Convert a content payload into the payload type of an effect.

    Missing keys produce NoEffectData, which Affix.validate() reports.
    """
    model = model or EffectDataModel()

    if effect_type in (EffectType.ADD_TAG, EffectType.REMOVE_TAG):
        return TagData(model.tag) if model.tag else NoEffectData()
    if effect_type == EffectType.SET_ELEMENT:
        return ElementData(model.element) if model.element is not None else NoEffectData()
    if effect_type == EffectType.RANDOMIZE_ELEMENT:
        return RandomizeElementData(tuple(model.elements))
    if effect_type == EffectType.LEECH_HEAL:
        return LeechHealData(model.percent) if model.percent is not None else NoEffectData()
    if effect_type == EffectType.CREATE_COMBAT_MODIFIER:
        return CombatModifierData(
            mod_type=model.mod_type,
            duration=model.duration,
            turns=model.turns,
            target_filter=model.target_filter,
        )
    if effect_type == EffectType.GRANT_ACTION:
        return GrantActionData(model.action_id) if model.action_id else NoEffectData()
    return NoEffectData()


class SubEffectModel(BaseModel):
    """Sub-effect content."""
    effect_type: EffectType = Field(default=EffectType.STAT_BONUS)
    effect_value: float = Field(default=0.0)
    effect_data: Optional[EffectDataModel] = Field(default=None)
    value_source: ValueSource = Field(default=ValueSource.STATIC)
    source_stat: str = Field(default="")
    override_target: Optional[TargetSelector] = Field(default=None)
    override_condition: Optional[ConditionModel] = Field(default=None)

    def to_sub_effect(self) -> SubEffect:
        return SubEffect(
            effect_type=self.effect_type,
            effect_value=self.effect_value,
            effect_data=build_effect_data(self.effect_type, self.effect_data),
            value_source=self.value_source,
            source_stat=self.source_stat,
            override_target=self.override_target,
            override_condition=(
                self.override_condition.to_condition() if self.override_condition else None
            ),
        )


class AffixModel(BaseModel):
    """Affix template content."""
    id: str = Field(..., description="Unique identifier (lowercase, underscores)")
    name: str = Field(..., description="Display name")
    description: str = Field(default="")
    trigger: AffixTrigger = Field(default=AffixTrigger.PASSIVE)
    category: AffixCategory = Field(default=AffixCategory.MISC)
    effect_type: EffectType = Field(default=EffectType.STAT_BONUS)
    value_source: ValueSource = Field(default=ValueSource.STATIC)
    target_selector: TargetSelector = Field(default=TargetSelector.SELF)
    effect_value: float = Field(default=0.0)
    effect_data: Optional[EffectDataModel] = Field(default=None)
    condition: Optional[ConditionModel] = Field(default=None)
    sub_effects: list[SubEffectModel] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    stat_name: str = Field(default="")
    source_stat: str = Field(default="")
    value_range: Optional[tuple[float, float]] = Field(default=None)

    def to_affix(self) -> Affix:
        return Affix(
            id=self.id,
            name=self.name,
            description=self.description,
            trigger=self.trigger,
            category=self.category,
            effect_type=self.effect_type,
            value_source=self.value_source,
            target_selector=self.target_selector,
            effect_value=self.effect_value,
            effect_data=build_effect_data(self.effect_type, self.effect_data),
            condition=self.condition.to_condition() if self.condition else None,
            sub_effects=[s.to_sub_effect() for s in self.sub_effects],
            tags=list(self.tags),
            stat_name=self.stat_name,
            source_stat=self.source_stat,
            value_range=self.value_range,
        )
