"""Tests for Affix descriptors."""

import random

from affix_engine.core.affix import Affix, AffixCategory, SubEffect, TargetSelector
from affix_engine.core.conditions import Condition, ConditionType
from affix_engine.core.effects import (
    CombatModifierData,
    EffectType,
    GrantActionData,
    ModifierDuration,
    NoEffectData,
    TagData,
    check_effect_data,
    default_effect_data,
    RandomizeElementData,
    Element,
)
from affix_engine.core.value_sources import ValueSource


class TestAffixBasics:
    """Construction and copy behaviour."""

    def test_defaults(self):
        affix = Affix(name="Plain")
        assert affix.effect_type == EffectType.STAT_BONUS
        assert affix.value_source == ValueSource.STATIC
        assert affix.target_selector == TargetSelector.SELF
        assert affix.condition is None
        assert not affix.is_compound

    def test_duplicate_is_independent(self):
        template = Affix(
            name="Marked",
            effect_type=EffectType.ADD_TAG,
            effect_data=TagData("marked"),
            tags=["hunt"],
            condition=Condition(ConditionType.HAS_TAG, data={"tag": "prey"}),
        )
        copy = template.duplicate()
        copy.tags.append("extra")
        copy.condition.data["tag"] = "other"

        assert template.tags == ["hunt"]
        assert template.condition.data["tag"] == "prey"

    def test_granted_action_id(self):
        affix = Affix(
            name="Whirlwind",
            category=AffixCategory.GRANTED_ACTION,
            effect_type=EffectType.GRANT_ACTION,
            effect_data=GrantActionData("whirlwind"),
        )
        assert affix.granted_action_id == "whirlwind"
        assert Affix(name="Plain").granted_action_id is None


class TestRollValue:
    """Rerolling within value_range."""

    def test_integer_range_rolls_integers(self):
        affix = Affix(name="Might", effect_value=3.0, value_range=(1, 5))
        rng = random.Random(7)
        for _ in range(20):
            value = affix.roll_value(rng)
            assert 1 <= value <= 5
            assert value == int(value)

    def test_float_range(self):
        affix = Affix(name="Fury", effect_value=1.2, value_range=(1.1, 1.4))
        value = affix.roll_value(random.Random(3))
        assert 1.1 <= value <= 1.4

    def test_no_range_keeps_value(self):
        affix = Affix(name="Fixed", effect_value=2.0)
        assert affix.roll_value(random.Random(1)) == 2.0

    def test_seeded_rolls_repeat(self):
        first = Affix(name="A", value_range=(1, 100)).roll_value(random.Random(42))
        second = Affix(name="A", value_range=(1, 100)).roll_value(random.Random(42))
        assert first == second


class TestValidation:
    """Authoring warnings."""

    def test_valid_affix_has_no_warnings(self):
        affix = Affix(
            name="Might",
            category=AffixCategory.STAT_FLAT,
            stat_name="strength",
            effect_value=3.0,
        )
        assert affix.validate() == []

    def test_payload_mismatch(self):
        affix = Affix(name="Broken", effect_type=EffectType.ADD_TAG)
        warnings = affix.validate()
        assert len(warnings) == 1
        assert warnings[0].startswith("Broken:")
        assert "TagData" in warnings[0]

    def test_stat_affix_requires_stat_name(self):
        affix = Affix(name="Nameless", category=AffixCategory.STAT_MULTIPLIER, effect_value=1.1)
        assert any("stat_name" in w for w in affix.validate())

    def test_player_stat_requires_source_stat(self):
        affix = Affix(name="Scholar", value_source=ValueSource.PLAYER_STAT)
        assert any("source_stat" in w for w in affix.validate())

    def test_reversed_range(self):
        affix = Affix(name="Backwards", value_range=(5, 1))
        assert any("reversed" in w for w in affix.validate())

    def test_sub_effect_warnings_are_indexed(self):
        affix = Affix(
            name="Compound",
            sub_effects=[
                SubEffect(effect_type=EffectType.FLAT_BONUS, effect_value=1.0),
                SubEffect(effect_type=EffectType.SET_ELEMENT),
            ],
        )
        warnings = affix.validate()
        assert len(warnings) == 1
        assert "sub_effect[1]" in warnings[0]

    def test_condition_warnings_included(self):
        affix = Affix(name="Gated", condition=Condition(ConditionType.CLASS_IS))
        assert any("class_name" in w for w in affix.validate())

    def test_zero_turn_modifier_warns(self):
        affix = Affix(
            name="Flicker",
            effect_type=EffectType.CREATE_COMBAT_MODIFIER,
            effect_data=CombatModifierData(duration=ModifierDuration.TURNS, turns=0),
        )
        warnings = affix.validate()
        assert len(warnings) == 1
        assert "expires immediately" in warnings[0]

    def test_turn_modifier_with_turns_is_valid(self):
        affix = Affix(
            name="Rally",
            effect_type=EffectType.CREATE_COMBAT_MODIFIER,
            effect_data=CombatModifierData(duration=ModifierDuration.TURNS, turns=2),
        )
        assert affix.validate() == []

    def test_zero_turn_modifier_in_sub_effect_warns(self):
        affix = Affix(
            name="Echo",
            sub_effects=[SubEffect(
                effect_type=EffectType.CREATE_COMBAT_MODIFIER,
                effect_data=CombatModifierData(duration=ModifierDuration.TURNS),
            )],
        )
        assert any("sub_effect[0]" in w and "expires immediately" in w for w in affix.validate())


class TestEffectData:
    """Payload helpers."""

    def test_default_payloads(self):
        assert default_effect_data(EffectType.FLAT_BONUS) == NoEffectData()
        assert default_effect_data(EffectType.RANDOMIZE_ELEMENT) == RandomizeElementData()
        # Payloads with required fields cannot be defaulted
        assert default_effect_data(EffectType.ADD_TAG) == NoEffectData()

    def test_check_effect_data(self):
        assert check_effect_data(EffectType.ADD_TAG, TagData("x")) is None
        assert check_effect_data(EffectType.ADD_TAG, NoEffectData()) is not None

    def test_randomize_pool_defaults_to_every_element(self):
        elements = RandomizeElementData().elements
        assert Element.NONE not in elements
        assert Element.FIRE in elements
        assert RandomizeElementData((Element.ICE,)).elements == (Element.ICE,)
