"""Tests for AffixPool and AffixEvaluator."""

import pytest

from affix_engine.core.affix import Affix, AffixCategory, SubEffect, TargetSelector
from affix_engine.core.affix_pool import AffixEvaluator, AffixPool
from affix_engine.core.conditions import Condition, ConditionType
from affix_engine.core.context import (
    EquipmentSlot,
    EquippedItem,
    EvaluationContext,
    PlayerSnapshot,
)
from affix_engine.core.effects import EffectType, GrantActionData


def stat_flat(name: str, stat: str, value: float, **kwargs) -> Affix:
    return Affix(name=name, category=AffixCategory.STAT_FLAT, stat_name=stat, effect_value=value, **kwargs)


def stat_mult(name: str, stat: str, value: float, **kwargs) -> Affix:
    return Affix(name=name, category=AffixCategory.STAT_MULTIPLIER, stat_name=stat, effect_value=value, **kwargs)


@pytest.fixture
def context():
    return EvaluationContext(
        player=PlayerSnapshot(class_name="Warrior", stats={"strength": 10}, health=80, max_health=100),
    )


@pytest.fixture
def evaluator():
    return AffixEvaluator()


class TestAffixPool:
    """Membership and queries."""

    def test_add_and_query_by_category(self):
        pool = AffixPool()
        might = pool.add_affix(stat_flat("Might", "strength", 3))
        fury = pool.add_affix(stat_mult("Fury", "strength", 1.2))

        assert len(pool) == 2
        assert pool.get_affixes(AffixCategory.STAT_FLAT) == [might]
        assert pool.get_affixes(AffixCategory.STAT_MULTIPLIER) == [fury]
        assert pool.get_affixes(AffixCategory.HEALING) == []
        assert might in pool

    def test_get_affixes_for_stat(self):
        pool = AffixPool()
        pool.add_affix(stat_flat("Might", "strength", 3))
        pool.add_affix(stat_flat("Wit", "intelligence", 2))
        assert [a.name for a in pool.get_affixes_for_stat(AffixCategory.STAT_FLAT, "strength")] == ["Might"]

    def test_remove_affix_by_identity(self):
        pool = AffixPool()
        first = pool.add_affix(stat_flat("Might", "strength", 3))
        second = pool.add_affix(stat_flat("Might", "strength", 3))

        assert pool.remove_affix(first) is True
        assert pool.remove_affix(first) is False
        assert pool.get_affixes() == [second]

    def test_register_and_unregister_item(self):
        pool = AffixPool()
        template = stat_flat("Might", "strength", 3)
        sword = EquippedItem("sword", "Sword", EquipmentSlot.MAIN_HAND, affixes=[template])

        granted = pool.register_item(sword)
        assert len(granted) == 1
        assert granted[0] is not template
        assert pool.get_affixes_from_source("sword") == granted

        assert pool.unregister_item(sword) == 1
        assert len(pool) == 0

    def test_clear(self):
        pool = AffixPool()
        pool.add_affix(stat_flat("Might", "strength", 3), source="run")
        pool.clear()
        assert len(pool) == 0
        assert pool.get_affixes_from_source("run") == []


class TestStatResolution:
    """Additive terms before multiplicative terms."""

    def test_flat_then_multiplier(self, evaluator, context):
        """(10 + 5 + 3) * 1.2 = 21.6, independent of insertion order."""
        pool = AffixPool()
        pool.add_affix(stat_mult("Fury", "strength", 1.2))
        pool.add_affix(stat_flat("Might", "strength", 5))
        pool.add_affix(stat_flat("Grip", "strength", 3))

        assert evaluator.resolve_stat(pool, "strength", 10.0, context) == pytest.approx(21.6)

    def test_insertion_order_does_not_matter(self, evaluator, context):
        forward = AffixPool()
        backward = AffixPool()
        affixes = [
            stat_flat("A", "strength", 5),
            stat_mult("B", "strength", 1.5),
            stat_flat("C", "strength", 2),
            stat_mult("D", "strength", 2.0),
        ]
        for affix in affixes:
            forward.add_affix(affix)
        for affix in reversed(affixes):
            backward.add_affix(affix)

        assert evaluator.resolve_stat(forward, "strength", 1.0, context) == pytest.approx(
            evaluator.resolve_stat(backward, "strength", 1.0, context)
        )

    def test_other_stats_ignored(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(stat_flat("Wit", "intelligence", 4))
        assert evaluator.resolve_stat(pool, "strength", 10.0, context) == 10.0

    def test_empty_product_is_one(self, evaluator, context):
        pool = AffixPool()
        assert evaluator.resolve_category_product(pool, AffixCategory.DAMAGE_MULTIPLIER, context) == 1.0

    def test_blocked_multiplier_is_skipped(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(stat_mult(
            "Heavy", "strength", 2.0,
            condition=Condition(ConditionType.HAS_HEAVY_WEAPON),
        ))
        assert evaluator.resolve_category_product(pool, AffixCategory.STAT_MULTIPLIER, context) == 1.0

    def test_blocked_flat_contributes_nothing(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(stat_flat("Might", "strength", 3))
        pool.add_affix(stat_flat(
            "Mage Only", "strength", 100,
            condition=Condition(ConditionType.CLASS_IS, data={"class_name": "mage"}),
        ))
        assert evaluator.resolve_category_sum(pool, AffixCategory.STAT_FLAT, context) == 3.0

    def test_stat_affix_self_is_its_stat(self, evaluator, context):
        affix = stat_flat("Strong Only", "strength", 4, condition=Condition(
            ConditionType.SELF_VALUE_ABOVE, threshold=10,
        ))
        assert evaluator.resolve_affix_value(affix, context) == 4.0

    def test_scaling_condition(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(Affix(
            name="Collector",
            category=AffixCategory.DAMAGE_FLAT,
            effect_value=2.0,
            condition=Condition(ConditionType.PER_EQUIPPED_ITEM),
        ))
        context.equip(EquippedItem("helm", "Helm", EquipmentSlot.HEAD))
        context.equip(EquippedItem("boots", "Boots", EquipmentSlot.FEET))
        assert evaluator.resolve_category_sum(pool, AffixCategory.DAMAGE_FLAT, context) == 4.0


class TestGrantedActions:
    """Action grants respect conditions."""

    def test_granted_action_ids(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(Affix(
            name="Shield Bash",
            category=AffixCategory.GRANTED_ACTION,
            effect_type=EffectType.GRANT_ACTION,
            effect_data=GrantActionData("shield_bash"),
            condition=Condition(ConditionType.CLASS_IS, data={"class_name": "warrior"}),
        ))
        pool.add_affix(Affix(
            name="Whirlwind",
            category=AffixCategory.GRANTED_ACTION,
            effect_type=EffectType.GRANT_ACTION,
            effect_data=GrantActionData("whirlwind"),
            condition=Condition(ConditionType.HAS_HEAVY_WEAPON),
        ))

        assert evaluator.get_granted_action_ids(pool, context) == ["shield_bash"]

        context.equip(EquippedItem("maul", "Maul", is_two_handed=True))
        assert evaluator.get_granted_action_ids(pool, context) == ["shield_bash", "whirlwind"]


class TestTagQueries:
    """Tag sums and counts skip blocked affixes."""

    def test_sum_and_count_by_tag(self, evaluator, context):
        pool = AffixPool()
        pool.add_affix(Affix(name="Ember", effect_value=2.0, tags=["fire"]))
        pool.add_affix(Affix(name="Blaze", effect_value=3.0, tags=["fire", "physical"]))
        pool.add_affix(Affix(
            name="Wildfire", effect_value=10.0, tags=["fire"],
            condition=Condition(ConditionType.IN_COMBAT),
        ))

        assert evaluator.sum_values_by_tag(pool, "fire", context) == 5.0
        assert evaluator.count_affixes_with_tag(pool, "fire", context) == 2
        assert evaluator.has_affix_with_tag(pool, "physical", context) is True
        assert evaluator.has_affix_with_tag(pool, "ice", context) is False

        context.in_combat = True
        assert evaluator.sum_values_by_tag(pool, "fire", context) == 15.0


class TestCompoundAffixes:
    """Parent effect first, then fired sub-effects in order."""

    def test_blocked_parent_with_passing_override(self, evaluator, context):
        affix = Affix(
            name="Layered",
            effect_type=EffectType.STAT_BONUS,
            effect_value=5.0,
            condition=Condition(ConditionType.CLASS_IS, data={"class_name": "mage"}),
            sub_effects=[
                SubEffect(effect_value=1.0),
                SubEffect(
                    effect_value=2.0,
                    override_target=TargetSelector.ALL,
                    override_condition=Condition(ConditionType.HEALTH_ABOVE_PERCENT, threshold=0.5),
                ),
            ],
        )

        results = evaluator.resolve_compound_affix(affix, context)

        assert len(results) == 1
        assert results[0].sub_effect_index == 1
        assert results[0].value == 2.0
        assert results[0].target == TargetSelector.ALL

    def test_passing_parent_fires_everything_in_order(self, evaluator, context):
        affix = Affix(
            name="Layered",
            effect_value=5.0,
            sub_effects=[SubEffect(effect_value=1.0), SubEffect(effect_value=2.0)],
        )

        results = evaluator.resolve_compound_affix(affix, context)

        assert [r.value for r in results] == [5.0, 1.0, 2.0]
        assert results[0].is_parent
        assert [r.sub_effect_index for r in results[1:]] == [0, 1]
        assert all(r.target == TargetSelector.SELF for r in results)

    def test_failing_override_skips_sub_effect(self, evaluator, context):
        affix = Affix(
            name="Layered",
            effect_value=5.0,
            sub_effects=[SubEffect(
                effect_value=1.0,
                override_condition=Condition(ConditionType.IN_COMBAT),
            )],
        )
        results = evaluator.resolve_compound_affix(affix, context)
        assert [r.value for r in results] == [5.0]

    def test_inherited_condition_blocks_sub_effects(self, evaluator, context):
        affix = Affix(
            name="Layered",
            effect_value=5.0,
            condition=Condition(ConditionType.IN_COMBAT),
            sub_effects=[SubEffect(effect_value=1.0)],
        )
        assert evaluator.resolve_compound_affix(affix, context) == []
