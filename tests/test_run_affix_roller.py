"""Tests for run affix offers and run state."""

import random
from collections import Counter

import pytest
from pydantic import ValidationError

from affix_engine.core.affix import Affix, AffixCategory
from affix_engine.core.affix_pool import AffixPool
from affix_engine.core.constants import RUN_AFFIX_SOURCE
from affix_engine.core.run_affix import RunAffixEntry, RunAffixRarity, RunState, grant_run_affix
from affix_engine.core.run_affix_roller import RunAffixRoller


def create_test_entry(affix_id: str, **kwargs) -> RunAffixEntry:
    return RunAffixEntry(affix_id=affix_id, name=affix_id.title(), **kwargs)


@pytest.fixture
def catalog():
    return [
        create_test_entry("vigor", max_stacks=3, offer_weight=10),
        create_test_entry("berserker", rarity=RunAffixRarity.RARE, tags=["rage"], mutually_exclusive_tags=["calm"]),
        create_test_entry("stoic", rarity=RunAffixRarity.RARE, tags=["calm"], mutually_exclusive_tags=["rage"]),
        create_test_entry("greed", rarity=RunAffixRarity.UNCOMMON, max_stacks=2),
        create_test_entry("phoenix", rarity=RunAffixRarity.LEGENDARY),
    ]


class TestRunAffixEntry:
    """Catalog entries."""

    def test_effective_weight_by_rarity(self):
        weights = {
            rarity: RunAffixRoller.get_effective_weight(create_test_entry("x", rarity=rarity, offer_weight=16))
            for rarity in RunAffixRarity
        }
        assert weights == {
            RunAffixRarity.COMMON: 16.0,
            RunAffixRarity.UNCOMMON: 8.0,
            RunAffixRarity.RARE: 4.0,
            RunAffixRarity.EPIC: 2.0,
            RunAffixRarity.LEGENDARY: 1.0,
        }

    def test_entry_is_frozen(self):
        entry = create_test_entry("vigor")
        with pytest.raises(ValidationError):
            entry.max_stacks = 5

    def test_validate(self):
        assert create_test_entry("vigor").validate() == []
        assert create_test_entry("dead", max_stacks=0).validate()
        assert create_test_entry("never", offer_weight=0).validate()
        assert create_test_entry("self_exclusive", tags=["rage"], mutually_exclusive_tags=["rage"]).validate()


class TestRunState:
    """Pick tracking."""

    def test_track_run_affix(self, catalog):
        state = RunState()
        assert state.track_run_affix(catalog[0]) == 1
        assert state.track_run_affix(catalog[0]) == 2
        assert state.get_stack_count("vigor") == 2
        assert state.chosen_order == ["vigor", "vigor"]

    def test_max_stacks(self, catalog):
        state = RunState()
        greed = catalog[3]
        state.track_run_affix(greed)
        assert not state.has_reached_max_stacks(greed)
        state.track_run_affix(greed)
        assert state.has_reached_max_stacks(greed)

    def test_chosen_tags(self, catalog):
        state = RunState()
        state.track_run_affix(catalog[1])
        assert state.get_chosen_tags(catalog) == {"rage"}

    def test_skip_and_reset(self, catalog):
        state = RunState()
        state.track_run_affix(catalog[0])
        state.skip_affix_offer()
        assert state.skipped_offers == 1

        state.reset()
        assert state.chosen == {}
        assert state.chosen_order == []
        assert state.skipped_offers == 0

    def test_serializes(self, catalog):
        state = RunState()
        state.track_run_affix(catalog[0])
        restored = RunState.model_validate(state.model_dump())
        assert restored.get_stack_count("vigor") == 1


class TestRollOffers:
    """Weighted sampling without replacement."""

    def test_offers_are_distinct(self, catalog):
        roller = RunAffixRoller(seed=1)
        for _ in range(50):
            offers = roller.roll_offers(catalog, RunState(), count=3)
            ids = [o.affix_id for o in offers]
            assert len(ids) == 3
            assert len(set(ids)) == 3

    def test_default_count(self, catalog):
        offers = RunAffixRoller(seed=2).roll_offers(catalog, RunState())
        assert len(offers) == 3

    def test_returns_all_when_fewer_eligible(self, catalog):
        offers = RunAffixRoller(seed=3).roll_offers(catalog[:2], RunState(), count=5)
        assert sorted(o.affix_id for o in offers) == ["berserker", "vigor"]

    def test_zero_count(self, catalog):
        assert RunAffixRoller(seed=4).roll_offers(catalog, RunState(), count=0) == []

    def test_negative_count_raises(self, catalog):
        with pytest.raises(ValueError):
            RunAffixRoller(seed=4).roll_offers(catalog, RunState(), count=-1)

    def test_exclusion_after_pick(self, catalog):
        """Choosing a rage entry removes entries that exclude rage."""
        state = RunState()
        state.track_run_affix(catalog[1])
        roller = RunAffixRoller(seed=5)
        for _ in range(30):
            offers = roller.roll_offers(catalog, state, count=4)
            assert "stoic" not in [o.affix_id for o in offers]

    def test_max_stacks_excluded(self, catalog):
        state = RunState()
        greed = catalog[3]
        state.track_run_affix(greed)
        state.track_run_affix(greed)
        roller = RunAffixRoller(seed=6)
        for _ in range(30):
            assert "greed" not in [o.affix_id for o in roller.roll_offers(catalog, state, count=4)]

    def test_one_below_max_stacks_still_offered(self, catalog):
        state = RunState()
        state.track_run_affix(catalog[3])
        offers = RunAffixRoller(seed=6).roll_offers(catalog, state, count=10)
        assert "greed" in [o.affix_id for o in offers]

    def test_zero_weight_never_offered(self, catalog):
        catalog.append(create_test_entry("ghost", offer_weight=0))
        offers = RunAffixRoller(seed=7).roll_offers(catalog, RunState(), count=10)
        assert "ghost" not in [o.affix_id for o in offers]
        assert len(offers) == 5

    def test_duplicate_catalog_ids_offered_once(self):
        catalog = [create_test_entry("vigor"), create_test_entry("vigor"), create_test_entry("greed")]
        offers = RunAffixRoller(seed=8).roll_offers(catalog, RunState(), count=3)
        assert sorted(o.affix_id for o in offers) == ["greed", "vigor"]

    def test_same_seed_same_offers(self, catalog):
        first = RunAffixRoller(seed=99).roll_offers(catalog, RunState(), count=3)
        second = RunAffixRoller(seed=99).roll_offers(catalog, RunState(), count=3)
        assert first == second

    def test_weighting_favours_common(self):
        catalog = [
            create_test_entry("common"),
            create_test_entry("legendary", rarity=RunAffixRarity.LEGENDARY),
        ]
        roller = RunAffixRoller(rng=random.Random(10))
        counts = Counter(roller.roll_offers(catalog, RunState(), count=1)[0].affix_id for _ in range(2000))
        # Expected ratio is 16:1
        assert counts["common"] > counts["legendary"] * 5


class TestGrantRunAffix:
    """Granting picks into a pool."""

    def test_grant_copies_and_rolls(self):
        template = Affix(
            name="Vigor",
            category=AffixCategory.STAT_FLAT,
            stat_name="max_health",
            effect_value=10.0,
            value_range=(8, 12),
        )
        pool = AffixPool()

        granted = grant_run_affix(pool, template, random.Random(0))

        assert granted is not template
        assert template.effect_value == 10.0
        assert 8 <= granted.effect_value <= 12
        assert pool.get_affixes_from_source(RUN_AFFIX_SOURCE) == [granted]
