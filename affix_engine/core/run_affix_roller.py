"""Run Affix Roller.

Rolls run affix offers from a catalog. Eligibility is recomputed from the
run state for every batch; entries are then drawn by weight without
replacement, so one batch never repeats an entry.
"""

import logging
import random
from typing import Iterable, Optional

from ..config import settings
from .run_affix import RunAffixEntry, RunState

logger = logging.getLogger(__name__)


class RunAffixRoller:
    """
    Weighted offer sampling under exclusion and stack constraints.

    Usage:
        roller = RunAffixRoller(seed=42)
        offers = roller.roll_offers(catalog, run_state, count=3)
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        """
        Initialize roller.

        Args:
            seed: Random seed for reproducible offers.
            rng: Explicit random generator (overrides seed).
        """
        self.rng = rng if rng is not None else random.Random(seed)

    @staticmethod
    def get_effective_weight(entry: RunAffixEntry) -> float:
        """Offer weight scaled down by the entry's rarity divisor."""
        if entry.offer_weight <= 0:
            return 0.0
        return entry.offer_weight / entry.rarity.weight_divisor

    def _filter_eligible(
        self,
        pool: Iterable[RunAffixEntry],
        run_state: RunState,
    ) -> list[RunAffixEntry]:
        """
        Entries that may be offered given the run's picks.

        Excludes entries whose mutually exclusive tags hit a chosen entry's
        tags, entries at their stack cap, and entries that cannot be drawn.
        """
        entries = list(pool)
        chosen_tags = run_state.get_chosen_tags(entries)
        eligible = []
        seen: set[str] = set()
        for entry in entries:
            if entry.affix_id in seen:
                continue
            if chosen_tags.intersection(entry.mutually_exclusive_tags):
                continue
            if run_state.has_reached_max_stacks(entry):
                continue
            if self.get_effective_weight(entry) <= 0:
                continue
            seen.add(entry.affix_id)
            eligible.append(entry)
        return eligible

    def roll_offers(
        self,
        catalog_pool: Iterable[RunAffixEntry],
        run_state: RunState,
        count: Optional[int] = None,
    ) -> list[RunAffixEntry]:
        """
        Roll one batch of offers.

        Args:
            catalog_pool: Offer catalog.
            run_state: Current run picks.
            count: Offers wanted (defaults to settings.DEFAULT_OFFER_COUNT).

        Returns:
            Up to count distinct entries; every eligible entry if fewer.
        """
        if count is None:
            count = settings.DEFAULT_OFFER_COUNT
        if count < 0:
            raise ValueError("count must be >= 0")

        candidates = self._filter_eligible(catalog_pool, run_state)
        offers: list[RunAffixEntry] = []

        while candidates and len(offers) < count:
            weights = [self.get_effective_weight(e) for e in candidates]
            roll = self.rng.random() * sum(weights)
            picked = len(candidates) - 1
            cumulative = 0.0
            for i, weight in enumerate(weights):
                cumulative += weight
                if roll < cumulative:
                    picked = i
                    break
            offers.append(candidates.pop(picked))

        logger.debug(
            "Rolled %d offers from %d eligible: %s",
            len(offers), len(offers) + len(candidates), [e.affix_id for e in offers],
        )
        return offers
