"""Run affix catalog entries and run state.

Catalog entries are authored content and never change during a run. The
run state records which entries the player picked (with stack counts)
and is a plain serializable record owned by the progression system.
"""

import logging
import random
from enum import StrEnum
from typing import Iterable, Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

from .constants import RARITY_WEIGHT_DIVISORS, RUN_AFFIX_SOURCE

if TYPE_CHECKING:
    from .affix import Affix
    from .affix_pool import AffixPool

logger = logging.getLogger(__name__)


class RunAffixRarity(StrEnum):
    """Rarity of an offerable run affix."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def weight_divisor(self) -> float:
        return RARITY_WEIGHT_DIVISORS[self.value]


class RunAffixEntry(BaseModel):
    """An offerable run affix."""
    affix_id: str = Field(..., description="Affix template identifier")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Offer text")
    rarity: RunAffixRarity = Field(default=RunAffixRarity.COMMON)
    tags: list[str] = Field(default_factory=list, description="Tags this entry contributes once chosen")
    mutually_exclusive_tags: list[str] = Field(
        default_factory=list,
        description="Entry is not offered if any chosen entry carries one of these tags",
    )
    max_stacks: int = Field(default=1, description="Times this entry can be chosen in one run")
    offer_weight: float = Field(default=1.0, description="Base sampling weight")

    model_config = {"frozen": True}

    def __repr__(self) -> str:
        return f"[{self.rarity.value.upper()}] {self.name or self.affix_id}"

    def validate(self) -> list[str]:
        """Return authoring warnings for this entry (empty when valid)."""
        warnings = []
        if not self.affix_id:
            warnings.append("entry has no affix_id")
        if self.max_stacks < 1:
            warnings.append(f"{self.affix_id}: max_stacks {self.max_stacks} can never be offered")
        if self.offer_weight <= 0:
            warnings.append(f"{self.affix_id}: offer_weight {self.offer_weight} can never be offered")
        overlap = set(self.tags) & set(self.mutually_exclusive_tags)
        if overlap:
            warnings.append(
                f"{self.affix_id}: excludes its own tags {sorted(overlap)} after one pick"
            )
        return warnings


class RunState(BaseModel):
    """Run affix picks for one run."""
    chosen: dict[str, int] = Field(default_factory=dict, description="affix_id -> times chosen")
    chosen_order: list[str] = Field(default_factory=list, description="affix_ids in pick order")
    skipped_offers: int = Field(default=0, description="Offers skipped without a pick")

    def get_stack_count(self, affix_id: str) -> int:
        return self.chosen.get(affix_id, 0)

    def has_reached_max_stacks(self, entry: RunAffixEntry) -> bool:
        return self.get_stack_count(entry.affix_id) >= entry.max_stacks

    def get_chosen_tags(self, catalog: Iterable[RunAffixEntry]) -> set[str]:
        """Tags of every catalog entry chosen at least once."""
        tags: set[str] = set()
        for entry in catalog:
            if self.chosen.get(entry.affix_id, 0) > 0:
                tags.update(entry.tags)
        return tags

    def track_run_affix(self, entry: RunAffixEntry) -> int:
        """
        Record a pick.

        Returns:
            The entry's new stack count.
        """
        count = self.chosen.get(entry.affix_id, 0) + 1
        self.chosen[entry.affix_id] = count
        self.chosen_order.append(entry.affix_id)
        logger.info("Run affix chosen: %s (stack %d/%d)", entry.affix_id, count, entry.max_stacks)
        return count

    def skip_affix_offer(self) -> None:
        """Record an offer declined without a pick."""
        self.skipped_offers += 1
        logger.info("Run affix offer skipped (%d total)", self.skipped_offers)

    def reset(self) -> None:
        self.chosen.clear()
        self.chosen_order.clear()
        self.skipped_offers = 0


def grant_run_affix(
    pool: "AffixPool",
    template: "Affix",
    rng: Optional[random.Random] = None,
) -> "Affix":
    """
    Add a fresh copy of a run affix template to a pool.

    The copy's value is rerolled within its range, so the template is never
    mutated.
    """
    affix = template.duplicate()
    affix.roll_value(rng)
    return pool.add_affix(affix, source=RUN_AFFIX_SOURCE)
