"""Dice carried into combat.

A die has a rolled face (current_value), a working value that affixes
and modifiers adjust (modified_value), tags, an element and two affix
lists: inherent ones that come with the die type and rolled ones granted
on top. All float-to-int writes truncate toward zero.
"""

import copy
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config import settings
from ..core.affix import Affix, AffixTrigger
from ..core.constants import MIN_DIE_VALUE
from ..core.effects import Element


class DieType(Enum):
    """Die sizes."""
    D4 = 4
    D6 = 6
    D8 = 8
    D10 = 10
    D12 = 12
    D20 = 20

    @property
    def sides(self) -> int:
        return self.value


@dataclass
class Die:
    """
    A die in a hand.

    Attributes:
        die_type: Die size.
        slot_index: Position in the hand (fixed once rolled).
        current_value: Rolled face.
        modified_value: Face after affixes.
        is_consumed: Used this turn (stays in its slot).
        tags: Runtime tags.
        element: Damage element.
        inherent_affixes: Affixes that come with the die.
        rolled_affixes: Affixes granted on top.
        name: Display name.
    """

    die_type: DieType = DieType.D6
    slot_index: int = -1
    current_value: int = 0
    modified_value: int = 0
    is_consumed: bool = False
    tags: set[str] = field(default_factory=set)
    element: Element = Element.NONE
    inherent_affixes: list[Affix] = field(default_factory=list)
    rolled_affixes: list[Affix] = field(default_factory=list)
    name: str = ""

    def __repr__(self) -> str:
        state = "used" if self.is_consumed else "ready"
        return f"Die(#{self.slot_index} {self.die_type.name}={self.modified_value} {state})"

    @property
    def max_value(self) -> int:
        return self.die_type.sides

    @property
    def affixes(self) -> list[Affix]:
        return self.inherent_affixes + self.rolled_affixes

    def get_affixes(self, trigger: AffixTrigger) -> list[Affix]:
        return [a for a in self.affixes if a.trigger == trigger]

    def roll(self, rng: Optional[random.Random] = None) -> int:
        """Roll a new face; resets the working value to it."""
        rng = rng or random.Random()
        self.set_value(rng.randint(MIN_DIE_VALUE, self.max_value))
        return self.current_value

    def set_value(self, value: float) -> None:
        """Set both the face and the working value."""
        self.current_value = int(value)
        self.modified_value = self.current_value

    def set_modified_value(self, value: float) -> None:
        self.modified_value = int(value)

    def add_value(self, delta: float) -> int:
        """Add to the working value. Returns the applied integer delta."""
        before = self.modified_value
        self.set_modified_value(self.modified_value + delta)
        return self.modified_value - before

    def add_tag(self, tag: str) -> None:
        self.tags.add(tag)

    def remove_tag(self, tag: str) -> None:
        self.tags.discard(tag)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def duplicate(self) -> "Die":
        """Deep copy (affixes included) for placing in a hand."""
        return copy.deepcopy(self)


def create_die(
    die_type: DieType = DieType.D6,
    value: Optional[int] = None,
    affixes: Optional[list[Affix]] = None,
    name: str = "",
) -> Die:
    """Create a die, optionally with a fixed face and inherent affixes."""
    die = Die(die_type=die_type, inherent_affixes=list(affixes or []), name=name)
    if value is not None:
        die.set_value(value)
    return die


def create_starting_dice(die_type: DieType = DieType.D6, count: Optional[int] = None) -> list[Die]:
    """Plain dice for a fresh loadout; count defaults to the configured hand size."""
    if count is None:
        count = settings.DEFAULT_HAND_SIZE
    if count < 0:
        raise ValueError("count must be >= 0")
    return [create_die(die_type) for _ in range(count)]
