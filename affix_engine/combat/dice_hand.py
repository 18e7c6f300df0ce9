"""Dice Hand ("ghost hand").

A fixed, order-stable array of dice for one turn. Using a die marks it
consumed in place; it is never removed or shifted, so every slot index
(and every neighbor relation an affix computes from it) stays valid for
the whole turn regardless of consumption order.

Per-die state machine: ROLLED -> USED (consume) -> ROLLED (restore).
"""

import logging
import random
from typing import Iterator, Optional, Sequence, Union

from ..core.affix import AffixTrigger
from ..core.constants import MAX_HAND_SIZE
from ..core.context import EvaluationContext
from .dice import Die
from .dice_affix_processor import DiceAffixProcessor, TriggerResult

logger = logging.getLogger(__name__)

DieRef = Union[Die, int]


class DiceHand:
    """
    Manages the dice rolled for a turn.

    Usage:
        hand = DiceHand()
        hand.roll_hand(player_dice, context, rng)
        result = hand.consume_from_hand(2, context)
    """

    def __init__(
        self,
        processor: Optional[DiceAffixProcessor] = None,
        max_size: int = MAX_HAND_SIZE,
    ):
        """
        Initialize an empty hand.

        Args:
            processor: Affix processor for trigger dispatch.
            max_size: Largest hand that may be rolled.
        """
        self.processor = processor or DiceAffixProcessor()
        self.max_size = max_size
        self.dice: list[Die] = []
        self._on_use_fired: set[int] = set()

    def __len__(self) -> int:
        return len(self.dice)

    def __iter__(self) -> Iterator[Die]:
        return iter(self.dice)

    @property
    def size(self) -> int:
        return len(self.dice)

    # =========================================================================
    # ROLLING
    # =========================================================================

    def roll_hand(
        self,
        dice: Sequence[Die],
        context: EvaluationContext,
        rng: Optional[random.Random] = None,
    ) -> TriggerResult:
        """
        Roll a new hand from a set of dice and fire ON_ROLL.

        The dice are copied, so the hand never aliases the caller's set.
        Slot indices follow the order given and are fixed until the next roll.

        Raises:
            ValueError: If the set is empty or larger than max_size.
        """
        if not dice:
            raise ValueError("Cannot roll an empty hand")
        if len(dice) > self.max_size:
            raise ValueError(f"Hand size {len(dice)} exceeds maximum {self.max_size}")

        rng = rng or random.Random()
        self.dice = [die.duplicate() for die in dice]
        for slot_index, die in enumerate(self.dice):
            die.slot_index = slot_index
            die.is_consumed = False
            die.roll(rng)
        self._on_use_fired.clear()

        context.hand = self.dice
        context.reset_action()
        logger.debug("Rolled hand: %s", [d.modified_value for d in self.dice])
        return self.process_trigger(AffixTrigger.ON_ROLL, context)

    def set_hand(self, dice: Sequence[Die], context: Optional[EvaluationContext] = None) -> None:
        """Use already-rolled dice as the hand (no ON_ROLL dispatch)."""
        if len(dice) > self.max_size:
            raise ValueError(f"Hand size {len(dice)} exceeds maximum {self.max_size}")
        self.dice = list(dice)
        for slot_index, die in enumerate(self.dice):
            die.slot_index = slot_index
        self._on_use_fired = {d.slot_index for d in self.dice if d.is_consumed}
        if context is not None:
            context.hand = self.dice

    def reroll_die(
        self,
        die_ref: DieRef,
        context: EvaluationContext,
        rng: Optional[random.Random] = None,
    ) -> TriggerResult:
        """Reroll one unconsumed die in place and fire its ON_ROLL affixes."""
        die = self.get_die(die_ref)
        if die.is_consumed:
            logger.warning("Reroll of consumed die in slot %d ignored", die.slot_index)
            return TriggerResult()
        die.roll(rng)
        return self.process_trigger(AffixTrigger.ON_ROLL, context, source=die)

    # =========================================================================
    # CONSUMPTION
    # =========================================================================

    def consume_from_hand(self, die_ref: DieRef, context: EvaluationContext) -> TriggerResult:
        """
        Use a die: mark it consumed in place and fire its ON_USE affixes.

        ON_USE runs against the full hand before this returns, so neighbors
        read the post-consumption state immediately. Consuming a die that
        is already consumed is a no-op.
        """
        die = self.get_die(die_ref)
        if die.is_consumed or die.slot_index in self._on_use_fired:
            logger.warning("Die in slot %d is already consumed; ON_USE not re-fired", die.slot_index)
            return TriggerResult()

        die.is_consumed = True
        context.hand = self.dice
        context.mark_used(die.slot_index)
        self._on_use_fired.add(die.slot_index)
        return self.processor.process_trigger(self.dice, AffixTrigger.ON_USE, context, source=die)

    def restore_to_hand(self, die_ref: DieRef, context: Optional[EvaluationContext] = None) -> bool:
        """
        Clear a die's consumed flag without moving it.

        Returns:
            True if the die was consumed.
        """
        die = self.get_die(die_ref)
        if not die.is_consumed:
            return False
        die.is_consumed = False
        self._on_use_fired.discard(die.slot_index)
        if context is not None and context.is_used(die.slot_index):
            context.used_indices.discard(die.slot_index)
            context.used_count = max(0, context.used_count - 1)
        return True

    def reset_turn(self, context: Optional[EvaluationContext] = None) -> None:
        """Restore every die and clear the per-action scratch."""
        for die in self.dice:
            die.is_consumed = False
        self._on_use_fired.clear()
        if context is not None:
            context.reset_action()

    def process_trigger(
        self,
        trigger: AffixTrigger,
        context: EvaluationContext,
        source: Optional[Die] = None,
    ) -> TriggerResult:
        context.hand = self.dice
        return self.processor.process_trigger(self.dice, trigger, context, source)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_die(self, die_ref: DieRef) -> Die:
        """
        Look up a die by slot index or instance.

        Raises:
            ValueError: If the slot is out of range or the die is not in this hand.
        """
        if isinstance(die_ref, Die):
            if not any(d is die_ref for d in self.dice):
                raise ValueError(f"{die_ref!r} is not in this hand")
            return die_ref
        if not 0 <= die_ref < len(self.dice):
            raise ValueError(f"Slot {die_ref} out of range for hand of {len(self.dice)}")
        return self.dice[die_ref]

    def get_neighbors(self, die_ref: DieRef) -> tuple[Optional[Die], Optional[Die]]:
        """(left, right) neighbors by slot index, None at the edges."""
        die = self.get_die(die_ref)
        left = self.dice[die.slot_index - 1] if die.slot_index > 0 else None
        right = self.dice[die.slot_index + 1] if die.slot_index + 1 < len(self.dice) else None
        return left, right

    def get_unconsumed_hand(self) -> list[Die]:
        return [d for d in self.dice if not d.is_consumed]

    def get_consumed_hand(self) -> list[Die]:
        return [d for d in self.dice if d.is_consumed]

    def get_unconsumed_count(self) -> int:
        return sum(1 for d in self.dice if not d.is_consumed)

    def get_consumed_count(self) -> int:
        return sum(1 for d in self.dice if d.is_consumed)

    def get_unconsumed_total(self) -> int:
        return sum(d.modified_value for d in self.dice if not d.is_consumed)
