"""Value source resolution.

A value source turns an affix's effect_value into the magnitude it
actually produces in a context. The owning condition gates the result:
a blocked condition resolves to exactly 0.0 without consulting the
source, a passing one scales it by the condition multiplier.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence

from .conditions import ConditionResult, evaluate_condition, resolve_self_value
from .context import EvaluationContext

logger = logging.getLogger(__name__)


class ValueSource(Enum):
    """Strategy used to compute an effect's magnitude."""
    STATIC = "static"                              # effect_value as-is
    SELF_VALUE = "self_value"                      # self entity's value
    SELF_VALUE_FRACTION = "self_value_fraction"    # self value * effect_value
    NEIGHBOR_PERCENT = "neighbor_percent"          # target value * effect_value
    CONTEXT_USED_COUNT = "context_used_count"      # used dice * effect_value
    PLAYER_STAT = "player_stat"                    # player stat * effect_value
    EQUIPPED_ITEM_COUNT = "equipped_item_count"    # filled slots * effect_value
    EQUIPMENT_RARITY_SUM = "equipment_rarity_sum"  # rarity ranks * effect_value


def resolve_base_value(
    source: Any,
    context: EvaluationContext,
    self_ref: Any = None,
    target_ref: Any = None,
) -> float:
    """
    Compute the ungated magnitude of an affix or sub-effect.

    Args:
        source: Object with value_source, effect_value and source_stat.
        context: Evaluation context.
        self_ref: Entity owning the affix.
        target_ref: Entity receiving the effect (for target-relative sources).

    Returns:
        The magnitude (0.0 when it cannot be resolved).
    """
    value_source = source.value_source
    effect_value = float(source.effect_value)

    if value_source == ValueSource.STATIC:
        return effect_value

    if value_source in (ValueSource.SELF_VALUE, ValueSource.SELF_VALUE_FRACTION):
        self_value = resolve_self_value(self_ref, context)
        if self_value is None:
            logger.debug("%s without a self value; resolving to 0", value_source.name)
            return 0.0
        if value_source == ValueSource.SELF_VALUE:
            return self_value
        return self_value * effect_value

    if value_source == ValueSource.NEIGHBOR_PERCENT:
        target_value = resolve_self_value(target_ref, context)
        if target_value is None:
            logger.debug("NEIGHBOR_PERCENT without a target; resolving to 0")
            return 0.0
        return target_value * effect_value

    if value_source == ValueSource.CONTEXT_USED_COUNT:
        return context.used_count * effect_value

    if value_source == ValueSource.PLAYER_STAT:
        stat_name = getattr(source, "source_stat", "")
        stat_value = context.player.get_stat(stat_name) if stat_name else None
        if stat_value is None:
            logger.debug("Unresolvable stat %r for PLAYER_STAT; resolving to 0", stat_name)
            return 0.0
        return stat_value * effect_value

    if value_source == ValueSource.EQUIPPED_ITEM_COUNT:
        return context.filled_slot_count() * effect_value

    if value_source == ValueSource.EQUIPMENT_RARITY_SUM:
        return context.equipment_rarity_sum() * effect_value

    logger.debug("Unhandled value source %s; resolving to 0", value_source)
    return 0.0


def resolve_value(
    source: Any,
    context: EvaluationContext,
    self_ref: Any = None,
    target_ref: Any = None,
    condition_result: Optional[ConditionResult] = None,
    related: Optional[Sequence[Any]] = None,
) -> float:
    """
    Resolve the gated magnitude of an affix or sub-effect.

    If condition_result is not given, the source's own condition (if any)
    is evaluated against self_ref.

    Returns:
        0.0 when blocked, otherwise base value * condition multiplier.
    """
    if condition_result is None:
        condition_result = evaluate_condition(
            getattr(source, "condition", None), context, self_ref, related
        )
    if condition_result.blocked:
        return 0.0
    return resolve_base_value(source, context, self_ref, target_ref) * condition_result.multiplier
