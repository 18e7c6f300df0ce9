"""Affix Pool and Evaluator.

The pool holds the affixes currently in effect for a holder, grouped by
category and remembered by source (an item id, "run", ...). The evaluator
aggregates them against a context: sums, products, full stat resolution,
granted actions, tag queries and compound-affix expansion.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from .affix import Affix, AffixCategory, SubEffect, TargetSelector
from .conditions import ConditionResult, evaluate_condition
from .context import EquippedItem, EvaluationContext
from .effects import EffectData, EffectType
from .value_sources import resolve_value

logger = logging.getLogger(__name__)


class AffixPool:
    """
    Collection of active affixes.

    Usage:
        pool = AffixPool()
        pool.register_item(sword)
        AffixEvaluator().resolve_stat(pool, "strength", 10.0, context)
    """

    def __init__(self):
        """Initialize an empty pool."""
        self._by_category: dict[AffixCategory, list[Affix]] = {}
        self._by_source: dict[str, list[Affix]] = {}

    def __len__(self) -> int:
        return sum(len(affixes) for affixes in self._by_category.values())

    def __iter__(self) -> Iterator[Affix]:
        for affixes in self._by_category.values():
            yield from affixes

    def __contains__(self, affix: object) -> bool:
        return any(a is affix for a in self)

    # =========================================================================
    # MEMBERSHIP
    # =========================================================================

    def add_affix(self, affix: Affix, source: Optional[str] = None) -> Affix:
        """
        Add an affix instance to the pool.

        Args:
            affix: Affix to add (stored as-is, not copied).
            source: Optional owner key for bulk removal.

        Returns:
            The added affix.
        """
        self._by_category.setdefault(affix.category, []).append(affix)
        if source is not None:
            self._by_source.setdefault(source, []).append(affix)
        return affix

    def remove_affix(self, affix: Affix) -> bool:
        """Remove one affix instance. Returns True if it was present."""
        affixes = self._by_category.get(affix.category, [])
        for i, existing in enumerate(affixes):
            if existing is affix:
                del affixes[i]
                for owned in self._by_source.values():
                    owned[:] = [a for a in owned if a is not affix]
                return True
        return False

    def remove_source(self, source: str) -> int:
        """Remove every affix added under a source. Returns how many."""
        owned = self._by_source.pop(source, [])
        for affix in owned:
            affixes = self._by_category.get(affix.category, [])
            affixes[:] = [a for a in affixes if a is not affix]
        return len(owned)

    def register_item(self, item: EquippedItem) -> list[Affix]:
        """Add copies of an equipped item's affixes, owned by the item id."""
        granted = [self.add_affix(affix.duplicate(), source=item.id) for affix in item.affixes]
        logger.debug("Registered %d affixes from %s", len(granted), item.id)
        return granted

    def unregister_item(self, item: EquippedItem) -> int:
        """Remove the affixes an item granted."""
        removed = self.remove_source(item.id)
        logger.debug("Unregistered %d affixes from %s", removed, item.id)
        return removed

    def clear(self) -> None:
        self._by_category.clear()
        self._by_source.clear()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_affixes(self, category: Optional[AffixCategory] = None) -> list[Affix]:
        """All affixes, or those in one category."""
        if category is None:
            return list(self)
        return list(self._by_category.get(category, []))

    def get_affixes_for_stat(self, category: AffixCategory, stat_name: str) -> list[Affix]:
        return [a for a in self._by_category.get(category, []) if a.stat_name == stat_name]

    def get_affixes_with_tag(self, tag: str) -> list[Affix]:
        return [a for a in self if a.has_tag(tag)]

    def get_affixes_from_source(self, source: str) -> list[Affix]:
        return list(self._by_source.get(source, []))


@dataclass
class CompoundEffectResult:
    """One fired effect of a compound affix."""
    effect_type: EffectType
    value: float
    effect_data: EffectData
    target: TargetSelector
    sub_effect_index: Optional[int] = None  # None for the parent effect

    @property
    def is_parent(self) -> bool:
        return self.sub_effect_index is None


@dataclass
class _Resolved:
    affix: Affix
    condition: ConditionResult = field(default_factory=ConditionResult)
    value: float = 0.0


class AffixEvaluator:
    """
    Aggregates pool affixes against a context.

    Blocked affixes contribute nothing: they are left out of sums,
    products, tag queries and granted actions.
    """

    def evaluate_affix_condition(
        self,
        affix: Affix,
        context: EvaluationContext,
        self_ref: Any = None,
    ) -> ConditionResult:
        return evaluate_condition(affix.condition, context, _default_self(affix, self_ref))

    def resolve_affix_value(
        self,
        affix: Affix,
        context: EvaluationContext,
        self_ref: Any = None,
    ) -> float:
        """Gated value of a single affix (0.0 when blocked)."""
        self_ref = _default_self(affix, self_ref)
        return resolve_value(affix, context, self_ref=self_ref)

    def _resolve_all(self, affixes: list[Affix], context: EvaluationContext) -> list[_Resolved]:
        resolved = []
        for affix in affixes:
            condition = self.evaluate_affix_condition(affix, context)
            if condition.blocked:
                continue
            value = resolve_value(
                affix, context, self_ref=_default_self(affix, None), condition_result=condition
            )
            resolved.append(_Resolved(affix, condition, value))
        return resolved

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def resolve_category_sum(
        self,
        pool: AffixPool,
        category: AffixCategory,
        context: EvaluationContext,
        stat_name: Optional[str] = None,
    ) -> float:
        """Sum of resolved values of non-blocked affixes in a category."""
        affixes = (
            pool.get_affixes_for_stat(category, stat_name)
            if stat_name is not None else pool.get_affixes(category)
        )
        return sum(r.value for r in self._resolve_all(affixes, context))

    def resolve_category_product(
        self,
        pool: AffixPool,
        category: AffixCategory,
        context: EvaluationContext,
        stat_name: Optional[str] = None,
    ) -> float:
        """Product of resolved values of non-blocked affixes (1.0 if none)."""
        affixes = (
            pool.get_affixes_for_stat(category, stat_name)
            if stat_name is not None else pool.get_affixes(category)
        )
        product = 1.0
        for r in self._resolve_all(affixes, context):
            product *= r.value
        return product

    def resolve_stat(
        self,
        pool: AffixPool,
        stat_name: str,
        base: float,
        context: EvaluationContext,
    ) -> float:
        """
        Final value of a stat.

        Additive terms always combine before multiplicative ones:
        (base + sum(STAT_FLAT)) * product(STAT_MULTIPLIER).
        """
        additive = self.resolve_category_sum(pool, AffixCategory.STAT_FLAT, context, stat_name)
        multiplier = self.resolve_category_product(
            pool, AffixCategory.STAT_MULTIPLIER, context, stat_name
        )
        return (base + additive) * multiplier

    def resolve_granted_actions(self, pool: AffixPool, context: EvaluationContext) -> list[Affix]:
        """Action-granting affixes whose condition does not block."""
        return [r.affix for r in self._resolve_all(pool.get_affixes(AffixCategory.GRANTED_ACTION), context)]

    def get_granted_action_ids(self, pool: AffixPool, context: EvaluationContext) -> list[str]:
        return [
            a.granted_action_id for a in self.resolve_granted_actions(pool, context)
            if a.granted_action_id
        ]

    # =========================================================================
    # TAG QUERIES
    # =========================================================================

    def sum_values_by_tag(self, pool: AffixPool, tag: str, context: EvaluationContext) -> float:
        """Sum of resolved values of non-blocked affixes carrying a tag."""
        return sum(r.value for r in self._resolve_all(pool.get_affixes_with_tag(tag), context))

    def count_affixes_with_tag(self, pool: AffixPool, tag: str, context: EvaluationContext) -> int:
        """Number of non-blocked affixes carrying a tag."""
        return len(self._resolve_all(pool.get_affixes_with_tag(tag), context))

    def has_affix_with_tag(self, pool: AffixPool, tag: str, context: EvaluationContext) -> bool:
        return self.count_affixes_with_tag(pool, tag, context) > 0

    # =========================================================================
    # COMPOUND AFFIXES
    # =========================================================================

    def resolve_compound_affix(
        self,
        affix: Affix,
        context: EvaluationContext,
        self_ref: Any = None,
    ) -> list[CompoundEffectResult]:
        """
        Expand an affix into the effects that fire, in source order.

        The parent effect comes first when its condition passes; each
        sub-effect follows only if it fires. A sub-effect with an
        override condition is gated by that alone.
        """
        self_ref = _default_self(affix, self_ref)
        parent_condition = evaluate_condition(affix.condition, context, self_ref)
        results = []

        if not parent_condition.blocked:
            results.append(CompoundEffectResult(
                effect_type=affix.effect_type,
                value=resolve_value(affix, context, self_ref, condition_result=parent_condition),
                effect_data=affix.effect_data,
                target=affix.target_selector,
            ))

        for index, sub_effect in enumerate(affix.sub_effects):
            condition = self._sub_effect_condition(sub_effect, parent_condition, context, self_ref)
            if condition.blocked:
                continue
            results.append(CompoundEffectResult(
                effect_type=sub_effect.effect_type,
                value=resolve_value(sub_effect, context, self_ref, condition_result=condition),
                effect_data=sub_effect.effect_data,
                target=sub_effect.override_target or affix.target_selector,
                sub_effect_index=index,
            ))
        return results

    @staticmethod
    def _sub_effect_condition(
        sub_effect: SubEffect,
        parent_condition: ConditionResult,
        context: EvaluationContext,
        self_ref: Any,
    ) -> ConditionResult:
        if sub_effect.override_condition is None:
            return parent_condition
        return sub_effect.override_condition.evaluate(context, self_ref)


def _default_self(affix: Affix, self_ref: Any) -> Any:
    """Stat affixes evaluate "self" as their stat when no entity is given."""
    if self_ref is not None:
        return self_ref
    return affix.stat_name or None
