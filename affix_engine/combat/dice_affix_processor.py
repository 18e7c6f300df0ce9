"""Dice Affix Processor.

Applies dice affixes to a hand at a trigger point. Each affix evaluates
its condition once against its source die, resolves its targets from the
full, still-indexed hand, then applies the primary effect and each
sub-effect in declaration order. Numeric, tag and element effects change
dice in place; heal, destroy, element randomization and combat modifier
effects are returned as SpecialEffect payloads.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from ..core.affix import Affix, AffixTrigger, SubEffect, TargetSelector
from ..core.conditions import ConditionResult, evaluate_condition
from ..core.context import EvaluationContext
from ..core.effects import (
    CombatModifierData,
    EffectType,
    ElementData,
    LeechHealData,
    ModifierTargetFilter,
    RandomizeElementData,
    SpecialEffect,
    SpecialEffectType,
    TagData,
)
from ..core.value_sources import resolve_value
from .combat_modifier import CombatModifier
from .dice import Die

logger = logging.getLogger(__name__)

EffectSource = Union[Affix, SubEffect]


@dataclass
class TriggerResult:
    """Outcome of dispatching a trigger."""
    special_effects: list[SpecialEffect] = field(default_factory=list)
    fired_affixes: list[str] = field(default_factory=list)
    value_changes: dict[int, int] = field(default_factory=dict)  # slot -> net delta

    def extend(self, other: "TriggerResult") -> None:
        self.special_effects.extend(other.special_effects)
        self.fired_affixes.extend(other.fired_affixes)
        for slot, delta in other.value_changes.items():
            self.record_change(slot, delta)

    def record_change(self, slot_index: int, delta: int) -> None:
        if delta:
            self.value_changes[slot_index] = self.value_changes.get(slot_index, 0) + delta

    @property
    def combat_modifiers(self) -> list[CombatModifier]:
        return [
            e.data["modifier"] for e in self.special_effects
            if e.type == SpecialEffectType.CREATE_COMBAT_MODIFIER
        ]

    def get_effects(self, effect_type: SpecialEffectType) -> list[SpecialEffect]:
        return [e for e in self.special_effects if e.type == effect_type]


class DiceAffixProcessor:
    """
    Dispatches dice affixes against a hand.

    Usage:
        processor = DiceAffixProcessor()
        result = processor.process_trigger(hand.dice, AffixTrigger.ON_ROLL, context)
    """

    def process_trigger(
        self,
        hand: Sequence[Die],
        trigger: AffixTrigger,
        context: EvaluationContext,
        source: Optional[Die] = None,
    ) -> TriggerResult:
        """
        Fire every affix with a trigger.

        Args:
            hand: Full hand in slot order (consumed dice included).
            trigger: Trigger point.
            context: Evaluation context.
            source: Only fire this die's affixes (used for ON_USE).

        Returns:
            TriggerResult with special effects and value changes.
        """
        result = TriggerResult()
        sources = [source] if source is not None else [d for d in hand if not d.is_consumed]
        for die in sources:
            for affix in die.get_affixes(trigger):
                self.apply_affix(affix, die, hand, context, result)
        return result

    def resolve_targets(
        self,
        selector: TargetSelector,
        source: Die,
        hand: Sequence[Die],
    ) -> list[Die]:
        """
        Dice receiving an effect.

        Neighbors are found by slot index; positions outside the hand and
        consumed dice resolve to nothing. SELF always returns the source.
        """
        if selector == TargetSelector.SELF:
            return [source]

        by_slot = {die.slot_index: die for die in hand}
        if selector in (TargetSelector.LEFT, TargetSelector.RIGHT, TargetSelector.NEIGHBORS):
            offsets = {
                TargetSelector.LEFT: (-1,),
                TargetSelector.RIGHT: (1,),
                TargetSelector.NEIGHBORS: (-1, 1),
            }[selector]
            targets = []
            for offset in offsets:
                neighbor = by_slot.get(source.slot_index + offset)
                if neighbor is None:
                    logger.debug("No %s neighbor for slot %d", selector.name, source.slot_index)
                elif not neighbor.is_consumed:
                    targets.append(neighbor)
            return targets

        if selector == TargetSelector.ALL:
            return [d for d in hand if not d.is_consumed]
        if selector == TargetSelector.ALL_EXCEPT_SOURCE:
            return [d for d in hand if not d.is_consumed and d is not source]
        return []

    def apply_affix(
        self,
        affix: Affix,
        source: Die,
        hand: Sequence[Die],
        context: EvaluationContext,
        result: Optional[TriggerResult] = None,
    ) -> TriggerResult:
        """Apply one affix (primary effect, then sub-effects in order)."""
        if result is None:
            result = TriggerResult()

        condition = evaluate_condition(affix.condition, context, source, hand, source.slot_index)
        targets = self.resolve_targets(affix.target_selector, source, hand)

        fired = False
        if not condition.blocked:
            self._apply_effect(affix, affix.name, condition, source, targets, context, result)
            fired = True

        for sub_effect in affix.sub_effects:
            if sub_effect.override_condition is not None:
                sub_condition = sub_effect.override_condition.evaluate(
                    context, source, hand, source.slot_index
                )
            else:
                sub_condition = condition
            if sub_condition.blocked:
                continue

            sub_targets = (
                self.resolve_targets(sub_effect.override_target, source, hand)
                if sub_effect.override_target is not None else targets
            )
            self._apply_effect(sub_effect, affix.name, sub_condition, source, sub_targets, context, result)
            fired = True

        if fired:
            result.fired_affixes.append(affix.name)
        return result

    def _apply_effect(
        self,
        effect: EffectSource,
        name: str,
        condition: ConditionResult,
        source: Die,
        targets: list[Die],
        context: EvaluationContext,
        result: TriggerResult,
    ) -> None:
        effect_type = effect.effect_type
        data = effect.effect_data

        if effect_type == EffectType.LEECH_HEAL:
            if not isinstance(data, LeechHealData):
                logger.debug("%s: LEECH_HEAL without percent; skipped", name)
                return
            result.special_effects.append(SpecialEffect(
                type=SpecialEffectType.LEECH_HEAL,
                source_slot=source.slot_index,
                target_slot=source.slot_index,
                source_name=name,
                data={"percent": data.percent},
            ))
            return

        if effect_type == EffectType.DESTROY_SELF:
            result.special_effects.append(SpecialEffect(
                type=SpecialEffectType.DESTROY_FROM_POOL,
                source_slot=source.slot_index,
                target_slot=source.slot_index,
                source_name=name,
            ))
            return

        if effect_type == EffectType.CREATE_COMBAT_MODIFIER:
            template = data if isinstance(data, CombatModifierData) else CombatModifierData()
            # SINGLE modifiers bind to each resolved target; the others are hand-wide
            if template.target_filter == ModifierTargetFilter.SINGLE:
                bindings = [(target, target.slot_index) for target in targets]
            else:
                bindings = [(None, None)]
            for target, target_slot in bindings:
                value = resolve_value(effect, context, source, target, condition_result=condition)
                modifier = CombatModifier(
                    mod_type=template.mod_type,
                    value=value,
                    duration=template.duration,
                    turns_remaining=template.turns,
                    target_filter=template.target_filter,
                    source_slot_index=source.slot_index,
                    source_name=name,
                    target_slot_index=target_slot,
                )
                result.special_effects.append(SpecialEffect(
                    type=SpecialEffectType.CREATE_COMBAT_MODIFIER,
                    source_slot=source.slot_index,
                    target_slot=target_slot,
                    source_name=name,
                    data={"modifier": modifier},
                ))
            return

        for target in targets:
            if effect_type == EffectType.FLAT_BONUS:
                value = resolve_value(effect, context, source, target, condition_result=condition)
                result.record_change(target.slot_index, target.add_value(value))

            elif effect_type == EffectType.SET_MINIMUM:
                minimum = int(resolve_value(effect, context, source, target, condition_result=condition))
                if target.modified_value < minimum:
                    before = target.modified_value
                    target.set_modified_value(minimum)
                    result.record_change(target.slot_index, minimum - before)

            elif effect_type in (EffectType.ADD_TAG, EffectType.REMOVE_TAG):
                if not isinstance(data, TagData):
                    logger.debug("%s: %s without tag; skipped", name, effect_type.name)
                    return
                if effect_type == EffectType.ADD_TAG:
                    target.add_tag(data.tag)
                else:
                    target.remove_tag(data.tag)

            elif effect_type == EffectType.SET_ELEMENT:
                if not isinstance(data, ElementData):
                    logger.debug("%s: SET_ELEMENT without element; skipped", name)
                    return
                target.element = data.element

            elif effect_type == EffectType.RANDOMIZE_ELEMENT:
                pool = data if isinstance(data, RandomizeElementData) else RandomizeElementData()
                result.special_effects.append(SpecialEffect(
                    type=SpecialEffectType.RANDOMIZE_ELEMENT,
                    source_slot=source.slot_index,
                    target_slot=target.slot_index,
                    source_name=name,
                    data={"elements": list(pool.elements)},
                ))

            else:
                logger.debug("%s: %s has no effect on dice", name, effect_type.name)
                return


def process_trigger(
    hand: Sequence[Die],
    trigger: AffixTrigger,
    context: EvaluationContext,
    source: Optional[Die] = None,
) -> TriggerResult:
    """Fire a trigger over a hand with a default processor."""
    return DiceAffixProcessor().process_trigger(hand, trigger, context, source)
