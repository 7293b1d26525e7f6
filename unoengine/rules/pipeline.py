"""
Rule Pipeline - Phase-keyed rule lists and their execution.

Execution contract:
1. pre-validate and validate: call validate() on every handling rule,
   in registration order. The first error aborts the action.
2. apply: call apply() on every handling rule and concatenate the
   effects and drawn cards in rule order.
3. finalize: await finalize() on every handling finalize rule, one at
   a time, in registration order.

Every rule call runs inside a boundary that lets UnoError through
unchanged and wraps anything else into an internal UnoError carrying
rule, phase, game, player and timestamp.

A pipeline is an immutable value built by a factory function; there is
no global registry.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Sequence, TypeVar
import logging

from ..engine_core.aggregator import validate_effect
from ..engine_core.effects import tag_effect
from ..engine_core.errors import ErrorCode, UnoError
from .dependencies import validate_dependencies
from .draw import DrawActionApply
from .finalize import FinalizeGame
from .pass_turn import PassActionApply
from .play import ApplyCardEffect, UpdateDiscardPile, UpdatePlayerHand, UpdatePlayerStats
from .types import BaseRule, FinalizeRule, Rule, RuleContext, RulePhase, RuleResult
from .validation import (
    CardPlayableValidation,
    DrawActionValidation,
    PassActionValidation,
    TurnOwnershipValidation,
    WildColorValidation,
    WildDraw4Validation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RulePipeline:
    pre_validate: tuple[Rule, ...] = ()
    validate: tuple[Rule, ...] = ()
    apply: tuple[Rule, ...] = ()
    finalize: tuple[FinalizeRule, ...] = ()

    def rules_for(self, phase: RulePhase) -> tuple[BaseRule, ...]:
        return {
            RulePhase.PRE_VALIDATE: self.pre_validate,
            RulePhase.VALIDATE: self.validate,
            RulePhase.APPLY: self.apply,
            RulePhase.FINALIZE: self.finalize,
        }[phase]

    def phases(self) -> Iterator[tuple[RulePhase, tuple[BaseRule, ...]]]:
        for phase in RulePhase:
            yield phase, self.rules_for(phase)

    def all_rules(self) -> list[BaseRule]:
        return [rule for _, rules in self.phases() for rule in rules]

    def get_rule(self, name: str) -> BaseRule | None:
        for rule in self.all_rules():
            if rule.name == name:
                return rule
        return None

    def describe(self) -> dict[str, list[dict[str, Any]]]:
        return {phase.value: [rule.describe() for rule in rules] for phase, rules in self.phases()}


def create_rule_pipeline(
    pre_validate: Sequence[Rule] = (),
    validate: Sequence[Rule] = (),
    apply: Sequence[Rule] = (),
    finalize: Sequence[FinalizeRule] = (),
) -> RulePipeline:
    """
    Build a pipeline, checking each rule sits in its declared phase.

    Raises:
        UnoError(INTERNAL) on a misplaced rule or a duplicate rule name.
    """
    pipeline = RulePipeline(
        pre_validate=tuple(pre_validate),
        validate=tuple(validate),
        apply=tuple(apply),
        finalize=tuple(finalize),
    )

    seen: set[str] = set()
    for phase, rules in pipeline.phases():
        for rule in rules:
            if rule.phase is not phase:
                raise UnoError.internal(
                    f"Rule {rule.name!r} belongs to phase {rule.phase.value}, "
                    f"not {phase.value}",
                    rule=rule.name,
                )
            if rule.name in seen:
                raise UnoError.internal(f"Duplicate rule name {rule.name!r}", rule=rule.name)
            seen.add(rule.name)

    return pipeline


def create_default_rule_pipeline() -> RulePipeline:
    """The standard UNO rule set."""
    return create_rule_pipeline(
        pre_validate=[TurnOwnershipValidation()],
        validate=[
            CardPlayableValidation(),
            WildColorValidation(),
            WildDraw4Validation(),
            DrawActionValidation(),
            PassActionValidation(),
        ],
        apply=[
            UpdatePlayerHand(),
            UpdateDiscardPile(),
            ApplyCardEffect(),
            UpdatePlayerStats(),
            DrawActionApply(),
            PassActionApply(),
        ],
        finalize=[FinalizeGame()],
    )


def _internal_error(rule: BaseRule, phase: RulePhase, ctx: RuleContext, error: Exception) -> UnoError:
    logger.exception(
        "Rule %s failed in %s phase (game %s, player %s)",
        rule.name, phase.value, ctx.game_id, ctx.player_id,
    )
    return UnoError.internal(
        f"Rule {rule.name!r} failed during {phase.value}: {error}",
        code=ErrorCode.INTERNAL_ERROR,
        rule=rule.name,
        phase=phase.value,
        original_message=str(error),
        game_id=ctx.game_id,
        player_id=ctx.player_id,
        timestamp=ctx.now,
    )


def with_rule_error_handling(
    rule: BaseRule,
    phase: RulePhase,
    fn: Callable[[RuleContext], T],
    ctx: RuleContext,
) -> T:
    """Run one rule call, wrapping unexpected exceptions."""
    try:
        return fn(ctx)
    except UnoError:
        raise
    except Exception as e:
        raise _internal_error(rule, phase, ctx, e) from e


async def with_rule_error_handling_async(
    rule: BaseRule,
    phase: RulePhase,
    fn: Callable[[RuleContext], Awaitable[T]],
    ctx: RuleContext,
) -> T:
    """Async counterpart of with_rule_error_handling for finalize rules."""
    try:
        return await fn(ctx)
    except UnoError:
        raise
    except Exception as e:
        raise _internal_error(rule, phase, ctx, e) from e


def _handling(rules: Sequence[BaseRule], phase: RulePhase, ctx: RuleContext) -> list[BaseRule]:
    handling = [
        rule for rule in rules
        if with_rule_error_handling(rule, phase, rule.can_handle, ctx)
    ]
    if handling:
        logger.debug(
            "%s phase for %s: %s",
            phase.value, ctx.action_type.value, ", ".join(rule.name for rule in handling),
        )
    return handling


def _collect(rule: BaseRule, result: RuleResult, into: RuleResult, strict: bool):
    for effect in result.effects:
        tagged = tag_effect(effect, rule.name)
        validate_effect(tagged, strict=strict)
        into.effects.append(tagged)
    into.cards_drawn.extend(result.cards_drawn)


def validate_rule_phase(pipeline: RulePipeline, phase: RulePhase, ctx: RuleContext):
    """Run pre-validate or validate rules; the first UnoError aborts."""
    if phase not in (RulePhase.PRE_VALIDATE, RulePhase.VALIDATE):
        raise UnoError.internal(f"{phase.value} is not a validation phase")

    for rule in _handling(pipeline.rules_for(phase), phase, ctx):
        validate_dependencies(rule, ctx)
        with_rule_error_handling(rule, phase, rule.validate, ctx)


def run_validation(pipeline: RulePipeline, ctx: RuleContext):
    """Pre-validate then validate."""
    validate_rule_phase(pipeline, RulePhase.PRE_VALIDATE, ctx)
    validate_rule_phase(pipeline, RulePhase.VALIDATE, ctx)


def apply_rule_phase(pipeline: RulePipeline, ctx: RuleContext, strict: bool = False) -> RuleResult:
    """Concatenate effects and drawn cards from every handling apply rule."""
    combined = RuleResult()
    for rule in _handling(pipeline.apply, RulePhase.APPLY, ctx):
        validate_dependencies(rule, ctx)
        result = with_rule_error_handling(rule, RulePhase.APPLY, rule.apply, ctx)
        _collect(rule, result, combined, strict)
    return combined


async def apply_finalize_phase(
    pipeline: RulePipeline, ctx: RuleContext, strict: bool = False
) -> RuleResult:
    """Await each handling finalize rule in order."""
    combined = RuleResult()
    for rule in _handling(pipeline.finalize, RulePhase.FINALIZE, ctx):
        validate_dependencies(rule, ctx)
        result = await with_rule_error_handling_async(
            rule, RulePhase.FINALIZE, rule.finalize, ctx
        )
        _collect(rule, result, combined, strict)
    return combined
