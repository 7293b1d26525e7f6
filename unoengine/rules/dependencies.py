"""
Rule Dependencies - Declared context requirements of rules.

A rule may list RuleContext attributes it needs beyond the defaults
(for example `player_hands`, which is expensive to load). The
orchestrator loads an attribute only when a handling rule declares it,
and the pipeline refuses to run a rule whose dependencies are missing.
"""

from __future__ import annotations
from dataclasses import fields
from typing import TYPE_CHECKING, Iterable

from ..engine_core.errors import UnoError
from .types import BaseRule, RuleContext

if TYPE_CHECKING:
    from .pipeline import RulePipeline

KNOWN_DEPENDENCIES = frozenset(f.name for f in fields(RuleContext))


def missing_dependencies(rule: BaseRule, ctx: RuleContext) -> list[str]:
    return [name for name in rule.dependencies if getattr(ctx, name, None) is None]


def validate_dependencies(rule: BaseRule, ctx: RuleContext):
    """
    Raise an internal error when a rule's declared dependencies are absent.

    Unknown dependency names are a wiring bug and fail the same way.
    """
    unknown = [name for name in rule.dependencies if name not in KNOWN_DEPENDENCIES]
    if unknown:
        raise UnoError.internal(
            f"Rule {rule.name!r} declares unknown dependencies: {', '.join(unknown)}",
            rule=rule.name,
            dependencies=unknown,
        )

    missing = missing_dependencies(rule, ctx)
    if missing:
        raise UnoError.internal(
            f"Rule {rule.name!r} requires {', '.join(missing)} in its context",
            rule=rule.name,
            dependencies=missing,
            game_id=ctx.game_id,
        )


def requires_dependency(rules: Iterable[BaseRule], ctx: RuleContext, name: str) -> bool:
    """Whether any rule that handles the context declares the dependency."""
    return any(name in rule.dependencies for rule in rules if rule.can_handle(ctx))


def dependency_report(pipeline: RulePipeline) -> str:
    """Human-readable listing of every rule, its phase and dependencies."""
    lines = []
    for phase, rules in pipeline.phases():
        lines.append(f"[{phase.value}]")
        if not rules:
            lines.append("  (no rules)")
        for rule in rules:
            handles = ", ".join(sorted(action.value for action in rule.handles)) or "-"
            deps = ", ".join(rule.dependencies) or "none"
            lines.append(f"  {rule.name:<28} handles: {handles:<18} needs: {deps}")
    return "\n".join(lines)
