"""
Rule Types - Context, results and the rule contracts.

A Rule is a small object with three capabilities:
- can_handle(ctx): does this rule react to the action?
- validate(ctx): raise UnoError to reject the action, never mutate
- apply(ctx): return effects (declarative deltas)

Finalize rules are a distinct contract: an async finalize(ctx) that may
read more documents through the transaction before returning effects.
Keeping it separate leaves validate/apply testable without an event loop.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar

from ..engine_core.action import ActionType, GameAction, PlayCardAction
from ..engine_core.cards import Card
from ..engine_core.deck import DeckCache, generate_deck_seed
from ..engine_core.effects import RuleEffect
from ..engine_core.state import Game, GamePlayer, PlayerHand

if TYPE_CHECKING:
    from ..service.store import Transaction


class RulePhase(str, Enum):
    PRE_VALIDATE = "pre-validate"
    VALIDATE = "validate"
    APPLY = "apply"
    FINALIZE = "finalize"


RULE_PIPELINE_PHASES = (
    RulePhase.PRE_VALIDATE,
    RulePhase.VALIDATE,
    RulePhase.APPLY,
    RulePhase.FINALIZE,
)


@dataclass(frozen=True)
class RuleContext:
    """
    Read-only bundle for one action invocation.

    Built once per action and never mutated. `player_hands` is only
    populated when a handling rule declares it as a dependency.
    """
    game_id: str
    player_id: str
    action: GameAction
    game: Game
    player: GamePlayer
    player_hand: PlayerHand
    now: str
    player_hands: dict[str, PlayerHand] | None = None
    transaction: Transaction | None = None
    deck_cache: DeckCache = field(default_factory=DeckCache)
    seed_factory: Callable[[], str] = generate_deck_seed

    @property
    def action_type(self) -> ActionType:
        return self.action.action_type

    @property
    def played_card(self) -> Card | None:
        """Card addressed by a play action, None when the index is invalid."""
        if not isinstance(self.action, PlayCardAction):
            return None
        return self.player_hand.card_at(self.action.card_index)

    @property
    def hand_size_after_play(self) -> int:
        return len(self.player_hand) - 1


@dataclass
class RuleResult:
    effects: list[RuleEffect] = field(default_factory=list)
    cards_drawn: list[Card] = field(default_factory=list)


class BaseRule(ABC):
    """Shared identity for every rule: name, phase, handled actions."""

    name: ClassVar[str] = ""
    phase: ClassVar[RulePhase]
    handles: ClassVar[frozenset[ActionType]] = frozenset()
    # RuleContext attributes that must be populated before the rule runs
    dependencies: ClassVar[tuple[str, ...]] = ()

    def can_handle(self, ctx: RuleContext) -> bool:
        return ctx.action_type in self.handles

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phase": self.phase.value,
            "handles": sorted(action.value for action in self.handles),
            "dependencies": list(self.dependencies),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Rule(BaseRule):
    """Synchronous rule for the pre-validate, validate and apply phases."""

    def validate(self, ctx: RuleContext):
        """Raise UnoError to reject the action. Default: accept."""

    def apply(self, ctx: RuleContext) -> RuleResult:
        """Compute effects. Default: none."""
        return RuleResult()


class FinalizeRule(BaseRule):
    """Asynchronous rule run after apply, awaited one at a time."""

    phase = RulePhase.FINALIZE

    @abstractmethod
    async def finalize(self, ctx: RuleContext) -> RuleResult:
        """Pre-fetch whatever is needed and return effects."""
