"""
Effects - Declarative deltas produced by rules.

A rule never mutates state. It returns effects naming exactly which
document and field should change; the persistence collaborator applies
the merged set atomically. The set of variants is closed:

- UpdateGameEffect     dotted-path updates on the game document
- UpdatePlayerEffect   dotted-path updates on one game player
- UpdateHandEffect     replacement hand for one player
- SetWinnerEffect      winner id plus pre-fetched finalize data
- EmitEventsEffect     events for notification consumers

`source_rule` is stamped by the pipeline when a rule's effects are
collected, so conflicts can name both rules involved.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Union

from .cards import Card

if TYPE_CHECKING:
    from .state import Game, GamePlayer, UserStats


@dataclass(frozen=True)
class GameEvent:
    type: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FinalizeData:
    """Everything scoring needs, read inside the action's transaction."""
    game: Game
    player_hands: dict[str, list[Card]]
    game_players: dict[str, GamePlayer]
    user_stats: dict[str, UserStats]


@dataclass(frozen=True)
class UpdateGameEffect:
    updates: dict[str, Any]
    source_rule: str | None = None


@dataclass(frozen=True)
class UpdatePlayerEffect:
    player_id: str
    updates: dict[str, Any]
    source_rule: str | None = None


@dataclass(frozen=True)
class UpdateHandEffect:
    player_id: str
    hand: list[Card]
    source_rule: str | None = None


@dataclass(frozen=True)
class SetWinnerEffect:
    winner_id: str
    finalize_data: FinalizeData | None = None
    source_rule: str | None = None


@dataclass(frozen=True)
class EmitEventsEffect:
    events: list[GameEvent]
    source_rule: str | None = None


RuleEffect = Union[
    UpdateGameEffect,
    UpdatePlayerEffect,
    UpdateHandEffect,
    SetWinnerEffect,
    EmitEventsEffect,
]

EFFECT_TYPES = (
    UpdateGameEffect,
    UpdatePlayerEffect,
    UpdateHandEffect,
    SetWinnerEffect,
    EmitEventsEffect,
)


def tag_effect(effect: RuleEffect, rule_name: str) -> RuleEffect:
    """Copy of the effect attributed to the rule that produced it."""
    return replace(effect, source_rule=rule_name)


def emit(event_type: str, **payload: Any) -> EmitEventsEffect:
    """Shorthand for a single-event effect."""
    return EmitEventsEffect(events=[GameEvent(type=event_type, payload=payload)])
