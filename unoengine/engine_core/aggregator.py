"""
Effect Aggregator - Merge effects from independent rules.

Several rules may react to the same action (the discard-pile rule and
the card-effect rule both write game state). Rules stay unaware of each
other; their effects are merged here per target:

- game updates merge per dotted path
- player updates merge per (player, dotted path)
- hand updates merge per player

Identical values from several rules are accepted. Different values for
the same target raise RULE_CONFLICT naming both rules and the target.

Field names are also checked against the schema of updatable fields.
Unknown fields log a warning, or raise in strict mode.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable
import logging

from .cards import Card
from .effects import (
    EmitEventsEffect,
    GameEvent,
    RuleEffect,
    SetWinnerEffect,
    UpdateGameEffect,
    UpdateHandEffect,
    UpdatePlayerEffect,
)
from .errors import ErrorCode, UnoError

logger = logging.getLogger(__name__)

GAME_STATE_FIELDS = frozenset({
    "status",
    "currentTurnPlayerId",
    "direction",
    "mustDraw",
    "currentColor",
    "discardPile",
    "deckSeed",
    "drawPileCount",
})

GAME_CONFIG_FIELDS = frozenset({"isPrivate", "houseRules", "maxPlayers"})

GAME_TOP_LEVEL_FIELDS = frozenset({"lastActivityAt", "startedAt", "createdAt", "finalScores"})

PLAYER_FIELDS = frozenset({
    "cardCount",
    "status",
    "hasCalledUno",
    "mustCallUno",
    "lastActionAt",
    "gameStats.cardsPlayed",
    "gameStats.turnsPlayed",
    "gameStats.specialCardsPlayed",
    "gameStats.cardsDrawn",
})


def is_known_game_field(path: str) -> bool:
    if path.startswith("state."):
        return path[len("state."):] in GAME_STATE_FIELDS
    if path.startswith("config."):
        return path[len("config."):] in GAME_CONFIG_FIELDS
    return path in GAME_TOP_LEVEL_FIELDS


def is_known_player_field(path: str) -> bool:
    return path in PLAYER_FIELDS


def _report_unknown(kind: str, path: str, effect: RuleEffect, strict: bool):
    message = f"Unknown {kind} field: {path!r}"
    if strict:
        raise UnoError.internal(message, field=path, rule=effect.source_rule)
    logger.warning("%s (rule %s)", message, effect.source_rule)


def validate_effect(effect: RuleEffect, strict: bool = False):
    """
    Check an effect's target field names against the updatable schema.

    In strict mode (test/CI) unknown fields raise; otherwise they warn.
    """
    if isinstance(effect, UpdateGameEffect):
        for path in effect.updates:
            if not is_known_game_field(path):
                _report_unknown("game", path, effect, strict)
    elif isinstance(effect, UpdatePlayerEffect):
        for path in effect.updates:
            if not is_known_player_field(path):
                _report_unknown("player", path, effect, strict)


@dataclass
class AggregatedEffects:
    """Merged, conflict-free view of one phase's effects."""
    game_updates: dict[str, Any] = field(default_factory=dict)
    player_updates: dict[str, dict[str, Any]] = field(default_factory=dict)
    hand_updates: dict[str, list[Card]] = field(default_factory=dict)
    winner: SetWinnerEffect | None = None
    events: list[GameEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.game_updates
            or self.player_updates
            or self.hand_updates
            or self.winner
            or self.events
        )


class _Merger:
    """Tracks which rule wrote each target so conflicts can name both."""

    def __init__(self):
        self.result = AggregatedEffects()
        self._sources: dict[str, str | None] = {}

    def _claim(self, target: str, existing: Any, value: Any, source: str | None) -> bool:
        """Return True when the target is new; raise on a differing write."""
        if target not in self._sources:
            self._sources[target] = source
            return True
        if existing != value:
            first = self._sources[target]
            raise UnoError.rule_violation(
                ErrorCode.RULE_CONFLICT,
                f"Conflicting updates to {target} from rules "
                f"{first!r} and {source!r}",
                target=target,
                rules=[first, source],
            )
        return False

    def add_game(self, effect: UpdateGameEffect):
        updates = self.result.game_updates
        for path, value in effect.updates.items():
            if self._claim(f"game.{path}", updates.get(path), value, effect.source_rule):
                updates[path] = value

    def add_player(self, effect: UpdatePlayerEffect):
        updates = self.result.player_updates.setdefault(effect.player_id, {})
        for path, value in effect.updates.items():
            target = f"players[{effect.player_id}].{path}"
            if self._claim(target, updates.get(path), value, effect.source_rule):
                updates[path] = value

    def add_hand(self, effect: UpdateHandEffect):
        target = f"playerHands[{effect.player_id}]"
        hands = self.result.hand_updates
        if self._claim(target, hands.get(effect.player_id), list(effect.hand), effect.source_rule):
            hands[effect.player_id] = list(effect.hand)

    def add_winner(self, effect: SetWinnerEffect):
        current = self.result.winner
        if self._claim(
            "winner",
            current.winner_id if current else None,
            effect.winner_id,
            effect.source_rule,
        ):
            self.result.winner = effect

    def add_events(self, effect: EmitEventsEffect):
        self.result.events.extend(effect.events)


def detect_effect_conflicts(effects: Iterable[RuleEffect]) -> AggregatedEffects:
    """
    Merge effects per target, rejecting contradictory writes.

    Raises:
        UnoError(RULE_VIOLATION, RULE_CONFLICT) naming the target and
        both source rules.
    """
    merger = _Merger()
    handlers = {
        UpdateGameEffect: merger.add_game,
        UpdatePlayerEffect: merger.add_player,
        UpdateHandEffect: merger.add_hand,
        SetWinnerEffect: merger.add_winner,
        EmitEventsEffect: merger.add_events,
    }

    for effect in effects:
        handler = handlers.get(type(effect))
        if handler is None:
            raise UnoError.internal(f"Unknown effect type: {type(effect).__name__}")
        handler(effect)

    return merger.result
