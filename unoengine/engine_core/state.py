"""
Game State - Typed projections of the stored game documents.

Design principles:
- Read-only inside the engine: rules never mutate these objects,
  they return effects instead
- Serializable: every type round-trips through its document form
  (camelCase keys, cards as {kind, color, value} dicts)
- Documents are the persistence collaborator's business; the engine
  only sees these snapshots
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card, Color, Direction, HouseRule, cards_from_dicts, cards_to_dicts
from .errors import ErrorCode, UnoError

DEFAULT_MAX_PLAYERS = 4
HAND_SIZE = 7


class GameStatus(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class PlayerStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    WINNER = "winner"
    FORFEITED = "forfeited"


@dataclass
class GameConfig:
    is_private: bool = False
    max_players: int = DEFAULT_MAX_PLAYERS
    house_rules: list[HouseRule] = field(default_factory=list)

    def has_rule(self, rule: HouseRule) -> bool:
        return rule in self.house_rules

    def to_document(self) -> dict[str, Any]:
        return {
            "isPrivate": self.is_private,
            "maxPlayers": self.max_players,
            "houseRules": [rule.value for rule in self.house_rules],
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> GameConfig:
        try:
            house_rules = [HouseRule(rule) for rule in data.get("houseRules", [])]
        except ValueError as e:
            raise UnoError.validation(ErrorCode.INVALID_REQUEST, str(e)) from e
        max_players = data.get("maxPlayers", DEFAULT_MAX_PLAYERS)
        if not 2 <= max_players <= 10:
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST,
                "maxPlayers must be between 2 and 10",
                maxPlayers=max_players,
            )
        return cls(
            is_private=data.get("isPrivate", False),
            max_players=max_players,
            house_rules=house_rules,
        )


@dataclass
class GameState:
    """
    Mutable part of a game.

    `discard_pile[-1]` is the top card. `current_color` only matters
    while the top card is wild. `must_draw` is the penalty owed by the
    current player.
    """
    status: GameStatus = GameStatus.WAITING
    current_turn_player_id: str | None = None
    direction: Direction = Direction.CLOCKWISE
    deck_seed: str = ""
    draw_pile_count: int = 108
    discard_pile: list[Card] = field(default_factory=list)
    current_color: Color | None = None
    must_draw: int = 0

    def __post_init__(self):
        if self.must_draw < 0:
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST, "mustDraw cannot be negative", mustDraw=self.must_draw
            )

    @property
    def top_card(self) -> Card | None:
        return self.discard_pile[-1] if self.discard_pile else None

    def to_document(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "currentTurnPlayerId": self.current_turn_player_id,
            "direction": self.direction.value,
            "deckSeed": self.deck_seed,
            "drawPileCount": self.draw_pile_count,
            "discardPile": cards_to_dicts(self.discard_pile),
            "currentColor": self.current_color.value if self.current_color else None,
            "mustDraw": self.must_draw,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> GameState:
        current_color = data.get("currentColor")
        return cls(
            status=GameStatus(data["status"]),
            current_turn_player_id=data.get("currentTurnPlayerId"),
            direction=Direction(data.get("direction", Direction.CLOCKWISE.value)),
            deck_seed=data.get("deckSeed", ""),
            draw_pile_count=data.get("drawPileCount", 0),
            discard_pile=cards_from_dicts(data.get("discardPile", [])),
            current_color=Color(current_color) if current_color else None,
            must_draw=data.get("mustDraw", 0),
        )


@dataclass
class Game:
    """A game document: config, seat order and state."""
    game_id: str
    created_at: str
    last_activity_at: str
    config: GameConfig = field(default_factory=GameConfig)
    players: list[str] = field(default_factory=list)
    state: GameState = field(default_factory=GameState)
    started_at: str | None = None
    final_scores: dict[str, Any] | None = None

    @property
    def house_rules(self) -> list[HouseRule]:
        return self.config.house_rules

    def seat_of(self, player_id: str) -> int:
        """Seat index of a player, -1 when not seated."""
        try:
            return self.players.index(player_id)
        except ValueError:
            return -1

    def to_document(self) -> dict[str, Any]:
        return {
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "lastActivityAt": self.last_activity_at,
            "config": self.config.to_document(),
            "players": list(self.players),
            "state": self.state.to_document(),
            "finalScores": self.final_scores,
        }

    @classmethod
    def from_document(cls, game_id: str, data: dict[str, Any]) -> Game:
        return cls(
            game_id=game_id,
            created_at=data["createdAt"],
            last_activity_at=data.get("lastActivityAt", data["createdAt"]),
            started_at=data.get("startedAt"),
            config=GameConfig.from_document(data.get("config", {})),
            players=list(data.get("players", [])),
            state=GameState.from_document(data["state"]),
            final_scores=data.get("finalScores"),
        )


@dataclass
class GameStats:
    """Per-game counters for one player."""
    cards_played: int = 0
    cards_drawn: int = 0
    turns_played: int = 0
    special_cards_played: int = 0

    def to_document(self) -> dict[str, Any]:
        return {
            "cardsPlayed": self.cards_played,
            "cardsDrawn": self.cards_drawn,
            "turnsPlayed": self.turns_played,
            "specialCardsPlayed": self.special_cards_played,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> GameStats:
        return cls(
            cards_played=data.get("cardsPlayed", 0),
            cards_drawn=data.get("cardsDrawn", 0),
            turns_played=data.get("turnsPlayed", 0),
            special_cards_played=data.get("specialCardsPlayed", 0),
        )


@dataclass
class GamePlayer:
    """Public per-player projection (visible to everyone in the game)."""
    player_id: str
    display_name: str
    joined_at: str
    card_count: int = 0
    status: PlayerStatus = PlayerStatus.WAITING
    has_called_uno: bool = False
    must_call_uno: bool = False
    last_action_at: str | None = None
    game_stats: GameStats = field(default_factory=GameStats)

    def to_document(self) -> dict[str, Any]:
        return {
            "userId": self.player_id,
            "displayName": self.display_name,
            "joinedAt": self.joined_at,
            "cardCount": self.card_count,
            "status": self.status.value,
            "hasCalledUno": self.has_called_uno,
            "mustCallUno": self.must_call_uno,
            "lastActionAt": self.last_action_at or self.joined_at,
            "gameStats": self.game_stats.to_document(),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> GamePlayer:
        return cls(
            player_id=data["userId"],
            display_name=data.get("displayName", data["userId"]),
            joined_at=data["joinedAt"],
            card_count=data.get("cardCount", 0),
            status=PlayerStatus(data.get("status", PlayerStatus.WAITING.value)),
            has_called_uno=data.get("hasCalledUno", False),
            must_call_uno=data.get("mustCallUno", False),
            last_action_at=data.get("lastActionAt"),
            game_stats=GameStats.from_document(data.get("gameStats", {})),
        )


@dataclass
class PlayerHand:
    """Private hand. List position is the addressing scheme for plays."""
    player_id: str
    cards: list[Card] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cards)

    def card_at(self, index: int) -> Card | None:
        if 0 <= index < len(self.cards):
            return self.cards[index]
        return None

    def without(self, index: int) -> list[Card]:
        """Hand with the card at `index` removed."""
        return [card for i, card in enumerate(self.cards) if i != index]

    def to_document(self) -> dict[str, Any]:
        return {"hand": cards_to_dicts(self.cards)}

    @classmethod
    def from_document(cls, player_id: str, data: dict[str, Any]) -> PlayerHand:
        return cls(player_id=player_id, cards=cards_from_dicts(data.get("hand", [])))


@dataclass
class UserStats:
    """
    Lifetime statistics for a user.

    Missing documents default to this zero baseline.
    `processed_games` makes end-of-game updates idempotent.
    """
    games_played: int = 0
    games_won: int = 0
    games_lost: int = 0
    total_score: int = 0
    highest_game_score: int = 0
    win_rate: float = 0.0
    cards_played: int = 0
    special_cards_played: int = 0
    processed_games: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return {
            "gamesPlayed": self.games_played,
            "gamesWon": self.games_won,
            "gamesLost": self.games_lost,
            "totalScore": self.total_score,
            "highestGameScore": self.highest_game_score,
            "winRate": self.win_rate,
            "cardsPlayed": self.cards_played,
            "specialCardsPlayed": self.special_cards_played,
            "processedGames": list(self.processed_games),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> UserStats:
        if not data:
            return cls()
        return cls(
            games_played=data.get("gamesPlayed", 0),
            games_won=data.get("gamesWon", 0),
            games_lost=data.get("gamesLost", 0),
            total_score=data.get("totalScore", 0),
            highest_game_score=data.get("highestGameScore", 0),
            win_rate=data.get("winRate", 0.0),
            cards_played=data.get("cardsPlayed", 0),
            special_cards_played=data.get("specialCardsPlayed", 0),
            processed_games=list(data.get("processedGames", [])),
        )
