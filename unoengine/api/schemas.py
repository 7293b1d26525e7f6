"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
Field names are camelCase on the wire (aliases) to match the stored
documents; Python attributes stay snake_case.

Error responses carry the engine's ErrorCode values unchanged.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine_core.cards import Card, CardKind, Color, HouseRule
from ..engine_core.errors import ErrorCode
from ..engine_core.scoring import FinalScores
from ..engine_core.state import Game, GamePlayer
from ..service.game_service import ActionOutcome


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Shared Models
# =============================================================================

class CardModel(BaseModel):
    """A card on the wire. Wild cards have no color."""
    kind: CardKind
    value: int | str
    color: Optional[Color] = None

    @classmethod
    def from_card(cls, card: Card) -> "CardModel":
        return cls(kind=card.kind, value=card.value, color=card.color)


class GameStatsModel(CamelModel):
    cards_played: int = 0
    cards_drawn: int = 0
    turns_played: int = 0
    special_cards_played: int = 0


class PlayerModel(CamelModel):
    """Public player projection."""
    user_id: str
    display_name: str
    card_count: int = 0
    status: str
    has_called_uno: bool = False
    must_call_uno: bool = False
    game_stats: GameStatsModel = Field(default_factory=GameStatsModel)

    @classmethod
    def from_player(cls, player: GamePlayer) -> "PlayerModel":
        stats = player.game_stats
        return cls(
            user_id=player.player_id,
            display_name=player.display_name,
            card_count=player.card_count,
            status=player.status.value,
            has_called_uno=player.has_called_uno,
            must_call_uno=player.must_call_uno,
            game_stats=GameStatsModel(
                cards_played=stats.cards_played,
                cards_drawn=stats.cards_drawn,
                turns_played=stats.turns_played,
                special_cards_played=stats.special_cards_played,
            ),
        )


class PlayerScoreModel(CamelModel):
    player_id: str
    display_name: str
    score: int
    card_count: int
    rank: int


class FinalScoresModel(CamelModel):
    winner_id: str
    winner_score: int
    player_scores: list[PlayerScoreModel] = Field(default_factory=list)
    completed_at: Optional[str] = None

    @classmethod
    def from_scores(cls, scores: FinalScores) -> "FinalScoresModel":
        return cls.model_validate(scores.to_document())


class GameConfigModel(CamelModel):
    is_private: bool = False
    max_players: int = Field(4, ge=2, le=10)
    house_rules: list[HouseRule] = Field(default_factory=list)


class GameStateModel(CamelModel):
    status: str
    current_turn_player_id: Optional[str] = None
    direction: str
    draw_pile_count: int
    top_card: Optional[CardModel] = None
    discard_count: int = 0
    current_color: Optional[Color] = None
    must_draw: int = 0


class EventModel(BaseModel):
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(CamelModel):
    """Create a game hosted by the calling player."""
    display_name: Optional[str] = None
    config: GameConfigModel = Field(default_factory=GameConfigModel)


class JoinGameRequest(CamelModel):
    display_name: Optional[str] = None


class PlayCardRequest(CamelModel):
    card_index: int = Field(..., ge=0, description="Position of the card in the hand")
    chosen_color: Optional[Color] = Field(None, description="Required for wild cards")


class DrawCardRequest(CamelModel):
    count: int = Field(1, description="Number of cards to draw (ignored under a penalty)")


# =============================================================================
# Response Models
# =============================================================================

class GameResponse(CamelModel):
    """Public view of a game. The deck seed is never exposed."""
    game_id: str
    created_at: str
    started_at: Optional[str] = None
    last_activity_at: str
    config: GameConfigModel
    players: list[PlayerModel] = Field(default_factory=list)
    state: GameStateModel
    final_scores: Optional[FinalScoresModel] = None

    @classmethod
    def from_game(cls, game: Game, players: list[GamePlayer]) -> "GameResponse":
        state = game.state
        return cls(
            game_id=game.game_id,
            created_at=game.created_at,
            started_at=game.started_at,
            last_activity_at=game.last_activity_at,
            config=GameConfigModel(
                is_private=game.config.is_private,
                max_players=game.config.max_players,
                house_rules=game.config.house_rules,
            ),
            players=[PlayerModel.from_player(player) for player in players],
            state=GameStateModel(
                status=state.status.value,
                current_turn_player_id=state.current_turn_player_id,
                direction=state.direction.value,
                draw_pile_count=state.draw_pile_count,
                top_card=CardModel.from_card(state.top_card) if state.top_card else None,
                discard_count=len(state.discard_pile),
                current_color=state.current_color,
                must_draw=state.must_draw,
            ),
            final_scores=(
                FinalScoresModel.model_validate(game.final_scores) if game.final_scores else None
            ),
        )


class HandResponse(CamelModel):
    player_id: str
    cards: list[CardModel] = Field(default_factory=list)


class ActionResponse(CamelModel):
    """Result of a play, draw or pass."""
    game_id: str
    player_id: str
    action: str
    turn_phase: str
    next_player_id: Optional[str] = None
    drawn_cards: list[CardModel] = Field(default_factory=list)
    events: list[EventModel] = Field(default_factory=list)
    winner_id: Optional[str] = None
    final_scores: Optional[FinalScoresModel] = None

    @classmethod
    def from_outcome(cls, outcome: ActionOutcome) -> "ActionResponse":
        return cls(
            game_id=outcome.game_id,
            player_id=outcome.player_id,
            action=outcome.action_type.value,
            turn_phase=outcome.turn_phase.value,
            next_player_id=outcome.next_player_id,
            drawn_cards=[CardModel.from_card(card) for card in outcome.drawn_cards],
            events=[EventModel(type=e.type, payload=e.payload) for e in outcome.events],
            winner_id=outcome.winner_id,
            final_scores=(
                FinalScoresModel.from_scores(outcome.final_scores)
                if outcome.final_scores else None
            ),
        )


class UnoResponse(CamelModel):
    game_id: str
    player_id: str
    caught_player_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    code: ErrorCode = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
