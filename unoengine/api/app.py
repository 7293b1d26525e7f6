"""
FastAPI Application - REST API over the game service.

Endpoints:
    POST   /api/v1/games                      Create a game (caller hosts)
    POST   /api/v1/games/{id}/join            Join a waiting game
    POST   /api/v1/games/{id}/start           Deal and start
    GET    /api/v1/games/{id}                 Public game view
    GET    /api/v1/games/{id}/hand/{player}   The caller's own hand
    POST   /api/v1/games/{id}/play            Play a card
    POST   /api/v1/games/{id}/draw            Draw cards
    POST   /api/v1/games/{id}/pass            Pass the turn
    POST   /api/v1/games/{id}/uno             Call UNO / catch an opponent
    GET    /api/v1/health                     Health check

Authentication is external: the acting player is read from the
X-Player-Id header. Every UnoError becomes an ErrorResponse with the
HTTP status of its code.
"""

from typing import Annotated, Optional
import logging

from fastapi import FastAPI, Header
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, configure_logging
from ..engine_core.errors import ErrorCode, UnoError
from ..engine_core.state import GameConfig
from ..service.game_service import GameService
from .schemas import (
    ActionResponse,
    CardModel,
    CreateGameRequest,
    DrawCardRequest,
    ErrorResponse,
    GameResponse,
    HandResponse,
    HealthResponse,
    JoinGameRequest,
    PlayCardRequest,
    UnoResponse,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    412: {"model": ErrorResponse},
}


def require_player(player_id: Optional[str]) -> str:
    if not player_id:
        raise UnoError.auth(ErrorCode.UNAUTHENTICATED, "Missing X-Player-Id header")
    return player_id


def create_app(service: GameService | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService (a fresh in-memory one if omitted)
        settings: Optional Settings (read from the environment if omitted)
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    game_service = service or GameService(settings=settings)

    app = FastAPI(
        title="UNO Engine API",
        description="Server-side UNO rule engine. Error bodies carry wire-stable codes.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    PlayerHeader = Annotated[Optional[str], Header(alias="X-Player-Id")]

    # =========================================================================
    # Error handling
    # =========================================================================

    @app.exception_handler(UnoError)
    async def handle_uno_error(request: Request, error: UnoError) -> JSONResponse:
        if not error.is_expected:
            logger.error("Internal error on %s: %s", request.url.path, error.message)
        return JSONResponse(
            status_code=error.status_code,
            content=ErrorResponse(
                code=error.code,
                message=error.message,
                details=error.details or None,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, error: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                code=ErrorCode.INVALID_REQUEST,
                message="Invalid request",
                details={"errors": [
                    {"loc": list(e["loc"]), "msg": e["msg"]} for e in error.errors()
                ]},
            ).model_dump(mode="json"),
        )

    async def game_view(game_id: str) -> GameResponse:
        game = await game_service.get_game(game_id)
        players = await game_service.get_players(game_id)
        return GameResponse.from_game(game, players)

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameResponse,
        status_code=201,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Create a game hosted by the caller",
    )
    async def create_game(request: CreateGameRequest, player_id: PlayerHeader = None) -> GameResponse:
        host_id = require_player(player_id)
        config = GameConfig(
            is_private=request.config.is_private,
            max_players=request.config.max_players,
            house_rules=list(request.config.house_rules),
        )
        game = await game_service.create_game(host_id, request.display_name, config)
        return await game_view(game.game_id)

    @app.post(
        "/api/v1/games/{game_id}/join",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Join a waiting game",
    )
    async def join_game(
        game_id: str,
        request: Optional[JoinGameRequest] = None,
        player_id: PlayerHeader = None,
    ) -> GameResponse:
        user_id = require_player(player_id)
        display_name = request.display_name if request else None
        await game_service.join_game(game_id, user_id, display_name)
        return await game_view(game_id)

    @app.post(
        "/api/v1/games/{game_id}/start",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Deal cards and start the game",
    )
    async def start_game(game_id: str, player_id: PlayerHeader = None) -> GameResponse:
        user_id = require_player(player_id)
        game = await game_service.get_game(game_id)
        if user_id not in game.players:
            raise UnoError.auth(ErrorCode.PERMISSION_DENIED, "Only seated players can start the game")
        await game_service.start_game(game_id)
        return await game_view(game_id)

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Public game state",
    )
    async def get_game(game_id: str) -> GameResponse:
        return await game_view(game_id)

    @app.get(
        "/api/v1/games/{game_id}/hand/{hand_player_id}",
        response_model=HandResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="A player's own hand",
    )
    async def get_hand(game_id: str, hand_player_id: str, player_id: PlayerHeader = None) -> HandResponse:
        if require_player(player_id) != hand_player_id:
            raise UnoError.auth(ErrorCode.PERMISSION_DENIED, "Hands are private")
        hand = await game_service.get_hand(game_id, hand_player_id)
        return HandResponse(
            player_id=hand.player_id,
            cards=[CardModel.from_card(card) for card in hand.cards],
        )

    # =========================================================================
    # Action Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/play",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Play a card from the hand",
    )
    async def play_card(game_id: str, request: PlayCardRequest, player_id: PlayerHeader = None) -> ActionResponse:
        outcome = await game_service.play_card(
            game_id, require_player(player_id), request.card_index, request.chosen_color
        )
        return ActionResponse.from_outcome(outcome)

    @app.post(
        "/api/v1/games/{game_id}/draw",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Draw cards (penalty, draw-to-match or optional)",
    )
    async def draw_card(
        game_id: str,
        request: Optional[DrawCardRequest] = None,
        player_id: PlayerHeader = None,
    ) -> ActionResponse:
        count = request.count if request else 1
        outcome = await game_service.draw_card(game_id, require_player(player_id), count)
        return ActionResponse.from_outcome(outcome)

    @app.post(
        "/api/v1/games/{game_id}/pass",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Pass the turn",
    )
    async def pass_turn(game_id: str, player_id: PlayerHeader = None) -> ActionResponse:
        outcome = await game_service.pass_turn(game_id, require_player(player_id))
        return ActionResponse.from_outcome(outcome)

    @app.post(
        "/api/v1/games/{game_id}/uno",
        response_model=UnoResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Declare UNO or catch an opponent",
    )
    async def call_uno(game_id: str, player_id: PlayerHeader = None) -> UnoResponse:
        caller = require_player(player_id)
        caught = await game_service.call_uno(game_id, caller)
        return UnoResponse(game_id=game_id, player_id=caller, caught_player_id=caught)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", service="unoengine", version=__version__)

    return app
