"""
Pytest fixtures for UNO engine tests.
"""

import itertools

import pytest

from ..config import Settings
from ..engine_core.action import GameAction
from ..engine_core.cards import Card, Color, Direction, HouseRule
from ..engine_core.deck import DeckCache
from ..engine_core.state import (
    Game,
    GameConfig,
    GamePlayer,
    GameState,
    GameStatus,
    PlayerHand,
    PlayerStatus,
)
from ..rules import PipelineCache, RuleContext
from ..service import GameService, GameStore

FIXED_NOW = "2026-01-01T00:00:00+00:00"


def red(value):
    return Card.number(Color.RED, value) if isinstance(value, int) else Card.special(Color.RED, value)


def blue(value):
    return Card.number(Color.BLUE, value) if isinstance(value, int) else Card.special(Color.BLUE, value)


def green(value):
    return Card.number(Color.GREEN, value) if isinstance(value, int) else Card.special(Color.GREEN, value)


def yellow(value):
    return Card.number(Color.YELLOW, value) if isinstance(value, int) else Card.special(Color.YELLOW, value)


def build_game(
    players=("p1", "p2"),
    discard=None,
    current_turn="p1",
    direction=Direction.CLOCKWISE,
    current_color=None,
    must_draw=0,
    house_rules=(),
    deck_seed="test-seed",
    status=GameStatus.IN_PROGRESS,
    game_id="game-1",
) -> Game:
    return Game(
        game_id=game_id,
        created_at=FIXED_NOW,
        last_activity_at=FIXED_NOW,
        started_at=FIXED_NOW,
        config=GameConfig(max_players=max(len(players), 2), house_rules=list(house_rules)),
        players=list(players),
        state=GameState(
            status=status,
            current_turn_player_id=current_turn,
            direction=direction,
            deck_seed=deck_seed,
            draw_pile_count=80,
            discard_pile=list(discard if discard is not None else [red(5)]),
            current_color=current_color,
            must_draw=must_draw,
        ),
    )


def build_player(player_id, card_count=0, **kwargs) -> GamePlayer:
    return GamePlayer(
        player_id=player_id,
        display_name=player_id.upper(),
        joined_at=FIXED_NOW,
        card_count=card_count,
        status=PlayerStatus.ACTIVE,
        **kwargs,
    )


def build_context(
    action: GameAction,
    hand,
    game: Game | None = None,
    player_id="p1",
    other_hands=None,
    deck_cache=None,
    seed_factory=None,
    transaction=None,
) -> RuleContext:
    """RuleContext for pure rule tests. `other_hands` maps id -> cards."""
    game = game or build_game()
    player_hand = PlayerHand(player_id=player_id, cards=list(hand))
    player_hands = None
    if other_hands is not None:
        player_hands = {pid: PlayerHand(pid, list(cards)) for pid, cards in other_hands.items()}
        player_hands[player_id] = player_hand
    extra = {}
    if seed_factory is not None:
        extra["seed_factory"] = seed_factory
    return RuleContext(
        game_id=game.game_id,
        player_id=player_id,
        action=action,
        game=game,
        player=build_player(player_id, card_count=len(player_hand)),
        player_hand=player_hand,
        now=FIXED_NOW,
        player_hands=player_hands,
        transaction=transaction,
        deck_cache=deck_cache or DeckCache(),
        **extra,
    )


def seed_store(store: GameStore, game: Game, hands: dict, players: dict | None = None):
    """Write a game, its players and hands straight into a store."""
    store.games[game.game_id] = game.to_document()
    players = players or {}
    store.players[game.game_id] = {
        pid: (players.get(pid) or build_player(pid, card_count=len(hands.get(pid, [])))).to_document()
        for pid in game.players
    }
    store.hands[game.game_id] = {
        pid: PlayerHand(pid, list(cards)).to_document() for pid, cards in hands.items()
    }


def make_seed_factory(prefix="seed"):
    counter = itertools.count()
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def settings() -> Settings:
    """Strict settings, as in CI."""
    return Settings(env="test", strict_effects=True)


@pytest.fixture
def deck_cache() -> DeckCache:
    return DeckCache()


@pytest.fixture
def store() -> GameStore:
    return GameStore()


@pytest.fixture
def service(store, settings, deck_cache) -> GameService:
    """Service with a fixed clock and predictable seeds and ids."""
    ids = itertools.count(1)
    return GameService(
        store=store,
        settings=settings,
        deck_cache=deck_cache,
        pipeline_cache=PipelineCache(),
        seed_factory=make_seed_factory(),
        clock=lambda: FIXED_NOW,
        id_factory=lambda: f"game-{next(ids)}",
    )


@pytest.fixture
def stacking_rules():
    return [HouseRule.STACKING]
