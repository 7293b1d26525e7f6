"""
Game Service - Orchestrates one action per store transaction.

ACTION FLOW:
1. Open a store transaction
2. Read game, player and hand; load every hand only when a handling
   rule depends on it
3. pre-validate -> validate (fail fast, nothing written)
4. apply -> merge effects with conflict detection -> buffer writes
5. finalize (sequential awaits) -> scoring and stats on a win
6. Commit on clean exit; any error discards every buffered write

Also owns the lobby lifecycle (create, join, start) and UNO calls,
which are plain transactional updates outside the rule pipeline.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable
import logging
import uuid

from ..config import Settings
from ..engine_core.action import (
    ActionType,
    DrawCardAction,
    GameAction,
    PassTurnAction,
    PlayCardAction,
)
from ..engine_core.aggregator import AggregatedEffects, detect_effect_conflicts
from ..engine_core.cards import Card, CardKind, Color, Direction, parse_color
from ..engine_core.deck import DECK_SIZE, DeckCache, generate_deck_seed
from ..engine_core.draw import draw_cards_from_deck
from ..engine_core.effects import FinalizeData, GameEvent
from ..engine_core.errors import ErrorCode, UnoError
from ..engine_core.scoring import FinalScores, compute_final_scores, update_user_stats
from ..engine_core.state import (
    HAND_SIZE,
    Game,
    GameConfig,
    GamePlayer,
    GameState,
    GameStatus,
    PlayerHand,
    PlayerStatus,
    UserStats,
)
from ..engine_core.turns import TurnPhase, TurnTrigger, resolve_turn_phase
from ..rules import (
    PipelineCache,
    RuleContext,
    RulePipeline,
    apply_finalize_phase,
    apply_rule_phase,
    requires_dependency,
    run_validation,
)
from ..rules.draw import DrawMode, draw_mode
from .store import GameStore, Transaction

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
UNO_PENALTY_CARDS = 2


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_game_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class ActionOutcome:
    """What a committed action produced, for the caller."""
    game_id: str
    player_id: str
    action_type: ActionType
    turn_phase: TurnPhase
    next_player_id: str | None = None
    drawn_cards: list[Card] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)
    winner_id: str | None = None
    final_scores: FinalScores | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameId": self.game_id,
            "playerId": self.player_id,
            "action": self.action_type.value,
            "turnPhase": self.turn_phase.value,
            "nextPlayerId": self.next_player_id,
            "drawnCards": [card.to_dict() for card in self.drawn_cards],
            "events": [{"type": e.type, "payload": e.payload} for e in self.events],
            "winnerId": self.winner_id,
            "finalScores": self.final_scores.to_document() if self.final_scores else None,
        }


class GameService:
    """
    Async game orchestrator over a GameStore.

    Caches are injected so tests and processes control their lifetime:

        service = GameService(GameStore(), settings=Settings.from_env())
        game = await service.create_game("alice")
        await service.join_game(game.game_id, "bob")
        await service.start_game(game.game_id)
        outcome = await service.play_card(game.game_id, "alice", 0)
    """

    def __init__(
        self,
        store: GameStore | None = None,
        settings: Settings | None = None,
        deck_cache: DeckCache | None = None,
        pipeline_cache: PipelineCache | None = None,
        pipeline: RulePipeline | None = None,
        seed_factory: Callable[[], str] = generate_deck_seed,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[], str] = generate_game_id,
    ):
        self.store = store or GameStore()
        self.settings = settings or Settings()
        self.deck_cache = deck_cache or DeckCache()
        self.pipeline_cache = pipeline_cache or PipelineCache(
            enabled=self.settings.pipeline_cache_enabled
        )
        self._pipeline = pipeline
        self.seed_factory = seed_factory
        self.clock = clock
        self.id_factory = id_factory

    @property
    def pipeline(self) -> RulePipeline:
        if self._pipeline is not None:
            return self._pipeline
        return self.pipeline_cache.get_default()

    # Lobby

    async def create_game(
        self,
        host_id: str,
        display_name: str | None = None,
        config: GameConfig | None = None,
    ) -> Game:
        now = self.clock()
        game = Game(
            game_id=self.id_factory(),
            created_at=now,
            last_activity_at=now,
            config=config or GameConfig(),
            players=[host_id],
            state=GameState(status=GameStatus.WAITING, draw_pile_count=DECK_SIZE),
        )
        async with self.store.transaction() as tx:
            tx.create_game(game.game_id, game.to_document())
            tx.set_game_player(game.game_id, GamePlayer(
                player_id=host_id,
                display_name=display_name or host_id,
                joined_at=now,
            ))
            tx.add_events(game.game_id, [GameEvent("game_created", {"hostId": host_id})])

        logger.info("Game %s created by %s", game.game_id, host_id)
        return game

    async def join_game(
        self, game_id: str, user_id: str, display_name: str | None = None
    ) -> Game:
        """Seat a user. Joining a game you already sit in is a no-op."""
        now = self.clock()
        async with self.store.transaction() as tx:
            game = await tx.get_game(game_id)
            if user_id in game.players:
                return game
            if game.state.status is not GameStatus.WAITING:
                raise UnoError.game_state(
                    ErrorCode.GAME_ALREADY_STARTED, "Game has already started", game_id=game_id
                )
            if len(game.players) >= game.config.max_players:
                raise UnoError.game_state(
                    ErrorCode.MAX_PLAYERS_REACHED,
                    "Game is full",
                    max_players=game.config.max_players,
                )

            tx.update_game(game_id, {
                "players": game.players + [user_id],
                "lastActivityAt": now,
            })
            tx.set_game_player(game_id, GamePlayer(
                player_id=user_id,
                display_name=display_name or user_id,
                joined_at=now,
            ))
            tx.add_events(game_id, [GameEvent("player_joined", {"playerId": user_id})])
            game = await tx.get_game(game_id)

        logger.info("Player %s joined game %s", user_id, game_id)
        return game

    async def start_game(self, game_id: str) -> Game:
        """
        Deal and flip the first discard.

        Hands are consecutive slices of the seeded deck. The starting
        discard is the first number card after the dealt cards, so a
        game never opens on an action card or a colorless wild.
        """
        now = self.clock()
        async with self.store.transaction() as tx:
            game = await tx.get_game(game_id)
            if game.state.status is not GameStatus.WAITING:
                raise UnoError.game_state(
                    ErrorCode.GAME_ALREADY_STARTED, "Game has already started", game_id=game_id
                )
            if len(game.players) < MIN_PLAYERS:
                raise UnoError.game_state(
                    ErrorCode.MIN_PLAYERS_NOT_MET,
                    f"At least {MIN_PLAYERS} players are required",
                    players=len(game.players),
                )

            seed = self.seed_factory()
            deck = self.deck_cache.get(seed)
            dealt = len(game.players) * HAND_SIZE
            starter = next(card for card in deck[dealt:] if card.kind is CardKind.NUMBER)

            for seat, pid in enumerate(game.players):
                hand = deck[seat * HAND_SIZE:(seat + 1) * HAND_SIZE]
                tx.set_player_hand(game_id, pid, hand)
                tx.update_game_player(game_id, pid, {
                    "cardCount": len(hand),
                    "status": PlayerStatus.ACTIVE,
                    "lastActionAt": now,
                })

            tx.update_game(game_id, {
                "state.status": GameStatus.IN_PROGRESS,
                "state.currentTurnPlayerId": game.players[0],
                "state.direction": Direction.CLOCKWISE,
                "state.deckSeed": seed,
                "state.drawPileCount": DECK_SIZE - dealt - 1,
                "state.discardPile": [starter],
                "state.currentColor": None,
                "state.mustDraw": 0,
                "startedAt": now,
                "lastActivityAt": now,
            })
            tx.add_events(game_id, [GameEvent("game_started", {"startingCard": starter.to_dict()})])
            game = await tx.get_game(game_id)

        logger.info("Game %s started with %d players", game_id, len(game.players))
        return game

    # Reads

    async def get_game(self, game_id: str) -> Game:
        async with self.store.transaction() as tx:
            return await tx.get_game(game_id)

    async def get_players(self, game_id: str) -> list[GamePlayer]:
        async with self.store.transaction() as tx:
            return list((await tx.get_game_players(game_id)).values())

    async def get_hand(self, game_id: str, player_id: str) -> PlayerHand:
        async with self.store.transaction() as tx:
            game = await tx.get_game(game_id)
            self._require_seat(game, player_id)
            return await tx.get_player_hand(game_id, player_id)

    async def get_user_stats(self, user_id: str) -> UserStats:
        async with self.store.transaction() as tx:
            return await tx.get_user_stats(user_id)

    # Actions

    async def play_card(
        self,
        game_id: str,
        player_id: str,
        card_index: int,
        chosen_color: Color | str | None = None,
    ) -> ActionOutcome:
        action = PlayCardAction(card_index=card_index, chosen_color=parse_color(chosen_color))
        return await self.perform_action(game_id, player_id, action)

    async def draw_card(self, game_id: str, player_id: str, count: int = 1) -> ActionOutcome:
        return await self.perform_action(game_id, player_id, DrawCardAction(count=count))

    async def pass_turn(self, game_id: str, player_id: str) -> ActionOutcome:
        return await self.perform_action(game_id, player_id, PassTurnAction())

    async def perform_action(
        self, game_id: str, player_id: str, action: GameAction
    ) -> ActionOutcome:
        pipeline = self.pipeline
        strict = self.settings.strict_effects

        async with self.store.transaction() as tx:
            ctx = await self._build_context(tx, game_id, player_id, action, pipeline)

            run_validation(pipeline, ctx)

            applied = apply_rule_phase(pipeline, ctx, strict=strict)
            merged = detect_effect_conflicts(applied.effects)
            self._write_effects(tx, game_id, merged)

            finalized = await apply_finalize_phase(pipeline, ctx, strict=strict)
            final_effects = detect_effect_conflicts(finalized.effects)
            self._write_effects(tx, game_id, final_effects)

            events = merged.events + final_effects.events
            winner_id = None
            final_scores = None
            if final_effects.winner is not None:
                winner_id = final_effects.winner.winner_id
                final_scores = await self.finalize_game(
                    tx, game_id, winner_id, final_effects.winner.finalize_data
                )

        next_player_id = merged.game_updates.get(
            "state.currentTurnPlayerId", ctx.game.state.current_turn_player_id
        )
        outcome = ActionOutcome(
            game_id=game_id,
            player_id=player_id,
            action_type=action.action_type,
            turn_phase=resolve_turn_phase(self._turn_triggers(ctx, next_player_id)),
            next_player_id=next_player_id,
            drawn_cards=applied.cards_drawn,
            events=events,
            winner_id=winner_id,
            final_scores=final_scores,
        )
        logger.info(
            "Game %s: %s by %s, next %s",
            game_id, action.action_type.value, player_id, next_player_id,
        )
        return outcome

    async def finalize_game(
        self,
        tx: Transaction,
        game_id: str,
        winner_id: str,
        data: FinalizeData | None = None,
    ) -> FinalScores:
        """
        Score the game, mark the winner and fold stats in.

        Uses the data pre-fetched by the finalize phase when given,
        otherwise reads it through the transaction.
        """
        if data is None:
            game = await tx.get_game(game_id)
            hands = await tx.get_player_hands(game_id, game.players)
            data = FinalizeData(
                game=game,
                player_hands={pid: list(hand.cards) for pid, hand in hands.items()},
                game_players=await tx.get_game_players(game_id),
                user_stats={pid: await tx.get_user_stats(pid) for pid in game.players},
            )

        if data.player_hands.get(winner_id):
            raise UnoError.validation(
                ErrorCode.HAND_NOT_EMPTY,
                "Winner still holds cards",
                winner_id=winner_id,
            )

        now = self.clock()
        players = data.game.players
        scores = compute_final_scores(
            winner_id, players, data.player_hands, data.game_players, completed_at=now
        )

        tx.update_game(game_id, {
            "state.status": GameStatus.COMPLETED,
            "state.currentTurnPlayerId": None,
            "finalScores": scores.to_document(),
            "lastActivityAt": now,
        })
        tx.update_game_player(game_id, winner_id, {"status": PlayerStatus.WINNER})

        for pid in players:
            player = data.game_players.get(pid)
            game_stats = player.game_stats if player else None
            tx.set_user_stats(pid, update_user_stats(
                data.user_stats.get(pid),
                game_id,
                is_winner=pid == winner_id,
                game_score=scores.score_of(pid).score,
                cards_played=game_stats.cards_played if game_stats else 0,
                special_cards_played=game_stats.special_cards_played if game_stats else 0,
            ))

        tx.add_events(game_id, [GameEvent("game_finished", {
            "winnerId": winner_id,
            "winnerScore": scores.winner_score,
        })])
        logger.info("Game %s won by %s with %d points", game_id, winner_id, scores.winner_score)
        return scores

    async def call_uno(self, game_id: str, player_id: str) -> str | None:
        """
        Declare UNO, or catch an opponent who forgot to.

        Returns the id of the caught opponent, who draws a two-card
        penalty, or None when the caller declared for themselves or
        nobody could be caught.
        """
        now = self.clock()
        async with self.store.transaction() as tx:
            game = await tx.get_game(game_id)
            if game.state.status is not GameStatus.IN_PROGRESS:
                raise UnoError.game_state(
                    ErrorCode.GAME_NOT_IN_PROGRESS, "Game is not in progress", game_id=game_id
                )
            self._require_seat(game, player_id)

            players = await tx.get_game_players(game_id)
            caller = players[player_id]
            if caller.card_count == 1 and caller.must_call_uno:
                tx.update_game_player(game_id, player_id, {
                    "hasCalledUno": True,
                    "mustCallUno": False,
                    "lastActionAt": now,
                })
                tx.add_events(game_id, [GameEvent("uno_called", {"playerId": player_id})])
                logger.info("Game %s: %s called UNO", game_id, player_id)
                return None

            caught = next(
                (
                    p for pid, p in players.items()
                    if pid != player_id
                    and p.card_count == 1
                    and p.must_call_uno
                    and not p.has_called_uno
                ),
                None,
            )
            if caught is None:
                return None

            await self._uno_penalty(tx, game, caught, now)
            tx.add_events(game_id, [GameEvent("uno_caught", {
                "playerId": caught.player_id,
                "caughtBy": player_id,
            })])

        logger.info("Game %s: %s caught %s without UNO", game_id, player_id, caught.player_id)
        return caught.player_id

    async def _uno_penalty(self, tx: Transaction, game: Game, player: GamePlayer, now: str):
        hands = await tx.get_player_hands(game.game_id, game.players)
        state = game.state
        result = draw_cards_from_deck(
            self.deck_cache,
            state.deck_seed,
            state.discard_pile,
            (hand.cards for hand in hands.values()),
            UNO_PENALTY_CARDS,
            seed_factory=self.seed_factory,
        )
        new_hand = hands[player.player_id].cards + result.drawn_cards
        tx.set_player_hand(game.game_id, player.player_id, new_hand)
        tx.update_game_player(game.game_id, player.player_id, {
            "cardCount": len(new_hand),
            "mustCallUno": False,
            "gameStats.cardsDrawn": player.game_stats.cards_drawn + len(result.drawn_cards),
        })
        tx.update_game(game.game_id, {
            "state.deckSeed": result.deck_seed,
            "state.drawPileCount": result.draw_pile_count,
            "state.discardPile": result.discard_pile,
            "lastActivityAt": now,
        })

    # Helpers

    @staticmethod
    def _require_seat(game: Game, player_id: str):
        if game.seat_of(player_id) < 0:
            raise UnoError.game_state(
                ErrorCode.NOT_IN_GAME,
                "Player is not part of this game",
                game_id=game.game_id,
                player_id=player_id,
            )

    async def _build_context(
        self,
        tx: Transaction,
        game_id: str,
        player_id: str,
        action: GameAction,
        pipeline: RulePipeline,
    ) -> RuleContext:
        game = await tx.get_game(game_id)
        self._require_seat(game, player_id)

        ctx = RuleContext(
            game_id=game_id,
            player_id=player_id,
            action=action,
            game=game,
            player=await tx.get_game_player(game_id, player_id),
            player_hand=await tx.get_player_hand(game_id, player_id),
            now=self.clock(),
            transaction=tx,
            deck_cache=self.deck_cache,
            seed_factory=self.seed_factory,
        )
        if requires_dependency(pipeline.all_rules(), ctx, "player_hands"):
            ctx = replace(ctx, player_hands=await tx.get_player_hands(game_id, game.players))
        return ctx

    @staticmethod
    def _write_effects(tx: Transaction, game_id: str, effects: AggregatedEffects):
        if effects.game_updates:
            tx.update_game(game_id, effects.game_updates)
        for pid, updates in effects.player_updates.items():
            tx.update_game_player(game_id, pid, updates)
        for pid, hand in effects.hand_updates.items():
            tx.set_player_hand(game_id, pid, hand)
        if effects.events:
            tx.add_events(game_id, effects.events)

    @staticmethod
    def _turn_triggers(ctx: RuleContext, next_player_id: str | None) -> list[TurnTrigger]:
        if ctx.action_type is ActionType.PLAY:
            return [TurnTrigger.PLAY, TurnTrigger.RESOLVE]
        if ctx.action_type is ActionType.PASS:
            return [TurnTrigger.PASS]

        mode = draw_mode(ctx)
        if mode is DrawMode.PENALTY:
            return [TurnTrigger.DRAW_PENALTY]
        if mode is DrawMode.MATCH:
            return [TurnTrigger.DRAW_TO_MATCH]
        if next_player_id != ctx.player_id:
            return [TurnTrigger.DRAW_OPTIONAL, TurnTrigger.PASS]
        return [TurnTrigger.DRAW_OPTIONAL]
