"""
Draw Rule - Apply phase for draw actions.

Three draw modes, decided from state:
1. Penalty (mustDraw > 0): draw exactly mustDraw cards, counts as a
   turn, always passes the turn
2. Draw-to-match (house rule): draw until playable, keep the turn
3. Optional: draw `count` cards, pass the turn only when none of them
   is playable
"""

from __future__ import annotations
from enum import Enum

from ..engine_core.action import ActionType
from ..engine_core.cards import HouseRule, get_next_player_id, get_top_card, is_card_playable
from ..engine_core.draw import draw_cards_from_deck, draw_to_match
from ..engine_core.effects import UpdateGameEffect, UpdateHandEffect, UpdatePlayerEffect, emit
from ..engine_core.state import PlayerStatus
from .types import Rule, RuleContext, RulePhase, RuleResult


class DrawMode(str, Enum):
    PENALTY = "penalty"
    MATCH = "match"
    OPTIONAL = "optional"


def draw_mode(ctx: RuleContext) -> DrawMode:
    if ctx.game.state.must_draw > 0:
        return DrawMode.PENALTY
    if ctx.game.config.has_rule(HouseRule.DRAW_TO_MATCH):
        return DrawMode.MATCH
    return DrawMode.OPTIONAL


class DrawActionApply(Rule):
    name = "draw-action-apply"
    phase = RulePhase.APPLY
    handles = frozenset({ActionType.DRAW})
    dependencies = ("player_hands",)

    def apply(self, ctx: RuleContext) -> RuleResult:
        game = ctx.game
        state = game.state
        mode = draw_mode(ctx)
        hands = {pid: hand.cards for pid, hand in ctx.player_hands.items()}
        hands[ctx.player_id] = ctx.player_hand.cards

        if mode is DrawMode.MATCH:
            result = draw_to_match(
                ctx.deck_cache,
                state.deck_seed,
                state.discard_pile,
                hands,
                ctx.player_id,
                state.current_color,
                game.house_rules,
                draw_pile_count=state.draw_pile_count,
                seed_factory=ctx.seed_factory,
            )
        else:
            count = state.must_draw if mode is DrawMode.PENALTY else ctx.action.count
            result = draw_cards_from_deck(
                ctx.deck_cache,
                state.deck_seed,
                state.discard_pile,
                hands.values(),
                count,
                seed_factory=ctx.seed_factory,
            )

        drawn = result.drawn_cards
        if mode is DrawMode.PENALTY:
            passes_turn = True
        elif mode is DrawMode.MATCH:
            passes_turn = False
        else:
            top_card = get_top_card(state.discard_pile)
            passes_turn = not any(
                is_card_playable(card, top_card, state.current_color, 0, game.house_rules)
                for card in drawn
            )

        if passes_turn:
            next_player_id = get_next_player_id(
                game.players, game.seat_of(ctx.player_id), state.direction, False
            )
        else:
            next_player_id = ctx.player_id

        new_hand = ctx.player_hand.cards + drawn
        stats = ctx.player.game_stats
        player_updates = {
            "cardCount": len(new_hand),
            "status": PlayerStatus.ACTIVE.value,
            "hasCalledUno": False,
            "mustCallUno": False,
            "gameStats.cardsDrawn": stats.cards_drawn + len(drawn),
            "lastActionAt": ctx.now,
        }
        if mode is DrawMode.PENALTY:
            player_updates["gameStats.turnsPlayed"] = stats.turns_played + 1

        return RuleResult(
            effects=[
                UpdateGameEffect(updates={
                    "state.deckSeed": result.deck_seed,
                    "state.drawPileCount": result.draw_pile_count,
                    "state.discardPile": result.discard_pile,
                    "state.currentTurnPlayerId": next_player_id,
                    "state.mustDraw": 0,
                    "lastActivityAt": ctx.now,
                }),
                UpdateHandEffect(player_id=ctx.player_id, hand=new_hand),
                UpdatePlayerEffect(player_id=ctx.player_id, updates=player_updates),
                emit(
                    "cards_drawn",
                    playerId=ctx.player_id,
                    count=len(drawn),
                    mode=mode.value,
                    reshuffled=result.reshuffled,
                    turnPassed=passes_turn,
                ),
            ],
            cards_drawn=drawn,
        )
