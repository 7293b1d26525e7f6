"""
Play Rules - Apply phase for card plays.

Each rule writes a disjoint set of targets:
- update-player-hand    the hand, cardCount and player status
- update-discard-pile   discard pile, game status, activity time
- apply-card-effect     direction, penalty, color, whose turn
- update-player-stats   per-game counters and UNO flags
"""

from __future__ import annotations

from ..engine_core.action import ActionType
from ..engine_core.cards import REVERSE, apply_card_effect, get_next_player_id, is_special_card
from ..engine_core.effects import UpdateGameEffect, UpdateHandEffect, UpdatePlayerEffect, emit
from ..engine_core.state import GameStatus, PlayerStatus
from .types import Rule, RuleContext, RulePhase, RuleResult

PLAY = frozenset({ActionType.PLAY})


class UpdatePlayerHand(Rule):
    name = "update-player-hand"
    phase = RulePhase.APPLY
    handles = PLAY

    def apply(self, ctx: RuleContext) -> RuleResult:
        new_hand = ctx.player_hand.without(ctx.action.card_index)
        status = PlayerStatus.WINNER if not new_hand else PlayerStatus.ACTIVE
        return RuleResult(effects=[
            UpdateHandEffect(player_id=ctx.player_id, hand=new_hand),
            UpdatePlayerEffect(
                player_id=ctx.player_id,
                updates={"cardCount": len(new_hand), "status": status.value},
            ),
        ])


class UpdateDiscardPile(Rule):
    name = "update-discard-pile"
    phase = RulePhase.APPLY
    handles = PLAY

    def apply(self, ctx: RuleContext) -> RuleResult:
        card = ctx.played_card
        won = ctx.hand_size_after_play == 0
        status = GameStatus.COMPLETED if won else GameStatus.IN_PROGRESS
        return RuleResult(effects=[
            UpdateGameEffect(updates={
                "state.discardPile": ctx.game.state.discard_pile + [card],
                "state.status": status.value,
                "lastActivityAt": ctx.now,
            }),
            emit("card_played", playerId=ctx.player_id, card=card.to_dict()),
        ])


class ApplyCardEffect(Rule):
    """Direction, penalty and next player after a play."""

    name = "apply-card-effect"
    phase = RulePhase.APPLY
    handles = PLAY

    def apply(self, ctx: RuleContext) -> RuleResult:
        card = ctx.played_card
        game = ctx.game
        state = game.state
        effect = apply_card_effect(card, state.direction, state.must_draw)

        # With two players a reverse hands the turn straight back
        skip_next = effect.skip_next or (card.value == REVERSE and len(game.players) == 2)

        if ctx.hand_size_after_play == 0:
            next_player_id = None
        else:
            next_player_id = get_next_player_id(
                game.players, game.seat_of(ctx.player_id), effect.direction, skip_next
            )

        chosen_color = ctx.action.chosen_color if card.is_wild else None
        return RuleResult(effects=[
            UpdateGameEffect(updates={
                "state.direction": effect.direction.value,
                "state.mustDraw": effect.must_draw,
                "state.currentColor": chosen_color.value if chosen_color else None,
                "state.currentTurnPlayerId": next_player_id,
            }),
        ])


class UpdatePlayerStats(Rule):
    name = "update-player-stats"
    phase = RulePhase.APPLY
    handles = PLAY

    def apply(self, ctx: RuleContext) -> RuleResult:
        card = ctx.played_card
        stats = ctx.player.game_stats
        return RuleResult(effects=[
            UpdatePlayerEffect(player_id=ctx.player_id, updates={
                "gameStats.cardsPlayed": stats.cards_played + 1,
                "gameStats.turnsPlayed": stats.turns_played + 1,
                "gameStats.specialCardsPlayed": (
                    stats.special_cards_played + (1 if is_special_card(card) else 0)
                ),
                "hasCalledUno": False,
                "mustCallUno": ctx.hand_size_after_play == 1,
                "lastActionAt": ctx.now,
            }),
        ])
