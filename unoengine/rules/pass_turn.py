"""Pass Rule - Hand the turn to the next seat."""

from __future__ import annotations

from ..engine_core.action import ActionType
from ..engine_core.cards import get_next_player_id
from ..engine_core.effects import UpdateGameEffect, UpdatePlayerEffect, emit
from .types import Rule, RuleContext, RulePhase, RuleResult


class PassActionApply(Rule):
    name = "pass-action-apply"
    phase = RulePhase.APPLY
    handles = frozenset({ActionType.PASS})

    def apply(self, ctx: RuleContext) -> RuleResult:
        game = ctx.game
        next_player_id = get_next_player_id(
            game.players, game.seat_of(ctx.player_id), game.state.direction, False
        )
        return RuleResult(effects=[
            UpdateGameEffect(updates={
                "state.currentTurnPlayerId": next_player_id,
                "lastActivityAt": ctx.now,
            }),
            UpdatePlayerEffect(player_id=ctx.player_id, updates={
                "hasCalledUno": False,
                "mustCallUno": False,
                "gameStats.turnsPlayed": ctx.player.game_stats.turns_played + 1,
                "lastActionAt": ctx.now,
            }),
            emit("turn_passed", playerId=ctx.player_id, nextPlayerId=next_player_id),
        ])
