"""
Finalize Rule - Win detection after a play empties the hand.

Scoring needs every opponent's remaining hand and every player's stats,
so this rule reads them through the action's transaction before
returning a SetWinnerEffect that carries the pre-fetched data. Reads
are awaited one after another, never gathered, so the snapshot stays
consistent with the transaction's read set.
"""

from __future__ import annotations

from ..engine_core.action import ActionType
from ..engine_core.effects import FinalizeData, SetWinnerEffect, emit
from ..engine_core.errors import UnoError
from .types import FinalizeRule, RuleContext, RuleResult


class FinalizeGame(FinalizeRule):
    name = "finalize-game"
    handles = frozenset({ActionType.PLAY})
    dependencies = ("transaction",)

    def can_handle(self, ctx: RuleContext) -> bool:
        return (
            super().can_handle(ctx)
            and ctx.played_card is not None
            and ctx.hand_size_after_play == 0
        )

    async def finalize(self, ctx: RuleContext) -> RuleResult:
        tx = ctx.transaction
        if tx is None:
            raise UnoError.internal("Finalize requires a transaction", rule=self.name)

        hands = await tx.get_player_hands(ctx.game_id, ctx.game.players)
        player_hands = {pid: list(hand.cards) for pid, hand in hands.items()}
        # The winner's hand may not be committed yet
        player_hands[ctx.player_id] = []

        game_players = await tx.get_game_players(ctx.game_id)
        user_stats = {}
        for pid in ctx.game.players:
            user_stats[pid] = await tx.get_user_stats(pid)

        data = FinalizeData(
            game=ctx.game,
            player_hands=player_hands,
            game_players=game_players,
            user_stats=user_stats,
        )
        return RuleResult(effects=[
            SetWinnerEffect(winner_id=ctx.player_id, finalize_data=data),
            emit("game_won", winnerId=ctx.player_id),
        ])
