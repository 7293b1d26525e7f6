"""
Validation Rules - Pre-validate and validate phases.

These rules only read the context and raise UnoError to reject an
action. They never produce effects, so validation can be re-run on a
transaction retry without side effects.
"""

from __future__ import annotations

from ..engine_core.action import ActionType
from ..engine_core.cards import (
    WILD_DRAW4,
    active_color,
    get_top_card,
    is_card_playable,
    violates_wild_draw4_restriction,
)
from ..engine_core.errors import ErrorCode, UnoError
from ..engine_core.state import GameStatus
from .types import Rule, RuleContext, RulePhase

ALL_ACTIONS = frozenset(ActionType)


class TurnOwnershipValidation(Rule):
    """Game in progress, player seated, player's turn."""

    name = "turn-ownership-validation"
    phase = RulePhase.PRE_VALIDATE
    handles = ALL_ACTIONS

    def validate(self, ctx: RuleContext):
        state = ctx.game.state
        if state.status is not GameStatus.IN_PROGRESS:
            raise UnoError.game_state(
                ErrorCode.GAME_NOT_IN_PROGRESS,
                "Game is not in progress",
                status=state.status.value,
            )
        if ctx.game.seat_of(ctx.player_id) < 0:
            raise UnoError.game_state(
                ErrorCode.NOT_IN_GAME,
                "Player is not part of this game",
                player_id=ctx.player_id,
            )
        if state.current_turn_player_id != ctx.player_id:
            raise UnoError.game_state(
                ErrorCode.NOT_YOUR_TURN,
                "It is not your turn",
                current_turn_player_id=state.current_turn_player_id,
            )


class CardPlayableValidation(Rule):
    name = "card-playable-validation"
    phase = RulePhase.VALIDATE
    handles = frozenset({ActionType.PLAY})

    def validate(self, ctx: RuleContext):
        card = ctx.played_card
        if card is None:
            raise UnoError.validation(
                ErrorCode.INVALID_CARD_INDEX,
                "Invalid card index",
                card_index=ctx.action.card_index,
                hand_size=len(ctx.player_hand),
            )

        state = ctx.game.state
        top_card = get_top_card(state.discard_pile)
        if not is_card_playable(
            card, top_card, state.current_color, state.must_draw, ctx.game.house_rules
        ):
            raise UnoError.validation(
                ErrorCode.CARD_NOT_PLAYABLE,
                f"Cannot play {card} on {top_card}",
                card=card.to_dict(),
                must_draw=state.must_draw,
            )


class WildColorValidation(Rule):
    name = "wild-color-validation"
    phase = RulePhase.VALIDATE
    handles = frozenset({ActionType.PLAY})

    def validate(self, ctx: RuleContext):
        card = ctx.played_card
        if card is not None and card.is_wild and ctx.action.chosen_color is None:
            raise UnoError.validation(
                ErrorCode.WILD_COLOR_REQUIRED,
                "Must choose a color for wild card",
            )


class WildDraw4Validation(Rule):
    """
    Wild Draw Four may only be played without a card of the active color.

    Waived while a penalty is pending: reaching this rule with
    mustDraw > 0 means stacking already allowed the play.
    """

    name = "wild-draw4-validation"
    phase = RulePhase.VALIDATE
    handles = frozenset({ActionType.PLAY})

    def validate(self, ctx: RuleContext):
        card = ctx.played_card
        if card is None or card.value != WILD_DRAW4:
            return

        state = ctx.game.state
        top_card = get_top_card(state.discard_pile)
        if violates_wild_draw4_restriction(
            ctx.player_hand.cards,
            ctx.action.card_index,
            top_card,
            state.current_color,
            state.must_draw,
        ):
            color = active_color(top_card, state.current_color)
            raise UnoError.validation(
                ErrorCode.CARD_NOT_PLAYABLE,
                f"Cannot play Wild Draw Four while holding a {color.value} card",
                active_color=color.value,
            )


class DrawActionValidation(Rule):
    name = "draw-action-validation"
    phase = RulePhase.VALIDATE
    handles = frozenset({ActionType.DRAW})

    def validate(self, ctx: RuleContext):
        count = ctx.action.count
        if count < 1:
            raise UnoError.validation(
                ErrorCode.INVALID_DRAW_COUNT,
                "Draw count must be at least 1",
                count=count,
            )


class PassActionValidation(Rule):
    name = "pass-action-validation"
    phase = RulePhase.VALIDATE
    handles = frozenset({ActionType.PASS})

    def validate(self, ctx: RuleContext):
        must_draw = ctx.game.state.must_draw
        if must_draw > 0:
            raise UnoError.validation(
                ErrorCode.MUST_DRAW_CARDS,
                f"Must draw {must_draw} cards before passing",
                must_draw=must_draw,
            )
