"""
Tests for the default rules.

Tests:
- Pre-validate and validate rejections with their error codes
- Apply effects for play, draw and pass
- Stacking and Wild Draw Four scenarios
"""

import pytest

from ..engine_core.action import DrawCardAction, PassTurnAction, PlayCardAction
from ..engine_core.aggregator import detect_effect_conflicts
from ..engine_core.cards import (
    Card,
    Color,
    Direction,
    HouseRule,
    DRAW2,
    REVERSE,
    SKIP,
    WILD,
    WILD_DRAW4,
    is_card_playable,
)
from ..engine_core.errors import ErrorCode, ErrorKind, UnoError
from ..engine_core.state import GameStatus
from ..rules import apply_rule_phase, create_default_rule_pipeline, run_validation
from .conftest import blue, build_context, build_game, green, make_seed_factory, red, yellow


@pytest.fixture
def pipeline():
    """The default rule pipeline."""
    return create_default_rule_pipeline()


def run_action(pipeline, ctx):
    """Validate, apply and merge, the way the service does before finalize."""
    run_validation(pipeline, ctx)
    result = apply_rule_phase(pipeline, ctx, strict=True)
    return result, detect_effect_conflicts(result.effects)


def rejection(pipeline, ctx) -> UnoError:
    """The error validation raises for ctx."""
    with pytest.raises(UnoError) as exc:
        run_validation(pipeline, ctx)
    return exc.value


class TestTurnOwnership:
    """Tests for turn ownership validation."""

    def test_not_your_turn(self, pipeline):
        """Acting out of turn is NOT_YOUR_TURN."""
        ctx = build_context(PassTurnAction(), [red(1)], build_game(current_turn="p2"))
        error = rejection(pipeline, ctx)
        assert error.code == ErrorCode.NOT_YOUR_TURN
        assert error.kind is ErrorKind.GAME_STATE

    def test_game_not_in_progress(self, pipeline):
        """Actions need an in-progress game."""
        ctx = build_context(DrawCardAction(), [red(1)], build_game(status=GameStatus.WAITING))
        assert rejection(pipeline, ctx).code == ErrorCode.GAME_NOT_IN_PROGRESS

    def test_player_not_seated(self, pipeline):
        """Unseated players are NOT_IN_GAME."""
        game = build_game(players=("p2", "p3"), current_turn="p2")
        ctx = build_context(PassTurnAction(), [], game, player_id="p1")
        assert rejection(pipeline, ctx).code == ErrorCode.NOT_IN_GAME


class TestPlayValidation:
    """Tests for play validation."""

    def test_invalid_card_index(self, pipeline):
        """An index past the hand is INVALID_CARD_INDEX."""
        ctx = build_context(PlayCardAction(card_index=5), [red(1)])
        error = rejection(pipeline, ctx)
        assert error.code == ErrorCode.INVALID_CARD_INDEX
        assert error.kind is ErrorKind.VALIDATION

    def test_card_not_playable(self, pipeline):
        """A card matching neither color nor value is rejected."""
        ctx = build_context(PlayCardAction(card_index=0), [blue(3)])
        assert rejection(pipeline, ctx).code == ErrorCode.CARD_NOT_PLAYABLE

    def test_wild_requires_color(self, pipeline):
        """Wild plays must name a color."""
        ctx = build_context(PlayCardAction(card_index=0), [Card.wild(WILD)])
        assert rejection(pipeline, ctx).code == ErrorCode.WILD_COLOR_REQUIRED

    def test_penalty_without_stacking(self, pipeline):
        """Draw cards cannot answer a penalty without stacking."""
        game = build_game(discard=[red(DRAW2)], must_draw=2)
        ctx = build_context(PlayCardAction(card_index=0), [blue(DRAW2)], game)
        assert rejection(pipeline, ctx).code == ErrorCode.CARD_NOT_PLAYABLE

    def test_wild_draw4_with_matching_color(self, pipeline):
        """Wild Draw Four is rejected while holding the active color."""
        ctx = build_context(
            PlayCardAction(card_index=0, chosen_color=Color.BLUE),
            [Card.wild(WILD_DRAW4), red(3)],
        )
        error = rejection(pipeline, ctx)
        assert error.code == ErrorCode.CARD_NOT_PLAYABLE
        assert error.details["active_color"] == "red"

    def test_wild_draw4_without_matching_color(self, pipeline):
        """Wild Draw Four passes without the active color."""
        ctx = build_context(
            PlayCardAction(card_index=0, chosen_color=Color.BLUE),
            [Card.wild(WILD_DRAW4), blue(3)],
        )
        run_validation(pipeline, ctx)


class TestDrawAndPassValidation:
    """Tests for draw and pass validation."""

    def test_draw_count_must_be_positive(self, pipeline):
        """A zero draw count is INVALID_DRAW_COUNT."""
        ctx = build_context(DrawCardAction(count=0), [red(1)])
        assert rejection(pipeline, ctx).code == ErrorCode.INVALID_DRAW_COUNT

    def test_cannot_pass_with_penalty(self, pipeline):
        """Passing with a pending penalty is MUST_DRAW_CARDS."""
        game = build_game(discard=[red(DRAW2)], must_draw=2)
        ctx = build_context(PassTurnAction(), [red(1)], game)
        error = rejection(pipeline, ctx)
        assert error.code == ErrorCode.MUST_DRAW_CARDS
        assert error.details["must_draw"] == 2


class TestPlayApply:
    """Tests for play effects."""

    def test_color_match_scenario(self, pipeline):
        """Top red 5, hand [red 3, blue 5], play index 0."""
        ctx = build_context(PlayCardAction(card_index=0), [red(3), blue(5)])
        result, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.discardPile"] == [red(5), red(3)]
        assert merged.game_updates["state.currentTurnPlayerId"] == "p2"
        assert merged.game_updates["state.status"] == "in-progress"
        assert merged.game_updates["state.currentColor"] is None
        assert merged.hand_updates == {"p1": [blue(5)]}
        assert merged.player_updates["p1"]["cardCount"] == 1
        assert merged.player_updates["p1"]["mustCallUno"] is True
        assert merged.player_updates["p1"]["gameStats.cardsPlayed"] == 1
        assert merged.player_updates["p1"]["gameStats.specialCardsPlayed"] == 0
        assert [e.type for e in merged.events] == ["card_played"]

    def test_effects_are_tagged_with_rule_names(self, pipeline):
        """Each play effect names the rule that produced it."""
        ctx = build_context(PlayCardAction(card_index=0), [red(3), blue(5)])
        result, _ = run_action(pipeline, ctx)
        assert {effect.source_rule for effect in result.effects} == {
            "update-player-hand",
            "update-discard-pile",
            "apply-card-effect",
            "update-player-stats",
        }

    def test_stacking_draw2(self, pipeline):
        """mustDraw 2 + draw2 = 4, turn passes on."""
        game = build_game(
            players=("p1", "p2", "p3"),
            discard=[red(DRAW2)],
            must_draw=2,
            house_rules=[HouseRule.STACKING],
        )
        ctx = build_context(PlayCardAction(card_index=0), [blue(DRAW2), red(1)], game)
        _, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.mustDraw"] == 4
        assert merged.game_updates["state.currentTurnPlayerId"] == "p2"
        assert merged.player_updates["p1"]["gameStats.specialCardsPlayed"] == 1

    def test_stacking_waives_wild_draw4_restriction(self, pipeline):
        """Under a stacked penalty Wild Draw Four adds four."""
        game = build_game(discard=[red(DRAW2)], must_draw=2, house_rules=[HouseRule.STACKING])
        ctx = build_context(
            PlayCardAction(card_index=0, chosen_color=Color.GREEN),
            [Card.wild(WILD_DRAW4), red(3)],
            game,
        )
        _, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.mustDraw"] == 6
        assert merged.game_updates["state.currentColor"] == "green"

    def test_wild_sets_current_color(self, pipeline):
        """A wild sets the current color."""
        ctx = build_context(
            PlayCardAction(card_index=1, chosen_color=Color.YELLOW),
            [red(1), Card.wild(WILD)],
        )
        _, merged = run_action(pipeline, ctx)
        assert merged.game_updates["state.currentColor"] == "yellow"

    def test_reverse_with_two_players_acts_as_skip(self, pipeline):
        """Reverse with two players returns the turn."""
        ctx = build_context(PlayCardAction(card_index=0), [red(REVERSE), blue(1)])
        _, merged = run_action(pipeline, ctx)
        assert merged.game_updates["state.direction"] == "counter-clockwise"
        assert merged.game_updates["state.currentTurnPlayerId"] == "p1"

    def test_reverse_with_three_players(self, pipeline):
        """Reverse with three players moves the turn backwards."""
        game = build_game(players=("p1", "p2", "p3"))
        ctx = build_context(PlayCardAction(card_index=0), [red(REVERSE), blue(1)], game)
        _, merged = run_action(pipeline, ctx)
        assert merged.game_updates["state.currentTurnPlayerId"] == "p3"

    def test_skip(self, pipeline):
        """Skip passes over the next player."""
        game = build_game(players=("p1", "p2", "p3"))
        ctx = build_context(PlayCardAction(card_index=0), [red(SKIP), blue(1)], game)
        _, merged = run_action(pipeline, ctx)
        assert merged.game_updates["state.currentTurnPlayerId"] == "p3"

    def test_counter_clockwise_play(self, pipeline):
        """Counter-clockwise play moves to the previous seat."""
        game = build_game(players=("p1", "p2", "p3"), direction=Direction.COUNTER_CLOCKWISE)
        ctx = build_context(PlayCardAction(card_index=0), [red(1), blue(1)], game)
        _, merged = run_action(pipeline, ctx)
        assert merged.game_updates["state.currentTurnPlayerId"] == "p3"

    def test_winning_play(self, pipeline):
        """Playing the last card completes the game."""
        ctx = build_context(PlayCardAction(card_index=0), [red(3)])
        _, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.status"] == "completed"
        assert merged.game_updates["state.currentTurnPlayerId"] is None
        assert merged.hand_updates == {"p1": []}
        assert merged.player_updates["p1"]["status"] == "winner"
        assert merged.player_updates["p1"]["mustCallUno"] is False


class TestDrawApply:
    """Tests for draw effects."""

    def hands(self):
        """Opponent hands for draw tests."""
        return {"p2": [green(2), yellow(4)]}

    def test_optional_draw(self, pipeline, deck_cache):
        """An optional draw adds one card and keeps the turn."""
        ctx = build_context(
            DrawCardAction(count=1), [blue(1)], other_hands=self.hands(), deck_cache=deck_cache
        )
        result, merged = run_action(pipeline, ctx)

        assert len(result.cards_drawn) == 1
        drawn = result.cards_drawn[0]
        expected_next = "p1" if is_card_playable(drawn, red(5), None, 0, []) else "p2"
        assert merged.game_updates["state.currentTurnPlayerId"] == expected_next
        assert merged.hand_updates["p1"] == [blue(1), drawn]
        assert merged.player_updates["p1"]["cardCount"] == 2
        assert merged.player_updates["p1"]["gameStats.cardsDrawn"] == 1
        assert "gameStats.turnsPlayed" not in merged.player_updates["p1"]

    def test_draw_excludes_held_cards(self, pipeline, deck_cache):
        """Draws skip cards already held or discarded."""
        deck = deck_cache.get("test-seed")
        hand = list(deck[:10])
        game = build_game(discard=[deck[10]])
        ctx = build_context(
            DrawCardAction(count=3), hand, game, other_hands={"p2": list(deck[11:20])},
            deck_cache=deck_cache,
        )
        result, _ = run_action(pipeline, ctx)
        assert result.cards_drawn == list(deck[20:23])

    def test_penalty_draw(self, pipeline, deck_cache):
        """A penalty draw takes mustDraw cards and ends the turn."""
        game = build_game(discard=[red(DRAW2)], must_draw=2)
        ctx = build_context(
            DrawCardAction(count=1), [blue(1)], game, other_hands=self.hands(), deck_cache=deck_cache
        )
        result, merged = run_action(pipeline, ctx)

        assert len(result.cards_drawn) == 2
        assert merged.game_updates["state.mustDraw"] == 0
        assert merged.game_updates["state.currentTurnPlayerId"] == "p2"
        assert merged.player_updates["p1"]["gameStats.turnsPlayed"] == 1
        assert merged.player_updates["p1"]["hasCalledUno"] is False

    def test_penalty_ignores_stacking_and_draw_to_match(self, pipeline, deck_cache):
        """Penalty draws take the full count under any house rule."""
        game = build_game(
            discard=[red(DRAW2)],
            must_draw=4,
            house_rules=[HouseRule.STACKING, HouseRule.DRAW_TO_MATCH],
        )
        ctx = build_context(
            DrawCardAction(), [blue(1)], game, other_hands=self.hands(), deck_cache=deck_cache
        )
        result, merged = run_action(pipeline, ctx)
        assert len(result.cards_drawn) == 4
        assert merged.game_updates["state.currentTurnPlayerId"] == "p2"

    def test_draw_to_match_keeps_turn(self, pipeline, deck_cache):
        """Draw-to-match stops at a playable card and keeps the turn."""
        game = build_game(house_rules=[HouseRule.DRAW_TO_MATCH])
        ctx = build_context(
            DrawCardAction(), [blue(1)], game, other_hands=self.hands(), deck_cache=deck_cache
        )
        result, merged = run_action(pipeline, ctx)

        assert result.cards_drawn
        assert is_card_playable(result.cards_drawn[-1], red(5), None, 0, [])
        assert merged.game_updates["state.currentTurnPlayerId"] == "p1"
        assert merged.hand_updates["p1"] == [blue(1)] + result.cards_drawn

    def test_reshuffle_writes_new_seed(self, pipeline, deck_cache):
        """A reshuffle stores the new seed and the top discard."""
        deck = list(deck_cache.get("test-seed"))
        discard = deck[:6]
        hand = deck[6:50]
        other = deck[50:107]
        game = build_game(discard=discard)
        ctx = build_context(
            DrawCardAction(count=2), hand, game, other_hands={"p2": other},
            deck_cache=deck_cache, seed_factory=make_seed_factory("reshuffle"),
        )
        _, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.deckSeed"] == "reshuffle-0"
        assert merged.game_updates["state.discardPile"] == [deck[5]]

    def test_missing_hands_dependency(self, pipeline, deck_cache):
        """Draw apply needs opponent hands in the context."""
        ctx = build_context(DrawCardAction(), [blue(1)], deck_cache=deck_cache)
        run_validation(pipeline, ctx)
        with pytest.raises(UnoError) as exc:
            apply_rule_phase(pipeline, ctx)
        assert exc.value.kind is ErrorKind.INTERNAL
        assert "player_hands" in exc.value.message


class TestPassApply:
    """Tests for pass effects."""

    def test_pass_moves_turn(self, pipeline):
        """Passing moves the turn and counts a turn played."""
        game = build_game(players=("p1", "p2", "p3"), direction=Direction.COUNTER_CLOCKWISE)
        ctx = build_context(PassTurnAction(), [red(1)], game)
        _, merged = run_action(pipeline, ctx)

        assert merged.game_updates["state.currentTurnPlayerId"] == "p3"
        assert merged.player_updates["p1"]["gameStats.turnsPlayed"] == 1
        assert merged.player_updates["p1"]["mustCallUno"] is False
        assert not merged.hand_updates
