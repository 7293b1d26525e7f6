"""
Tests for bot policies and the CLI.
"""

import pytest

from ..bots import FirstPlayablePolicy, RandomPolicy, legal_actions, playable_indexes
from ..cli import main
from ..engine_core.action import DrawCardAction, PassTurnAction, PlayCardAction
from ..engine_core.cards import Card, Color, HouseRule, DRAW2, WILD, WILD_DRAW4
from ..engine_core.state import GameStatus, PlayerHand
from .conftest import blue, build_game, green, red, yellow


def hand_of(*cards):
    return PlayerHand("p1", list(cards))


class TestLegalActions:
    """Tests for legal_actions and playable_indexes."""

    def test_plays_then_draw(self):
        """Playable cards are listed first, then a draw."""
        actions = legal_actions(build_game(), hand_of(red(1), blue(2), green(5)))
        assert actions == [
            PlayCardAction(card_index=0),
            PlayCardAction(card_index=2),
            DrawCardAction(count=1),
        ]

    def test_pass_after_drawing(self):
        """After drawing with nothing playable the only move is pass."""
        actions = legal_actions(build_game(), hand_of(blue(2)), has_drawn=True)
        assert actions == [PassTurnAction()]

    def test_penalty_forces_draw(self):
        """A pending penalty without stacking forces a draw."""
        game = build_game(discard=[red(DRAW2)], must_draw=2)
        actions = legal_actions(game, hand_of(blue(DRAW2)), has_drawn=True)
        assert actions == [DrawCardAction(count=1)]

    def test_stacking_allows_draw_cards(self):
        """Under stacking only draw cards answer a penalty."""
        game = build_game(discard=[red(DRAW2)], must_draw=2, house_rules=[HouseRule.STACKING])
        assert playable_indexes(game, hand_of(blue(DRAW2), red(1))) == [0]

    def test_wild_draw4_restriction(self):
        """A held card of the active color rules out Wild Draw Four."""
        hand = hand_of(Card.wild(WILD_DRAW4), red(9))
        assert playable_indexes(build_game(), hand) == [1]

    def test_no_actions_when_game_over(self):
        """A finished game has no legal actions."""
        game = build_game(status=GameStatus.COMPLETED)
        assert legal_actions(game, hand_of(red(1))) == []


class TestPolicies:
    """Tests for bot policies."""

    def test_first_playable_names_common_color(self):
        """A wild names the most common color in hand."""
        hand = hand_of(Card.wild(WILD), green(1), green(2), blue(3))
        decision = FirstPlayablePolicy().decide(build_game(discard=[yellow(4)]), hand)
        assert decision.action == PlayCardAction(card_index=0, chosen_color=Color.GREEN)

    def test_random_policy_prefers_plays(self):
        """The random policy plays when it can."""
        policy = RandomPolicy(seed=7)
        for _ in range(10):
            decision = policy.decide(build_game(), hand_of(red(1), red(2), blue(9)))
            assert isinstance(decision.action, PlayCardAction)

    def test_random_policy_is_reproducible(self):
        """Equal seeds give equal decisions."""
        hand = hand_of(red(1), red(2), red(3), red(4))
        first = RandomPolicy(seed=3).decide(build_game(), hand).action
        again = RandomPolicy(seed=3).decide(build_game(), hand).action
        assert first == again

    def test_names(self):
        """Policies report their class name."""
        assert FirstPlayablePolicy().get_name() == "FirstPlayablePolicy"


class TestCLI:
    """Tests for the command line entry point."""

    def test_deck(self, capsys):
        """deck prints one line per requested card."""
        assert main(["deck", "some-seed", "-n", "3"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3
        assert [line.split()[0] for line in lines] == ["0", "1", "2"]

    def test_rules(self, capsys):
        """rules lists the phases and rule names."""
        assert main(["rules"]) == 0
        out = capsys.readouterr().out
        assert "[pre-validate]" in out
        assert "finalize-game" in out

    def test_simulate(self, capsys):
        """simulate plays a game to the end."""
        assert main(["simulate", "--players", "3", "--seed", "cli", "--policy", "first"]) == 0
        assert "Game " in capsys.readouterr().out

    @pytest.mark.parametrize("argv", [
        ["simulate", "--players", "1"],
        ["simulate", "--house-rule", "doubleDown"],
    ])
    def test_simulate_rejects_bad_options(self, argv, capsys):
        """Bad simulate options exit with status 1."""
        assert main(argv) == 1
        assert "Error" in capsys.readouterr().err

    def test_no_command(self, capsys):
        """Running without a command exits with status 1."""
        assert main([]) == 1
