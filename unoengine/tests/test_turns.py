"""
Tests for the turn phase machine.
"""

import pytest

from ..engine_core.errors import ErrorKind, UnoError
from ..engine_core.turns import TurnPhase, TurnTrigger, next_turn_phase, resolve_turn_phase


class TestTurnPhases:
    """Tests for turn phase transitions."""

    def test_play_resolves_effect(self):
        """A play moves to effect resolution."""
        assert next_turn_phase(TurnPhase.AWAITING_PLAY, TurnTrigger.PLAY) is TurnPhase.RESOLVING_EFFECT

    def test_optional_draw_awaits_decision(self):
        """An optional draw leaves the player deciding."""
        assert next_turn_phase(TurnPhase.AWAITING_PLAY, TurnTrigger.DRAW_OPTIONAL) is TurnPhase.AWAITING_DRAW

    def test_penalty_draw_completes_turn(self):
        """A penalty draw ends the turn."""
        assert next_turn_phase(TurnPhase.AWAITING_PLAY, TurnTrigger.DRAW_PENALTY) is TurnPhase.TURN_COMPLETE

    def test_invalid_transition_is_none(self):
        """Nothing resolves before a card is played."""
        assert next_turn_phase(TurnPhase.AWAITING_PLAY, TurnTrigger.RESOLVE) is None
        assert next_turn_phase(TurnPhase.TURN_COMPLETE, TurnTrigger.PLAY) is None

    def test_draw_then_pass(self):
        """Drawing then passing completes the turn."""
        triggers = [TurnTrigger.DRAW_OPTIONAL, TurnTrigger.PASS]
        assert resolve_turn_phase(triggers) is TurnPhase.TURN_COMPLETE

    def test_play_then_resolve(self):
        """Playing then resolving completes the turn."""
        assert resolve_turn_phase([TurnTrigger.PLAY, TurnTrigger.RESOLVE]) is TurnPhase.TURN_COMPLETE

    def test_draw_then_play(self):
        """A drawn card can still be played."""
        triggers = [TurnTrigger.DRAW_TO_MATCH, TurnTrigger.PLAY]
        assert resolve_turn_phase(triggers) is TurnPhase.RESOLVING_EFFECT

    def test_no_triggers(self):
        """With no triggers the phase stays where it started."""
        assert resolve_turn_phase([]) is TurnPhase.AWAITING_PLAY
        assert resolve_turn_phase([], start=TurnPhase.AWAITING_DRAW) is TurnPhase.AWAITING_DRAW

    def test_invalid_sequence_raises(self):
        """An illegal transition is an internal error naming the trigger."""
        with pytest.raises(UnoError) as exc:
            resolve_turn_phase([TurnTrigger.RESOLVE])
        assert exc.value.kind is ErrorKind.INTERNAL
        assert exc.value.details["trigger"] == "resolve"
        assert exc.value.details["phase"] == "awaiting-play"
