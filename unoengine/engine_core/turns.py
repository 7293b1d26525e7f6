"""
Turn Phases - Informational per-turn state machine.

Mirrors the labels clients show. TURN_COMPLETE is never persisted; it
is the point at which currentTurnPlayerId has been reassigned.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .errors import UnoError


class TurnPhase(str, Enum):
    AWAITING_PLAY = "awaiting-play"
    AWAITING_DRAW = "awaiting-draw"
    RESOLVING_EFFECT = "resolving-effect"
    TURN_COMPLETE = "turn-complete"


class TurnTrigger(str, Enum):
    PLAY = "play"
    DRAW_OPTIONAL = "draw-optional"
    DRAW_PENALTY = "draw-penalty"
    DRAW_TO_MATCH = "draw-to-match"
    PASS = "pass"
    RESOLVE = "resolve"


@dataclass(frozen=True)
class TurnTransition:
    source: TurnPhase
    target: TurnPhase
    trigger: TurnTrigger


TURN_TRANSITIONS: tuple[TurnTransition, ...] = (
    TurnTransition(TurnPhase.AWAITING_PLAY, TurnPhase.RESOLVING_EFFECT, TurnTrigger.PLAY),
    TurnTransition(TurnPhase.AWAITING_DRAW, TurnPhase.RESOLVING_EFFECT, TurnTrigger.PLAY),
    TurnTransition(TurnPhase.AWAITING_PLAY, TurnPhase.AWAITING_DRAW, TurnTrigger.DRAW_OPTIONAL),
    TurnTransition(TurnPhase.AWAITING_PLAY, TurnPhase.AWAITING_DRAW, TurnTrigger.DRAW_TO_MATCH),
    TurnTransition(TurnPhase.AWAITING_PLAY, TurnPhase.TURN_COMPLETE, TurnTrigger.DRAW_PENALTY),
    TurnTransition(TurnPhase.AWAITING_PLAY, TurnPhase.TURN_COMPLETE, TurnTrigger.PASS),
    TurnTransition(TurnPhase.AWAITING_DRAW, TurnPhase.TURN_COMPLETE, TurnTrigger.PASS),
    TurnTransition(TurnPhase.RESOLVING_EFFECT, TurnPhase.TURN_COMPLETE, TurnTrigger.RESOLVE),
)


def next_turn_phase(phase: TurnPhase, trigger: TurnTrigger) -> TurnPhase | None:
    """Target phase for a trigger, or None when the transition is not allowed."""
    for transition in TURN_TRANSITIONS:
        if transition.source is phase and transition.trigger is trigger:
            return transition.target
    return None


def resolve_turn_phase(
    triggers: Iterable[TurnTrigger],
    start: TurnPhase = TurnPhase.AWAITING_PLAY,
) -> TurnPhase:
    """
    Fold a sequence of triggers from `start`.

    Raises:
        UnoError(INTERNAL) when a trigger is not allowed from the
        phase reached so far.
    """
    phase = start
    for trigger in triggers:
        target = next_turn_phase(phase, trigger)
        if target is None:
            raise UnoError.internal(
                f"No turn transition from {phase.value} on {trigger.value}",
                phase=phase.value,
                trigger=trigger.value,
            )
        phase = target
    return phase
