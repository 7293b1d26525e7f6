"""
Bots - Policies that pick UNO actions, and a simulation loop.
"""

from .policy import (
    BotDecision,
    BotPolicy,
    FirstPlayablePolicy,
    RandomPolicy,
    legal_actions,
    playable_indexes,
)
from .simulation import SimulationResult, simulate_game

__all__ = [
    "BotDecision",
    "BotPolicy",
    "FirstPlayablePolicy",
    "RandomPolicy",
    "legal_actions",
    "playable_indexes",
    "SimulationResult",
    "simulate_game",
]
