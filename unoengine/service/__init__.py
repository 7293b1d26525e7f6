"""
Service - Game orchestration over an in-memory document store.
"""

from .store import GameStore, Transaction, set_path, to_document_value
from .game_service import ActionOutcome, GameService, MIN_PLAYERS, UNO_PENALTY_CARDS

__all__ = [
    "GameStore",
    "Transaction",
    "set_path",
    "to_document_value",
    "ActionOutcome",
    "GameService",
    "MIN_PLAYERS",
    "UNO_PENALTY_CARDS",
]
