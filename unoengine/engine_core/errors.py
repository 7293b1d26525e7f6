"""
Errors - One exception type, categorised by kind and code.

Error flow:
1. A rule or the service raises UnoError with an ErrorCode
2. Expected kinds (validation, game state, rule violation, resource)
   propagate unchanged so the caller can map the code to a message
3. Anything else raised inside a rule is wrapped into an INTERNAL
   UnoError carrying rule/phase/game/player context

Callers should branch on `code` (or `kind`), never on the message.
"""

from __future__ import annotations
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Category of an error."""
    VALIDATION = "validation"
    GAME_STATE = "game_state"
    RULE_VIOLATION = "rule_violation"
    RESOURCE = "resource"
    AUTH = "auth"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    """Wire-stable error codes shared with clients."""
    # Validation
    INVALID_CARD_INDEX = "INVALID_CARD_INDEX"
    INVALID_REQUEST = "INVALID_REQUEST"
    CARD_NOT_PLAYABLE = "CARD_NOT_PLAYABLE"
    WILD_COLOR_REQUIRED = "WILD_COLOR_REQUIRED"
    INVALID_DRAW_COUNT = "INVALID_DRAW_COUNT"
    MUST_DRAW_CARDS = "MUST_DRAW_CARDS"
    NOT_ENOUGH_CARDS = "NOT_ENOUGH_CARDS"
    HAND_NOT_EMPTY = "HAND_NOT_EMPTY"
    INVALID_COLOR = "INVALID_COLOR"

    # Game state
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_IN_GAME = "NOT_IN_GAME"
    MAX_PLAYERS_REACHED = "MAX_PLAYERS_REACHED"
    MIN_PLAYERS_NOT_MET = "MIN_PLAYERS_NOT_MET"

    # Rule violation
    RULE_CONFLICT = "RULE_CONFLICT"
    ILLEGAL_STACKING = "ILLEGAL_STACKING"

    # Auth
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Internal / resource
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DECK_EXHAUSTED = "DECK_EXHAUSTED"


# HTTP status per code, used by the API layer.
ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.INVALID_CARD_INDEX: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.CARD_NOT_PLAYABLE: 400,
    ErrorCode.WILD_COLOR_REQUIRED: 400,
    ErrorCode.INVALID_DRAW_COUNT: 400,
    ErrorCode.INVALID_COLOR: 400,
    ErrorCode.MUST_DRAW_CARDS: 412,
    ErrorCode.NOT_YOUR_TURN: 412,
    ErrorCode.GAME_NOT_IN_PROGRESS: 412,
    ErrorCode.GAME_ALREADY_STARTED: 412,
    ErrorCode.HAND_NOT_EMPTY: 412,
    ErrorCode.ILLEGAL_STACKING: 412,
    ErrorCode.MIN_PLAYERS_NOT_MET: 412,
    ErrorCode.GAME_NOT_FOUND: 404,
    ErrorCode.PLAYER_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.NOT_IN_GAME: 404,
    ErrorCode.NOT_ENOUGH_CARDS: 409,
    ErrorCode.DECK_EXHAUSTED: 409,
    ErrorCode.MAX_PLAYERS_REACHED: 409,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.RULE_CONFLICT: 500,
}


class UnoError(Exception):
    """
    Raised for every expected and unexpected engine failure.

    Attributes:
        kind: Error category
        code: Wire-stable error code
        message: Human-readable message (not a contract)
        details: Free-form context for diagnostics
    """

    def __init__(
        self,
        kind: ErrorKind,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.kind = kind
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"UnoError({self.kind.value}, {self.code.value}, {self.message!r})"

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES.get(self.code, 500)

    @property
    def is_expected(self) -> bool:
        """Domain outcomes that callers map to user messages."""
        return self.kind is not ErrorKind.INTERNAL

    def to_response(self) -> dict[str, Any]:
        """Serialise to the {code, message, details} wire shape."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details or None,
        }

    @classmethod
    def validation(cls, code: ErrorCode, message: str, **details: Any) -> UnoError:
        return cls(ErrorKind.VALIDATION, code, message, details)

    @classmethod
    def game_state(cls, code: ErrorCode, message: str, **details: Any) -> UnoError:
        return cls(ErrorKind.GAME_STATE, code, message, details)

    @classmethod
    def rule_violation(cls, code: ErrorCode, message: str, **details: Any) -> UnoError:
        return cls(ErrorKind.RULE_VIOLATION, code, message, details)

    @classmethod
    def resource(cls, code: ErrorCode, message: str, **details: Any) -> UnoError:
        return cls(ErrorKind.RESOURCE, code, message, details)

    @classmethod
    def auth(cls, code: ErrorCode, message: str, **details: Any) -> UnoError:
        return cls(ErrorKind.AUTH, code, message, details)

    @classmethod
    def internal(
        cls,
        message: str = "An unexpected error occurred",
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        **details: Any,
    ) -> UnoError:
        return cls(ErrorKind.INTERNAL, code, message, details)


def has_error_code(error: BaseException, code: ErrorCode) -> bool:
    """Check whether an exception is an UnoError with the given code."""
    return isinstance(error, UnoError) and error.code == code
