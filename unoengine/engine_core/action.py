"""
Actions - What a player asks the engine to do.

Three player actions flow through the rule pipeline:
1. play  {cardIndex, chosenColor?}
2. draw  {count}
3. pass

Actions are validated by rules, not here: an out-of-range card index
or a zero draw count is a rule failure with a specific error code.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from .cards import Color
from .errors import ErrorCode, UnoError


class ActionType(str, Enum):
    PLAY = "play"
    DRAW = "draw"
    PASS = "pass"


@dataclass(frozen=True)
class PlayCardAction:
    action_type: ClassVar[ActionType] = ActionType.PLAY
    card_index: int
    chosen_color: Color | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.action_type.value, "cardIndex": self.card_index}
        if self.chosen_color is not None:
            data["chosenColor"] = self.chosen_color.value
        return data


@dataclass(frozen=True)
class DrawCardAction:
    action_type: ClassVar[ActionType] = ActionType.DRAW
    count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.action_type.value, "count": self.count}


@dataclass(frozen=True)
class PassTurnAction:
    action_type: ClassVar[ActionType] = ActionType.PASS

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.action_type.value}


GameAction = Union[PlayCardAction, DrawCardAction, PassTurnAction]


def parse_action(data: dict[str, Any]) -> GameAction:
    """Build an action from its wire form."""
    try:
        action_type = ActionType(data["type"])
        if action_type is ActionType.PLAY:
            color = data.get("chosenColor")
            return PlayCardAction(
                card_index=int(data["cardIndex"]),
                chosen_color=Color(color) if color is not None else None,
            )
        if action_type is ActionType.DRAW:
            return DrawCardAction(count=int(data.get("count", 1)))
        return PassTurnAction()
    except (KeyError, ValueError, TypeError) as e:
        raise UnoError.validation(
            ErrorCode.INVALID_REQUEST, f"Malformed action: {data!r}"
        ) from e
