"""
Cards - Card identity, legality and per-card effects.

All functions here are pure: they take values and return values.
Cards have no stable IDs; equality is structural (kind + color + value).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from .errors import ErrorCode, UnoError


class Color(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"


class CardKind(str, Enum):
    NUMBER = "number"
    SPECIAL = "special"
    WILD = "wild"


class Direction(str, Enum):
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter-clockwise"

    def reversed(self) -> Direction:
        if self is Direction.CLOCKWISE:
            return Direction.COUNTER_CLOCKWISE
        return Direction.CLOCKWISE


class HouseRule(str, Enum):
    """
    Optional rule variants.

    Only STACKING and DRAW_TO_MATCH change engine behavior;
    the others are accepted in configs and reserved.
    """
    STACKING = "stacking"
    JUMP_IN = "jumpIn"
    SEVEN_SWAP = "sevenSwap"
    DRAW_TO_MATCH = "drawToMatch"
    ZERO_ROTATION = "zeroRotation"


SKIP = "skip"
REVERSE = "reverse"
DRAW2 = "draw2"
WILD = "wild"
WILD_DRAW4 = "wild_draw4"

NUMBER_VALUES = tuple(range(10))
SPECIAL_VALUES = (SKIP, REVERSE, DRAW2)
WILD_VALUES = (WILD, WILD_DRAW4)


@dataclass(frozen=True)
class Card:
    """
    An immutable card value.

    Number cards: color + value 0-9.
    Special cards: color + skip/reverse/draw2.
    Wild cards: wild/wild_draw4, no color.
    """
    kind: CardKind
    value: int | str
    color: Color | None = None

    def __post_init__(self):
        if self.kind is CardKind.NUMBER:
            valid = (
                isinstance(self.value, int)
                and not isinstance(self.value, bool)
                and self.value in NUMBER_VALUES
            )
        elif self.kind is CardKind.SPECIAL:
            valid = self.value in SPECIAL_VALUES
        else:
            valid = self.value in WILD_VALUES
        if not valid:
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST,
                f"Invalid value {self.value!r} for {self.kind.value} card",
            )
        if (self.kind is CardKind.WILD) != (self.color is None):
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST,
                "Only wild cards are colorless",
                kind=self.kind.value,
            )

    @classmethod
    def number(cls, color: Color | str, value: int) -> Card:
        return cls(kind=CardKind.NUMBER, value=value, color=Color(color))

    @classmethod
    def special(cls, color: Color | str, value: str) -> Card:
        return cls(kind=CardKind.SPECIAL, value=value, color=Color(color))

    @classmethod
    def wild(cls, value: str = WILD) -> Card:
        return cls(kind=CardKind.WILD, value=value)

    @property
    def is_wild(self) -> bool:
        return self.kind is CardKind.WILD

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value, "value": self.value}
        if self.color is not None:
            data["color"] = self.color.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        """Parse the stored/wire representation of a card."""
        try:
            kind = CardKind(data["kind"])
            color = Color(data["color"]) if data.get("color") is not None else None
            value = data["value"]
        except (KeyError, ValueError, TypeError) as e:
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST, f"Malformed card: {data!r}"
            ) from e
        return cls(kind=kind, value=value, color=color)

    def __str__(self) -> str:
        if self.color is None:
            return str(self.value)
        return f"{self.color.value} {self.value}"


def cards_to_dicts(cards: Iterable[Card]) -> list[dict[str, Any]]:
    return [card.to_dict() for card in cards]


def cards_from_dicts(data: Iterable[dict[str, Any]]) -> list[Card]:
    return [Card.from_dict(item) for item in data]


def parse_color(value: Color | str | None) -> Color | None:
    """Parse an optional color, raising INVALID_COLOR on unknown names."""
    if value is None:
        return None
    try:
        return Color(value)
    except ValueError as e:
        raise UnoError.validation(
            ErrorCode.INVALID_COLOR, f"Unknown color: {value!r}", color=value
        ) from e


def is_draw_card(card: Card) -> bool:
    """Draw Two or Wild Draw Four."""
    return (card.kind is CardKind.SPECIAL and card.value == DRAW2) or (
        card.kind is CardKind.WILD and card.value == WILD_DRAW4
    )


def is_special_card(card: Card) -> bool:
    """Anything that is not a number card (counts towards specialCardsPlayed)."""
    return card.kind is not CardKind.NUMBER


def get_top_card(discard_pile: Sequence[Card]) -> Card:
    if not discard_pile:
        raise UnoError.validation(ErrorCode.INVALID_REQUEST, "Discard pile is empty")
    return discard_pile[-1]


def active_color(top_card: Card, current_color: Color | str | None) -> Color | None:
    """The color in effect: chosen color after a wild, else the top card's color."""
    if current_color is not None:
        return Color(current_color)
    if top_card.is_wild:
        return None
    return top_card.color


def is_card_playable(
    card: Card,
    top_card: Card,
    current_color: Color | str | None,
    must_draw: int,
    house_rules: Iterable[HouseRule | str],
) -> bool:
    """
    Check whether a card may be played on top of another.

    With a pending penalty only draw cards are playable, and only when
    stacking is enabled. Otherwise wilds always play and other cards
    must match the active color or the top card's value.
    """
    if must_draw > 0:
        return HouseRule.STACKING in list(house_rules) and is_draw_card(card)

    if card.is_wild:
        return True

    color = active_color(top_card, current_color)
    if color is not None and card.color == color:
        return True

    return card.value == top_card.value


def violates_wild_draw4_restriction(
    hand: Sequence[Card],
    played_index: int,
    top_card: Card,
    current_color: Color | str | None,
    must_draw: int,
) -> bool:
    """
    Wild Draw Four is illegal while holding another card of the active color.

    Waived while a penalty is pending (the play can only be a stack)
    and when no color is active.
    """
    if hand[played_index].value != WILD_DRAW4 or must_draw > 0:
        return False
    color = active_color(top_card, current_color)
    if color is None:
        return False
    return any(
        card.color is color for index, card in enumerate(hand) if index != played_index
    )


@dataclass(frozen=True)
class CardEffectResult:
    """Turn-order consequences of playing a card."""
    direction: Direction
    must_draw: int
    skip_next: bool


def apply_card_effect(card: Card, direction: Direction | str, must_draw: int) -> CardEffectResult:
    """
    Compute direction, accumulated penalty and skip for a played card.

    Penalties accumulate: draw2 on draw2 gives 4, wild_draw4 on draw2 gives 6.
    """
    next_direction = Direction(direction)
    next_must_draw = must_draw
    skip_next = False

    if card.kind is CardKind.SPECIAL:
        if card.value == SKIP:
            skip_next = True
        elif card.value == REVERSE:
            next_direction = next_direction.reversed()
        elif card.value == DRAW2:
            next_must_draw += 2
    elif card.value == WILD_DRAW4:
        next_must_draw += 4

    return CardEffectResult(
        direction=next_direction,
        must_draw=next_must_draw,
        skip_next=skip_next,
    )


def get_next_player_id(
    players: Sequence[str],
    current_index: int,
    direction: Direction | str,
    skip_next: bool,
) -> str:
    """Advance one seat in the given direction, two when skipping."""
    step = 1 if Direction(direction) is Direction.CLOCKWISE else -1
    offset = 2 if skip_next else 1
    return players[(current_index + step * offset) % len(players)]
