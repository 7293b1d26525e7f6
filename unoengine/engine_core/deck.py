"""
Deck - Deterministic, seed-based 108-card deck.

The deck is never stored. Given a seed string the full ordering is
reproduced on demand:
1. Build the ordered 108-card multiset
2. Hash the seed to a 32-bit integer
3. Drive a mulberry32 generator through a Fisher-Yates shuffle

Same seed, same ordering, every time. Orderings are memoized in a
DeckCache, which is a pure cache and safe to clear at any point.
"""

from __future__ import annotations
from typing import Callable, Iterator
import uuid

from .cards import Card, Color, NUMBER_VALUES, SPECIAL_VALUES, WILD, WILD_DRAW4
from .errors import ErrorCode, UnoError

DECK_SIZE = 108

_MASK32 = 0xFFFFFFFF


def build_ordered_deck() -> list[Card]:
    """The unshuffled multiset, in a fixed canonical order."""
    deck: list[Card] = []

    for color in Color:
        deck.append(Card.number(color, 0))
        for value in NUMBER_VALUES[1:]:
            deck.append(Card.number(color, value))
            deck.append(Card.number(color, value))
        for value in SPECIAL_VALUES:
            deck.append(Card.special(color, value))
            deck.append(Card.special(color, value))

    for _ in range(4):
        deck.append(Card.wild(WILD))
        deck.append(Card.wild(WILD_DRAW4))

    return deck


def hash_seed(seed: str) -> int:
    """
    Java-style string hash folded to a signed 32-bit integer.

    Hashes UTF-16 code units, so characters outside the BMP count as
    their two surrogates.
    """
    encoded = seed.encode("utf-16-le", "surrogatepass")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & _MASK32
    if value & 0x80000000:
        value -= 1 << 32
    return value


def mulberry32(seed: int) -> Callable[[], float]:
    """Small deterministic PRNG returning floats in [0, 1)."""
    state = seed & _MASK32

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        r = ((state ^ (state >> 15)) * (state | 1)) & _MASK32
        r ^= (r + (((r ^ (r >> 7)) * (r | 61)) & _MASK32)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / 4294967296

    return next_float


def shuffle_deck(seed: str) -> tuple[Card, ...]:
    """Fisher-Yates shuffle of the ordered deck driven by the seed."""
    deck = build_ordered_deck()
    random = mulberry32(hash_seed(seed))

    for i in range(len(deck) - 1, 0, -1):
        j = int(random() * (i + 1))
        deck[i], deck[j] = deck[j], deck[i]

    return tuple(deck)


def generate_deck_seed() -> str:
    """Fresh opaque seed for a new game or a reshuffle."""
    return uuid.uuid4().hex


class DeckCache:
    """
    Memoizes shuffled decks by seed.

    Entries are written once per key and never mutated, so concurrent
    readers are safe. Not authoritative state: clear() at will.

    Usage:
        cache = DeckCache()
        deck = cache.get("seed-1")
        card = cache.card_at("seed-1", 0)
    """

    def __init__(self):
        self._decks: dict[str, tuple[Card, ...]] = {}

    def get(self, seed: str) -> tuple[Card, ...]:
        deck = self._decks.get(seed)
        if deck is None:
            deck = self._decks.setdefault(seed, shuffle_deck(seed))
        return deck

    def card_at(self, seed: str, index: int) -> Card:
        deck = self.get(seed)
        if not 0 <= index < len(deck):
            raise UnoError.validation(
                ErrorCode.INVALID_REQUEST,
                f"Index {index} is out of bounds for deck size {len(deck)}",
                index=index,
            )
        return deck[index]

    def clear(self):
        self._decks.clear()

    def __len__(self) -> int:
        return len(self._decks)

    def __contains__(self, seed: str) -> bool:
        return seed in self._decks

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._decks))
