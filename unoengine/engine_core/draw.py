"""
Draw Engine - Draw cards without a stored draw pile.

Available cards are recomputed on every draw:

    deck(seed) - cards in any hand - cards in the discard pile

so the draw pile is implicitly reconstructible from game state alone.
When not enough cards remain and the discard pile holds more than its
top card, the pile is reshuffled: a fresh seed is generated and only
the top discard card stays "used", returning the rest to the deck.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence
import logging

from .cards import Card, Color, HouseRule, is_card_playable
from .deck import DeckCache, generate_deck_seed
from .errors import ErrorCode, ErrorKind, UnoError

logger = logging.getLogger(__name__)

MAX_DRAW_TO_MATCH_ATTEMPTS = 50


@dataclass
class DrawResult:
    """Outcome of a draw, including the (possibly reshuffled) deck state."""
    drawn_cards: list[Card]
    deck_seed: str
    draw_pile_count: int
    discard_pile: list[Card]
    reshuffled: bool = False
    attempts: int = 0


def _available_cards(
    deck_cache: DeckCache, seed: str, used_cards: Iterable[Card]
) -> list[Card]:
    """Full deck for the seed minus the used cards (first occurrences)."""
    remaining = Counter(used_cards)
    available: list[Card] = []

    for card in deck_cache.get(seed):
        if remaining[card] > 0:
            remaining[card] -= 1
        else:
            available.append(card)

    missing = +remaining
    if missing:
        raise UnoError.internal(
            "Game state holds cards that are not in the deck",
            seed=seed,
            missing=[str(card) for card in missing.elements()],
        )
    return available


def draw_cards_from_deck(
    deck_cache: DeckCache,
    seed: str,
    discard_pile: Sequence[Card],
    hands: Iterable[Sequence[Card]],
    count: int,
    seed_factory: Callable[[], str] = generate_deck_seed,
) -> DrawResult:
    """
    Draw `count` cards given every hand and the discard pile.

    Raises:
        UnoError(RESOURCE) when the deck cannot supply enough cards,
        even after reshuffling the discard pile.
    """
    hand_cards = [card for hand in hands for card in hand]
    deck_seed = seed
    active_discard = list(discard_pile)
    reshuffled = False

    available = _available_cards(deck_cache, deck_seed, hand_cards + active_discard)

    if len(available) < count:
        if len(discard_pile) <= 1:
            raise UnoError.resource(
                ErrorCode.DECK_EXHAUSTED,
                "Not enough cards in deck to draw",
                requested=count,
                available=len(available),
            )

        deck_seed = seed_factory()
        active_discard = [discard_pile[-1]]
        reshuffled = True
        available = _available_cards(deck_cache, deck_seed, hand_cards + active_discard)
        logger.debug("Reshuffled discard pile into new deck seed %s", deck_seed)

    if len(available) < count:
        raise UnoError.resource(
            ErrorCode.NOT_ENOUGH_CARDS,
            "Not enough cards in deck to draw",
            requested=count,
            available=len(available),
        )

    return DrawResult(
        drawn_cards=available[:count],
        deck_seed=deck_seed,
        draw_pile_count=len(available) - count,
        discard_pile=active_discard,
        reshuffled=reshuffled,
        attempts=1,
    )


def draw_to_match(
    deck_cache: DeckCache,
    seed: str,
    discard_pile: Sequence[Card],
    player_hands: Mapping[str, Sequence[Card]],
    player_id: str,
    current_color: Color | str | None,
    house_rules: Iterable[HouseRule | str],
    draw_pile_count: int = 0,
    max_attempts: int = MAX_DRAW_TO_MATCH_ATTEMPTS,
    seed_factory: Callable[[], str] = generate_deck_seed,
) -> DrawResult:
    """
    Draw one card at a time until a playable card comes up.

    Each drawn card is added to the in-memory hand before the next draw
    so it is never considered available again. Stops on a playable card,
    on deck exhaustion (silently), or after `max_attempts` draws.
    """
    house_rules = list(house_rules)
    top_card = discard_pile[-1]
    hands = {pid: list(hand) for pid, hand in player_hands.items()}
    hands.setdefault(player_id, [])

    result = DrawResult(
        drawn_cards=[],
        deck_seed=seed,
        draw_pile_count=draw_pile_count,
        discard_pile=list(discard_pile),
    )

    while result.attempts < max_attempts:
        try:
            step = draw_cards_from_deck(
                deck_cache,
                result.deck_seed,
                result.discard_pile,
                hands.values(),
                1,
                seed_factory=seed_factory,
            )
        except UnoError as e:
            if e.kind is not ErrorKind.RESOURCE:
                raise
            logger.debug("Draw-to-match stopped: %s", e.message)
            break

        card = step.drawn_cards[0]
        hands[player_id].append(card)
        result.drawn_cards.append(card)
        result.deck_seed = step.deck_seed
        result.draw_pile_count = step.draw_pile_count
        result.discard_pile = step.discard_pile
        result.reshuffled = result.reshuffled or step.reshuffled
        result.attempts += 1

        if is_card_playable(card, top_card, current_color, 0, house_rules):
            break

    return result
