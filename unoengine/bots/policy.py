"""
Bot Policy - Interface for bot decision-making.

A BotPolicy looks at its own hand and the public game state and picks
one of the legal actions. Decisions include:
- Which action to take (play/draw/pass)
- The color to name when playing a wild card

Legal actions are computed with the same legality helpers the rule
pipeline uses, so a bot never submits an action the engine rejects.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
import random

from ..engine_core.action import DrawCardAction, GameAction, PassTurnAction, PlayCardAction
from ..engine_core.cards import (
    Card,
    Color,
    get_top_card,
    is_card_playable,
    violates_wild_draw4_restriction,
)
from ..engine_core.state import Game, GameStatus, PlayerHand


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains the action to submit and an explanation for logs/UI.
    """
    action: GameAction
    explanation: str = ""
    confidence: float = 1.0
    evaluated_actions: int = 0


def playable_indexes(game: Game, hand: PlayerHand) -> list[int]:
    """Hand positions the engine would accept for a play right now."""
    state = game.state
    top_card = get_top_card(state.discard_pile)
    return [
        index
        for index, card in enumerate(hand.cards)
        if is_card_playable(card, top_card, state.current_color, state.must_draw, game.house_rules)
        and not violates_wild_draw4_restriction(
            hand.cards, index, top_card, state.current_color, state.must_draw
        )
    ]


def legal_actions(game: Game, hand: PlayerHand, has_drawn: bool = False) -> list[GameAction]:
    """
    Plays first, then draw or pass.

    Wild plays are returned without a color; the policy names one.
    After drawing this turn a bot may pass instead of drawing again,
    unless a penalty is pending.
    """
    if game.state.status is not GameStatus.IN_PROGRESS:
        return []

    actions: list[GameAction] = [PlayCardAction(card_index=i) for i in playable_indexes(game, hand)]
    if game.state.must_draw > 0 or not has_drawn:
        actions.append(DrawCardAction(count=1))
    else:
        actions.append(PassTurnAction())
    return actions


def most_common_color(cards: list[Card], default: Color = Color.RED) -> Color:
    counts = Counter(card.color for card in cards if card.color is not None)
    if not counts:
        return default
    return counts.most_common(1)[0][0]


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions. Implementations can
    range from simple heuristics to search.
    """

    @abstractmethod
    def select_action(
        self,
        game: Game,
        hand: PlayerHand,
        legal_actions: list[GameAction],
    ) -> BotDecision:
        """
        Select an action from the legal actions.

        Args:
            game: Current public game state
            hand: The bot's own hand
            legal_actions: Actions the engine would accept

        Returns:
            BotDecision with the selected action
        """

    @abstractmethod
    def choose_color(self, game: Game, hand: PlayerHand, card_index: int) -> Color:
        """Color to name when playing the wild card at `card_index`."""

    def decide(self, game: Game, hand: PlayerHand, has_drawn: bool = False) -> BotDecision:
        """Pick an action and fill in the color for wild plays."""
        actions = legal_actions(game, hand, has_drawn)
        if not actions:
            raise ValueError("No legal actions available")

        decision = self.select_action(game, hand, actions)
        action = decision.action
        if isinstance(action, PlayCardAction) and hand.cards[action.card_index].is_wild:
            color = self.choose_color(game, hand, action.card_index)
            decision.action = PlayCardAction(card_index=action.card_index, chosen_color=color)
        return decision

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - prefers a random play, draws otherwise.

    Seeded for reproducible simulations.
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(
        self,
        game: Game,
        hand: PlayerHand,
        legal_actions: list[GameAction],
    ) -> BotDecision:
        plays = [a for a in legal_actions if isinstance(a, PlayCardAction)]
        action = self.rng.choice(plays or legal_actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            confidence=1.0 / len(plays or legal_actions),
            evaluated_actions=len(legal_actions),
        )

    def choose_color(self, game: Game, hand: PlayerHand, card_index: int) -> Color:
        return self.rng.choice(list(Color))


class FirstPlayablePolicy(BotPolicy):
    """
    First-playable policy - always selects the first legal action.

    Legal actions list plays first, so this plays whenever it can.
    Deterministic, used for tests.
    """

    def select_action(
        self,
        game: Game,
        hand: PlayerHand,
        legal_actions: list[GameAction],
    ) -> BotDecision:
        return BotDecision(
            action=legal_actions[0],
            explanation="Selected first legal action",
            evaluated_actions=1,
        )

    def choose_color(self, game: Game, hand: PlayerHand, card_index: int) -> Color:
        rest = hand.without(card_index)
        return most_common_color(rest)
