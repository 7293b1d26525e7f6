"""
Scoring - End-of-game points, ranks and lifetime statistics.

Official UNO scoring, fixed:
- Number cards (0-9): face value
- Special cards (skip, reverse, draw2): 20
- Wild cards (wild, wild_draw4): 50

The winner scores the sum of every opponent's remaining hand.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence

from .cards import Card, CardKind
from .state import GamePlayer, UserStats

SPECIAL_CARD_POINTS = 20
WILD_CARD_POINTS = 50


def calculate_card_score(card: Card) -> int:
    if card.kind is CardKind.NUMBER:
        return int(card.value)
    if card.kind is CardKind.SPECIAL:
        return SPECIAL_CARD_POINTS
    return WILD_CARD_POINTS


def calculate_hand_score(hand: Iterable[Card]) -> int:
    return sum(calculate_card_score(card) for card in hand)


@dataclass
class PlayerScore:
    player_id: str
    display_name: str
    score: int
    card_count: int
    rank: int = 0

    def to_document(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "displayName": self.display_name,
            "score": self.score,
            "cardCount": self.card_count,
            "rank": self.rank,
        }


@dataclass
class FinalScores:
    winner_id: str
    winner_score: int
    player_scores: list[PlayerScore] = field(default_factory=list)
    completed_at: str | None = None

    def score_of(self, player_id: str) -> PlayerScore | None:
        for score in self.player_scores:
            if score.player_id == player_id:
                return score
        return None

    def to_document(self) -> dict[str, Any]:
        return {
            "winnerId": self.winner_id,
            "winnerScore": self.winner_score,
            "playerScores": [score.to_document() for score in self.player_scores],
            "completedAt": self.completed_at,
        }


def rank_players(
    winner_id: str,
    players: Sequence[str],
    hands: Mapping[str, Sequence[Card]],
) -> list[str]:
    """
    Winner first, then ascending remaining card count.

    Python's sort is stable, so ties keep seat order.
    """
    opponents = [pid for pid in players if pid != winner_id]
    opponents.sort(key=lambda pid: len(hands.get(pid, [])))
    return [winner_id] + opponents


def compute_final_scores(
    winner_id: str,
    players: Sequence[str],
    hands: Mapping[str, Sequence[Card]],
    game_players: Mapping[str, GamePlayer] | None = None,
    completed_at: str | None = None,
) -> FinalScores:
    """Score every opponent's hand, credit the total to the winner and rank."""
    game_players = game_players or {}
    opponent_scores = {
        pid: calculate_hand_score(hands.get(pid, []))
        for pid in players
        if pid != winner_id
    }
    winner_score = sum(opponent_scores.values())

    player_scores = []
    for rank, pid in enumerate(rank_players(winner_id, players, hands), start=1):
        player = game_players.get(pid)
        player_scores.append(PlayerScore(
            player_id=pid,
            display_name=player.display_name if player else pid,
            score=winner_score if pid == winner_id else opponent_scores[pid],
            card_count=len(hands.get(pid, [])),
            rank=rank,
        ))

    return FinalScores(
        winner_id=winner_id,
        winner_score=winner_score,
        player_scores=player_scores,
        completed_at=completed_at,
    )


def update_user_stats(
    stats: UserStats | None,
    game_id: str,
    is_winner: bool,
    game_score: int,
    cards_played: int,
    special_cards_played: int,
) -> UserStats:
    """
    Fold one finished game into a user's lifetime stats.

    Missing stats start from the zero baseline. A game already folded
    in (by id) returns the stats unchanged.
    """
    stats = stats or UserStats()
    if game_id in stats.processed_games:
        return stats

    games_played = stats.games_played + 1
    games_won = stats.games_won + (1 if is_winner else 0)

    return replace(
        stats,
        games_played=games_played,
        games_won=games_won,
        games_lost=stats.games_lost + (0 if is_winner else 1),
        total_score=stats.total_score + (game_score if is_winner else 0),
        highest_game_score=(
            max(stats.highest_game_score, game_score) if is_winner else stats.highest_game_score
        ),
        win_rate=games_won / games_played,
        cards_played=stats.cards_played + cards_played,
        special_cards_played=stats.special_cards_played + special_cards_played,
        processed_games=stats.processed_games + [game_id],
    )
