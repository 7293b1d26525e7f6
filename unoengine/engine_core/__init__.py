"""
Engine Core - Cards, deck, effects and scoring.

The pure layer under the rule pipeline:
1. Card identity and legality (cards)
2. Seeded deck and draw engine (deck, draw)
3. Declarative effects and their aggregation (effects, aggregator)
4. Game document projections (state)
5. End-of-game scoring (scoring)
6. Per-turn phase labels (turns)
"""

from .errors import UnoError, ErrorKind, ErrorCode, ERROR_STATUS_CODES
from .cards import (
    Card,
    CardKind,
    Color,
    Direction,
    HouseRule,
    CardEffectResult,
    is_card_playable,
    is_draw_card,
    is_special_card,
    apply_card_effect,
    get_next_player_id,
    get_top_card,
)
from .action import ActionType, GameAction, PlayCardAction, DrawCardAction, PassTurnAction, parse_action
from .state import (
    GameStatus,
    PlayerStatus,
    GameConfig,
    GameState,
    Game,
    GamePlayer,
    GameStats,
    PlayerHand,
    UserStats,
)
from .deck import DeckCache, DECK_SIZE, build_ordered_deck, generate_deck_seed
from .draw import DrawResult, draw_cards_from_deck, draw_to_match, MAX_DRAW_TO_MATCH_ATTEMPTS
from .effects import (
    RuleEffect,
    UpdateGameEffect,
    UpdatePlayerEffect,
    UpdateHandEffect,
    SetWinnerEffect,
    EmitEventsEffect,
    GameEvent,
    FinalizeData,
)
from .aggregator import AggregatedEffects, detect_effect_conflicts, validate_effect
from .scoring import (
    FinalScores,
    PlayerScore,
    calculate_card_score,
    calculate_hand_score,
    compute_final_scores,
    update_user_stats,
)
from .turns import TurnPhase, TurnTrigger, next_turn_phase, resolve_turn_phase

__all__ = [
    "UnoError",
    "ErrorKind",
    "ErrorCode",
    "ERROR_STATUS_CODES",
    "Card",
    "CardKind",
    "Color",
    "Direction",
    "HouseRule",
    "CardEffectResult",
    "is_card_playable",
    "is_draw_card",
    "is_special_card",
    "apply_card_effect",
    "get_next_player_id",
    "get_top_card",
    "ActionType",
    "GameAction",
    "PlayCardAction",
    "DrawCardAction",
    "PassTurnAction",
    "parse_action",
    "GameStatus",
    "PlayerStatus",
    "GameConfig",
    "GameState",
    "Game",
    "GamePlayer",
    "GameStats",
    "PlayerHand",
    "UserStats",
    "DeckCache",
    "DECK_SIZE",
    "build_ordered_deck",
    "generate_deck_seed",
    "DrawResult",
    "draw_cards_from_deck",
    "draw_to_match",
    "MAX_DRAW_TO_MATCH_ATTEMPTS",
    "RuleEffect",
    "UpdateGameEffect",
    "UpdatePlayerEffect",
    "UpdateHandEffect",
    "SetWinnerEffect",
    "EmitEventsEffect",
    "GameEvent",
    "FinalizeData",
    "AggregatedEffects",
    "detect_effect_conflicts",
    "validate_effect",
    "FinalScores",
    "PlayerScore",
    "calculate_card_score",
    "calculate_hand_score",
    "compute_final_scores",
    "update_user_stats",
    "TurnPhase",
    "TurnTrigger",
    "next_turn_phase",
    "resolve_turn_phase",
]
