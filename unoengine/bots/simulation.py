"""
Simulation - Bot-vs-bot games driven through the game service.

The loop:
1. Create, join and start a game on the service
2. Ask the current player's policy for a decision
3. Submit it through the full rule pipeline
4. Declare UNO when a play leaves one card
5. Repeat until a winner, a stall or the action limit

Every action goes through the same transactional path as API calls,
so a simulation doubles as an end-to-end check of the engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Sequence
import logging

from ..engine_core.action import ActionType, PlayCardAction
from ..engine_core.errors import ErrorCode, UnoError, has_error_code
from ..engine_core.scoring import FinalScores
from ..engine_core.state import GameConfig, GameStatus
from ..service.game_service import ActionOutcome, GameService
from .policy import BotPolicy, FirstPlayablePolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_ACTIONS = 2000

# Draw failures a bot recovers from by passing
DRAW_FAILURES = (ErrorCode.DECK_EXHAUSTED, ErrorCode.NOT_ENOUGH_CARDS)


@dataclass
class SimulationResult:
    game_id: str
    winner_id: str | None = None
    final_scores: FinalScores | None = None
    outcomes: list[ActionOutcome] = field(default_factory=list)
    uno_calls: int = 0
    stalled: bool = False

    @property
    def actions(self) -> int:
        return len(self.outcomes)


async def simulate_game(
    service: GameService,
    player_ids: Sequence[str],
    policies: Mapping[str, BotPolicy] | None = None,
    config: GameConfig | None = None,
    max_actions: int = DEFAULT_MAX_ACTIONS,
) -> SimulationResult:
    """Play one game to completion with a policy per player."""
    policies = dict(policies or {})
    for pid in player_ids:
        policies.setdefault(pid, FirstPlayablePolicy())

    host, *guests = player_ids
    game = await service.create_game(host, config=config)
    game_id = game.game_id
    for pid in guests:
        await service.join_game(game_id, pid)
    await service.start_game(game_id)

    result = SimulationResult(game_id=game_id)
    has_drawn = False
    last_player = None

    while result.actions < max_actions:
        game = await service.get_game(game_id)
        if game.state.status is GameStatus.COMPLETED:
            break

        player_id = game.state.current_turn_player_id
        if player_id != last_player:
            has_drawn = False
            last_player = player_id

        hand = await service.get_hand(game_id, player_id)
        decision = policies[player_id].decide(game, hand, has_drawn)

        try:
            outcome = await service.perform_action(game_id, player_id, decision.action)
        except UnoError as e:
            if not any(has_error_code(e, code) for code in DRAW_FAILURES):
                raise
            if game.state.must_draw > 0:
                logger.info("Game %s stalled: %s", game_id, e.message)
                result.stalled = True
                break
            has_drawn = True
            continue

        result.outcomes.append(outcome)
        if outcome.winner_id:
            result.winner_id = outcome.winner_id
            result.final_scores = outcome.final_scores
            break

        if isinstance(decision.action, PlayCardAction):
            has_drawn = False
            if len(hand) == 2:
                await service.call_uno(game_id, player_id)
                result.uno_calls += 1
        elif outcome.action_type is ActionType.DRAW and outcome.next_player_id == player_id:
            has_drawn = True

    logger.info(
        "Simulated game %s: winner %s after %d actions",
        game_id, result.winner_id, result.actions,
    )
    return result
