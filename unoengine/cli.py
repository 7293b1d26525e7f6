"""
UNO Engine CLI - Command-line interface for the engine.

Usage:
    unoengine deck <seed> [--count N]        Print the seeded deck order
    unoengine rules                          Show the default rule pipeline
    unoengine simulate [--players N] [--seed S] [--house-rule R ...]
                                             Play a bot-vs-bot game
"""

import argparse
import asyncio
import itertools
import sys

from .config import Settings, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="UNO Engine - Server-side UNO rule engine",
        prog="unoengine",
    )
    parser.add_argument("--log-level", help="Logging level (default from UNO_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Deck command
    deck_parser = subparsers.add_parser("deck", help="Print the deck order for a seed")
    deck_parser.add_argument("seed", help="Deck seed")
    deck_parser.add_argument("--count", "-n", type=int, default=108, help="Cards to print")

    # Rules command
    subparsers.add_parser("rules", help="Show the default rule pipeline")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a bot-vs-bot game")
    simulate_parser.add_argument("--players", type=int, default=2, help="Number of bots (2-10)")
    simulate_parser.add_argument("--seed", default="simulation", help="Deck seed")
    simulate_parser.add_argument(
        "--house-rule",
        action="append",
        default=[],
        dest="house_rules",
        help="Enable a house rule (repeatable): stacking, drawToMatch, ...",
    )
    simulate_parser.add_argument(
        "--policy",
        choices=["first", "random"],
        default="random",
        help="Bot policy for every player",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "deck":
        return cmd_deck(args)
    elif args.command == "rules":
        return cmd_rules(args)
    elif args.command == "simulate":
        return cmd_simulate(args)
    else:
        parser.print_help()
        return 1


def cmd_deck(args):
    """Print the seeded deck order."""
    from .engine_core.deck import DeckCache

    deck = DeckCache().get(args.seed)
    for index, card in enumerate(deck[:max(args.count, 0)]):
        print(f"{index:3d}  {card}")
    return 0


def cmd_rules(args):
    """Show the default pipeline and its dependencies."""
    from .rules import create_default_rule_pipeline, dependency_report

    print(dependency_report(create_default_rule_pipeline()))
    return 0


def cmd_simulate(args):
    """Play one bot-vs-bot game on an in-memory store."""
    from .bots import FirstPlayablePolicy, RandomPolicy, simulate_game
    from .engine_core.cards import HouseRule
    from .engine_core.errors import UnoError
    from .engine_core.state import GameConfig
    from .service import GameService

    if not 2 <= args.players <= 10:
        print("Error: --players must be between 2 and 10", file=sys.stderr)
        return 1

    try:
        house_rules = [HouseRule(rule) for rule in args.house_rules]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # First seed deals; reshuffles get derived seeds so reruns match
    reshuffles = itertools.count()
    seeds = (args.seed if n == 0 else f"{args.seed}-{n}" for n in reshuffles)

    service = GameService(settings=Settings.from_env(), seed_factory=lambda: next(seeds))
    player_ids = [f"bot-{i + 1}" for i in range(args.players)]
    if args.policy == "first":
        policies = {pid: FirstPlayablePolicy() for pid in player_ids}
    else:
        policies = {pid: RandomPolicy(seed=i) for i, pid in enumerate(player_ids)}

    config = GameConfig(max_players=args.players, house_rules=house_rules)
    try:
        result = asyncio.run(simulate_game(service, player_ids, policies, config=config))
    except UnoError as e:
        print(f"Error: [{e.code.value}] {e.message}", file=sys.stderr)
        return 1

    print(f"Game {result.game_id}: {result.actions} actions, {result.uno_calls} UNO calls")
    if result.stalled or result.winner_id is None:
        print("No winner (game stalled or hit the action limit)")
        return 0

    print(f"Winner: {result.winner_id} ({result.final_scores.winner_score} points)")
    for score in result.final_scores.player_scores:
        print(f"  #{score.rank} {score.player_id:<8} {score.score:4d} points  {score.card_count} cards")
    return 0


if __name__ == "__main__":
    sys.exit(main())
