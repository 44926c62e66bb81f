#!/usr/bin/env python3
"""
Run a seeded headless SuperLife match.

Both players place their tokens at random positions, the board evolves
until it stabilises, cycles or hits the generation cap, and the finished
game is written to the local record store.
"""

import logging
import os
import sys

import numpy as np

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from superlife.core.rules import RuleParams
from superlife.game.config import GameConfig, SUPERPOWER_PRESETS
from superlife.game.session import GameStateMachine, Stage
from superlife.logging_setup import configure_logging
from superlife.records.replay import replay
from superlife.records.store import DEFAULT_STORE_PATH, GameRecordStore

logger = logging.getLogger(__name__)


def random_placements(machine: GameStateMachine, rng: np.random.Generator) -> int:
    """Place tokens at random free cells until placement ends."""
    attempts = 0
    while machine.get_stage() is Stage.PLACEMENT:
        row, col = rng.integers(0, machine.config.board_size, 2)
        machine.place_token(int(row), int(col))
        attempts += 1
    return attempts


def run_match(config: GameConfig, store: GameRecordStore, show_board: bool = False) -> int:
    machine = GameStateMachine(config, listeners=[store])
    rng = np.random.default_rng(machine.seed)

    attempts = random_placements(machine, rng)
    logger.info(f"Placed {len(machine.session.placements)} tokens in {attempts} attempts")
    if show_board:
        print(machine.get_board_snapshot())
        print()

    machine.run_to_end()
    record = machine.record
    scores = record.final_scores

    logger.info(f"Game {record.game_id} finished: {record.end_reason} after "
                f"{record.generations_elapsed} generations")
    logger.info(f"Scores: player 0 = {scores.player0}, player 1 = {scores.player1}, "
                f"winner = {record.winner if record.winner is not None else 'draw'}")
    if show_board:
        print(machine.get_board_snapshot())

    result = replay(record)
    logger.info(f"Replay from seed {record.seed}: {'matches' if result.matches_record else 'DIVERGED'}")
    return 0 if result.matches_record else 1


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Run a headless SuperLife match")
    parser.add_argument("--board-size", type=int, default=20, help="Board side length")
    parser.add_argument("--tokens", type=int, default=20, help="Tokens per player")
    parser.add_argument("--rules", type=str, default="B3/S23", help="Life rule notation")
    parser.add_argument("--preset", type=str, default="standard", choices=sorted(SUPERPOWER_PRESETS),
                        help="Superpower preset")
    parser.add_argument("--superpower-pct", type=float, default=20, help="Superpower chance (0-100)")
    parser.add_argument("--max-generations", type=int, default=100, help="Generation cap")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: random)")
    parser.add_argument("--store", type=str, default=str(DEFAULT_STORE_PATH), help="Record store path")
    parser.add_argument("--show-board", action="store_true", help="Print the board before and after")
    parser.add_argument("--log-level", type=str, default=None, help="Log level")

    args = parser.parse_args()
    configure_logging(args.log_level)

    rules = RuleParams.from_notation(args.rules)
    config = GameConfig.preset(args.preset,
                               board_size=args.board_size,
                               tokens_per_player=args.tokens,
                               birth_rules=rules.birth_set,
                               survival_rules=rules.survival_set,
                               superpower_percentage=args.superpower_pct,
                               max_generations=args.max_generations,
                               seed=args.seed)

    sys.exit(run_match(config, GameRecordStore(args.store), args.show_board))
