"""Deterministic replay of recorded games.

The placement phase is rebuilt from the recorded placements (including
the superpowers they rolled) and the simulation is re-run with the
simulation generator derived from the recorded seed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..core.board import Board
from ..core.cell import Cell
from ..core.engine import SimulationEngine, StepResult
from ..errors import RecordFormatError
from ..game.session import make_generators
from .record import GameRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of re-running a recorded game."""
    record: GameRecord
    initial_board: Board
    final: StepResult

    @property
    def matches_record(self) -> bool:
        """True when the replay reproduces the recorded outcome."""
        return (self.final.winner == self.record.winner and
                self.final.scores == self.record.final_scores and
                self.final.generation == self.record.generations_elapsed and
                self.final.end_reason is not None and
                self.final.end_reason.value == self.record.end_reason)


def initial_board(record: GameRecord) -> Board:
    """Board as it stood when the placement phase ended.

    Raises:
        RecordFormatError: If placements overlap or fall outside the board
    """
    board = Board.empty(record.settings.board_size)
    for placement in record.initial_placements:
        if not board.in_bounds(placement.row, placement.col):
            raise RecordFormatError(f"Placement {placement} outside the board")
        if board.cell(placement.row, placement.col).alive:
            raise RecordFormatError(f"Duplicate placement at ({placement.row}, {placement.col})")
        board = board.with_cell(placement.row, placement.col,
                                Cell.token(placement.player, placement.superpower))
    return board


def replay(record: GameRecord, max_steps: Optional[int] = None) -> ReplayResult:
    """Re-run the simulation of ``record``.

    Records without a seed replay with fresh randomness and will generally
    not match when superpowers were enabled.
    """
    board = initial_board(record)
    if record.seed is None:
        logger.warning(f"Record {record.game_id} has no seed; replay is not deterministic")
        engine = SimulationEngine.from_config(record.settings)
    else:
        _, simulation_rng = make_generators(record.seed)
        engine = SimulationEngine.from_config(record.settings, rng=simulation_rng)

    final = engine.run(board, max_steps=max_steps)
    result = ReplayResult(record=record, initial_board=board, final=final)
    if not result.matches_record:
        logger.warning(f"Replay of {record.game_id} diverged from the recorded outcome")
    return result
