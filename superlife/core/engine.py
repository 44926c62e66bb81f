"""SuperLife simulation engine.

Computes one generation of the two-player automaton: neighbor analysis,
rule evaluation with superpower overrides, ownership of newborn cells and
death resets, followed by game-end detection (fixed point, short cycle or
generation cap) and scoring of the final board.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .board import Board, NO_OWNER
from .cell import SuperpowerKind
from .neighbors import collect_neighbor_owners, count_live_neighbors
from .ownership import resolve_owner
from .rules import BIRTH_SET, SURVIVAL_SET, RandomSource, assign_superpower, evaluate
from .scoring import Scores, score_and_winner
from ..errors import SimulationInvariantViolation

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
DEFAULT_MAX_GENERATIONS = 100
FINGERPRINT_SIZE = 32  # SHA-256 digest


class EndReason(Enum):
    """Why a simulation reached the finished stage."""
    STABLE = "stable_state"
    EXTINCTION = "extinction"  # fixed point with no living cells
    CYCLE = "cycle"
    MAX_GENERATIONS = "max_generations"


class CycleHistory:
    """Fixed-size ring buffer of recent board fingerprints.

    Fingerprints live in a preallocated numpy arena; the write index wraps
    so only the most recent ``capacity`` entries are kept. Cycles longer
    than the capacity are not detected.
    """

    def __init__(self, capacity: int = HISTORY_LIMIT):
        if capacity < 1:
            raise ValueError("History capacity must be positive")
        self.capacity = capacity
        self._arena = np.zeros((capacity, FINGERPRINT_SIZE), dtype=np.uint8)
        self._index = 0
        self._count = 0

    @staticmethod
    def _as_row(fingerprint: bytes) -> np.ndarray:
        if len(fingerprint) != FINGERPRINT_SIZE:
            raise ValueError(f"Fingerprint must be {FINGERPRINT_SIZE} bytes, got {len(fingerprint)}")
        return np.frombuffer(fingerprint, dtype=np.uint8)

    def push(self, fingerprint: bytes) -> None:
        """Record a fingerprint, overwriting the oldest once full."""
        self._arena[self._index] = self._as_row(fingerprint)
        self._index = (self._index + 1) % self.capacity
        self._count = min(self._count + 1, self.capacity)

    def contains(self, fingerprint: bytes) -> bool:
        if self._count == 0:
            return False
        row = self._as_row(fingerprint)
        return bool(np.any(np.all(self._arena[:self._count] == row, axis=1)))

    def recent(self) -> List[bytes]:
        """Stored fingerprints, oldest first."""
        if self._count < self.capacity:
            order = range(self._count)
        else:
            order = [(self._index + i) % self.capacity for i in range(self.capacity)]
        return [self._arena[i].tobytes() for i in order]

    def copy(self) -> 'CycleHistory':
        clone = CycleHistory(self.capacity)
        clone._arena[:] = self._arena
        clone._index = self._index
        clone._count = self._count
        return clone

    @classmethod
    def seeded(cls, board: Board, capacity: int = HISTORY_LIMIT) -> 'CycleHistory':
        """History containing only ``board``'s fingerprint."""
        history = cls(capacity)
        history.push(board.fingerprint())
        return history

    def __contains__(self, fingerprint: bytes) -> bool:
        return self.contains(fingerprint)

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"CycleHistory({self._count}/{self.capacity})"


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single generation step."""
    board: Board
    generation: int
    changes: int
    fingerprint: bytes
    history: CycleHistory
    end_reason: Optional[EndReason] = None
    scores: Optional[Scores] = None
    winner: Optional[int] = None

    @property
    def terminal(self) -> bool:
        return self.end_reason is not None


class SimulationEngine:
    """Generation stepping for the two-player superpower automaton.

    The engine never mutates the board it is given: each step reads only
    the previous snapshot and returns a new one.
    """

    def __init__(self,
                 birth_rules: Iterable[int] = BIRTH_SET,
                 survival_rules: Iterable[int] = SURVIVAL_SET,
                 enabled_superpowers: Iterable[int] = (),
                 superpower_percentage: float = 0,
                 max_generations: int = DEFAULT_MAX_GENERATIONS,
                 rng: Optional[RandomSource] = None,
                 history_limit: int = HISTORY_LIMIT,
                 seed: Optional[int] = None):
        """Initialize the engine.

        Args:
            birth_rules: Neighbor counts that birth a dead cell
            survival_rules: Neighbor counts that keep a live cell alive
            enabled_superpowers: Kinds that newborn cells may roll
            superpower_percentage: Chance (0-100) a newborn rolls a superpower
            max_generations: Generation cap that forces the game to end
            rng: Random source for superpower rolls and Ghost/Replicator draws
            history_limit: Number of fingerprints kept for cycle detection
            seed: Seed for the engine's own generator when no rng is given;
                a fresh one is drawn (and kept in ``self.seed``) if omitted
        """
        self.birth_rules = frozenset(birth_rules)
        self.survival_rules = frozenset(survival_rules)
        self.enabled_superpowers = tuple(sorted(enabled_superpowers))
        self.superpower_percentage = superpower_percentage
        self.max_generations = max_generations
        self.seed = seed
        if rng is None:
            if self.seed is None:
                self.seed = int(np.random.SeedSequence().generate_state(1)[0])
            rng = np.random.default_rng(self.seed)
            logger.debug(f"Engine random source seeded with {self.seed}")
        self.rng = rng
        self.history_limit = history_limit

    @classmethod
    def from_config(cls, config, rng: Optional[RandomSource] = None) -> 'SimulationEngine':
        """Build an engine from a GameConfig.

        Without an explicit rng the engine seeds itself from ``config.seed``.
        """
        return cls(birth_rules=config.birth_rules,
                   survival_rules=config.survival_rules,
                   enabled_superpowers=config.enabled_superpowers,
                   superpower_percentage=config.superpower_percentage,
                   max_generations=config.max_generations,
                   rng=rng,
                   seed=config.seed)

    def next_board(self, board: Board) -> Tuple[Board, int]:
        """Compute the next generation.

        Args:
            board: Current board snapshot (left untouched)

        Returns:
            (new board, number of cells whose alive state flipped)

        Raises:
            SimulationInvariantViolation: If the input board is corrupt
        """
        board.check_invariants()

        alive = board.alive.copy()
        owner = board.owner.copy()
        superpower = board.superpower.copy()
        memory = board.memory.copy()
        changes = 0

        for row in range(board.size):
            for col in range(board.size):
                cell = board.cell(row, col)
                live_neighbors = count_live_neighbors(board, row, col)
                if not 0 <= live_neighbors <= 8:
                    raise SimulationInvariantViolation(
                        f"Neighbor count {live_neighbors} out of range at ({row}, {col})")

                outcome = evaluate(cell, live_neighbors, self.birth_rules,
                                   self.survival_rules, self.rng)

                if outcome.should_live and not cell.alive:
                    new_owner = resolve_owner(collect_neighbor_owners(board, row, col))
                    if new_owner is None:
                        # No owned neighbors: nobody can claim the cell
                        continue
                    alive[row, col] = True
                    owner[row, col] = new_owner
                    if cell.superpower == SuperpowerKind.NONE:
                        superpower[row, col] = assign_superpower(
                            self.enabled_superpowers, self.superpower_percentage, self.rng)
                    memory[row, col] = outcome.new_memory
                    changes += 1
                elif cell.alive and not outcome.should_live:
                    alive[row, col] = False
                    owner[row, col] = NO_OWNER
                    superpower[row, col] = 0
                    memory[row, col] = 0
                    changes += 1
                elif cell.alive:
                    memory[row, col] = outcome.new_memory

        return Board(board.size, alive, owner, superpower, memory), changes

    def step(self, board: Board, generation: int = 0,
             history: Optional[CycleHistory] = None) -> StepResult:
        """Advance one generation and check for the end of the game.

        Args:
            board: Current board snapshot
            generation: Generation number of ``board``
            history: Recent fingerprints (copied, never modified)

        Returns:
            StepResult for generation ``generation + 1``
        """
        new_board, changes = self.next_board(board)
        generation += 1
        fingerprint = new_board.fingerprint()
        history = history.copy() if history is not None else CycleHistory(self.history_limit)

        end_reason = None
        if changes == 0:
            end_reason = EndReason.EXTINCTION if new_board.is_empty() else EndReason.STABLE
        elif fingerprint in history:
            end_reason = EndReason.CYCLE
        history.push(fingerprint)

        if end_reason is None and generation >= self.max_generations:
            end_reason = EndReason.MAX_GENERATIONS

        scores = winner = None
        if end_reason is not None:
            scores, winner = score_and_winner(new_board)
            logger.info(f"Simulation ended at generation {generation}: {end_reason.value}, "
                        f"scores={scores.player0}-{scores.player1}, winner={winner}")
        else:
            logger.debug(f"Generation {generation}: {changes} changes, {new_board.count_alive()} alive")

        return StepResult(board=new_board, generation=generation, changes=changes,
                          fingerprint=fingerprint, history=history, end_reason=end_reason,
                          scores=scores, winner=winner)

    def run(self, board: Board, generation: int = 0,
            history: Optional[CycleHistory] = None,
            max_steps: Optional[int] = None) -> StepResult:
        """Step until the game ends or ``max_steps`` steps have run.

        When no history is given it is seeded with ``board`` itself, the
        same way a session starts its simulation stage.

        Returns:
            The last StepResult
        """
        if history is None:
            history = CycleHistory.seeded(board, self.history_limit)

        result = self.step(board, generation, history)
        steps = 1
        while not result.terminal and (max_steps is None or steps < max_steps):
            result = self.step(result.board, result.generation, result.history)
            steps += 1
        return result
