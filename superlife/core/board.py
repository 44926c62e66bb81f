"""Immutable board snapshots for the SuperLife cellular automaton.

The board is a square grid stored as four numpy arrays (alive, owner,
superpower, memory). Arrays are marked read-only on construction: every
change produces a new Board, so a generation step can never observe a
neighbor's already-updated state.
"""

import hashlib
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .cell import Cell
from ..errors import SimulationInvariantViolation

logger = logging.getLogger(__name__)

NO_OWNER = -1


class Board:
    """Square N x N board of cells.

    Attributes:
        size: Side length of the board
        alive: 2D bool array (True=alive)
        owner: 2D int8 array, NO_OWNER (-1) for unclaimed cells
        superpower: 2D uint8 array of SuperpowerKind values
        memory: 2D uint8 array of MemoryFlag bitsets
    """

    def __init__(self, size: int,
                 alive: Optional[np.ndarray] = None,
                 owner: Optional[np.ndarray] = None,
                 superpower: Optional[np.ndarray] = None,
                 memory: Optional[np.ndarray] = None):
        """Initialize board with given side length.

        Args:
            size: Board side length (cells)
            alive: Optional initial alive mask
            owner: Optional initial owner array (NO_OWNER for none)
            superpower: Optional initial superpower array
            memory: Optional initial memory array

        Raises:
            ValueError: If size is invalid or an array shape doesn't match
        """
        if size < 1:
            raise ValueError("Board size must be positive")

        self.size = size
        shape = (size, size)
        self.alive = self._freeze(alive, shape, bool, False, "alive")
        self.owner = self._freeze(owner, shape, np.int8, NO_OWNER, "owner")
        self.superpower = self._freeze(superpower, shape, np.uint8, 0, "superpower")
        self.memory = self._freeze(memory, shape, np.uint8, 0, "memory")

    @staticmethod
    def _freeze(array: Optional[np.ndarray], shape: Tuple[int, int], dtype,
                fill, name: str) -> np.ndarray:
        if array is None:
            result = np.full(shape, fill, dtype=dtype)
        else:
            result = np.array(array, dtype=dtype, copy=True)
            if result.shape != shape:
                raise ValueError(f"{name} shape {result.shape} doesn't match board size {shape}")
        result.setflags(write=False)
        return result

    @classmethod
    def empty(cls, size: int) -> 'Board':
        """Board with every cell dead and unclaimed."""
        return cls(size)

    @classmethod
    def from_cells(cls, rows: Sequence[Sequence[Cell]]) -> 'Board':
        """Build a board from a square matrix of Cell objects."""
        size = len(rows)
        if any(len(row) != size for row in rows):
            raise ValueError("Cell matrix must be square")

        alive = np.zeros((size, size), dtype=bool)
        owner = np.full((size, size), NO_OWNER, dtype=np.int8)
        superpower = np.zeros((size, size), dtype=np.uint8)
        memory = np.zeros((size, size), dtype=np.uint8)

        for r, row in enumerate(rows):
            for c, cell in enumerate(row):
                alive[r, c] = cell.alive
                owner[r, c] = NO_OWNER if cell.owner is None else cell.owner
                superpower[r, c] = cell.superpower
                memory[r, c] = cell.memory

        return cls(size, alive, owner, superpower, memory)

    @classmethod
    def from_pattern(cls, size: int, pattern: np.ndarray, row: int, col: int,
                     player: int = 0, superpower: int = 0) -> 'Board':
        """Create a board holding ``pattern`` at (row, col) owned by ``player``.

        Args:
            size: Board side length
            pattern: 2D boolean array of live cells
            row: Top row of the pattern
            col: Left column of the pattern
            player: Owner of every live pattern cell
            superpower: Superpower of every live pattern cell

        Returns:
            Board: New board containing the pattern
        """
        pattern = np.asarray(pattern, dtype=bool)
        height, width = pattern.shape
        if row < 0 or col < 0 or row + height > size or col + width > size:
            raise ValueError(f"Pattern {pattern.shape} at ({row}, {col}) doesn't fit a {size}x{size} board")

        alive = np.zeros((size, size), dtype=bool)
        alive[row:row + height, col:col + width] = pattern
        owner = np.where(alive, player, NO_OWNER).astype(np.int8)
        powers = np.where(alive, superpower, 0).astype(np.uint8)
        return cls(size, alive, owner, powers)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, row: int, col: int) -> Cell:
        """Get the cell at (row, col).

        Raises:
            IndexError: If coordinates are out of bounds
        """
        if not self.in_bounds(row, col):
            raise IndexError(f"Coordinates ({row}, {col}) out of bounds for {self.size}x{self.size} board")
        owner = int(self.owner[row, col])
        return Cell(owner=None if owner == NO_OWNER else owner,
                    alive=bool(self.alive[row, col]),
                    superpower=int(self.superpower[row, col]),
                    memory=int(self.memory[row, col]))

    def with_cell(self, row: int, col: int, cell: Cell) -> 'Board':
        """Return a new board with (row, col) replaced by ``cell``."""
        if not self.in_bounds(row, col):
            raise IndexError(f"Coordinates ({row}, {col}) out of bounds for {self.size}x{self.size} board")

        alive = self.alive.copy()
        owner = self.owner.copy()
        superpower = self.superpower.copy()
        memory = self.memory.copy()

        alive[row, col] = cell.alive
        owner[row, col] = NO_OWNER if cell.owner is None else cell.owner
        superpower[row, col] = cell.superpower
        memory[row, col] = cell.memory

        return Board(self.size, alive, owner, superpower, memory)

    def living_cells(self) -> Iterator[Tuple[int, int, Cell]]:
        """Iterate (row, col, cell) over living cells in row-major order."""
        rows, cols = np.nonzero(self.alive)
        for r, c in zip(rows.tolist(), cols.tolist()):
            yield r, c, self.cell(r, c)

    def to_cells(self) -> List[List[Cell]]:
        return [[self.cell(r, c) for c in range(self.size)] for r in range(self.size)]

    def count_alive(self) -> int:
        """Count total number of alive cells."""
        return int(np.count_nonzero(self.alive))

    def is_empty(self) -> bool:
        """Check if all cells are dead."""
        return not np.any(self.alive)

    def fingerprint(self) -> bytes:
        """Canonical SHA-256 digest over owner, alive and superpower of every cell.

        Memory flags are not part of the fingerprint; boards that differ
        only in memory count as the same position for cycle detection.
        """
        digest = hashlib.sha256()
        digest.update(self.size.to_bytes(2, 'big'))
        digest.update(self.owner.tobytes())
        digest.update(self.alive.tobytes())
        digest.update(self.superpower.tobytes())
        return digest.digest()

    def check_invariants(self) -> None:
        """Fail loudly if any dead cell still carries owner, superpower or memory.

        Raises:
            SimulationInvariantViolation: If a dead cell has residual state
        """
        dead = ~self.alive
        dirty = dead & ((self.owner != NO_OWNER) | (self.superpower != 0) | (self.memory != 0))
        if np.any(dirty):
            rows, cols = np.nonzero(dirty)
            positions = list(zip(rows.tolist(), cols.tolist()))[:5]
            raise SimulationInvariantViolation(
                f"{int(np.count_nonzero(dirty))} dead cell(s) carry residual state, e.g. {positions}")

    def __getitem__(self, key: Tuple[int, int]) -> Cell:
        """Access a cell using board[row, col] syntax."""
        row, col = key
        return self.cell(row, col)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return False
        return (self.size == other.size and
                np.array_equal(self.alive, other.alive) and
                np.array_equal(self.owner, other.owner) and
                np.array_equal(self.superpower, other.superpower) and
                np.array_equal(self.memory, other.memory))

    __hash__ = None

    def __str__(self) -> str:
        """Render living cells as their owner digit, dead cells as '.'."""
        lines = []
        for r in range(self.size):
            line = ''
            for c in range(self.size):
                if not self.alive[r, c]:
                    line += '.'
                elif self.owner[r, c] == NO_OWNER:
                    line += '?'
                else:
                    line += str(int(self.owner[r, c]))
            lines.append(line)
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"Board({self.size}x{self.size}, alive={self.count_alive()})"
