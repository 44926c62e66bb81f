"""Moore-neighborhood analysis on a bounded SuperLife board.

The board does not wrap: positions outside the grid are treated as dead
and unowned.
"""

from typing import List, Tuple

import numpy as np

from .board import Board, NO_OWNER


NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)
)


def count_live_neighbors(board: Board, row: int, col: int) -> int:
    """Count living neighbors of cell at (row, col) using Moore neighborhood.

    Args:
        board: Board snapshot to read
        row: Cell row
        col: Cell column

    Returns:
        Number of live neighbors (0-8)
    """
    size = board.size
    alive = board.alive
    count = 0

    for dr, dc in NEIGHBOR_OFFSETS:
        r, c = row + dr, col + dc
        # Cells outside the board are dead
        if 0 <= r < size and 0 <= c < size and alive[r, c]:
            count += 1

    return count


def collect_neighbor_owners(board: Board, row: int, col: int) -> List[int]:
    """Owners of the alive, owned neighbors of (row, col).

    Duplicates are kept so the result can be used for majority voting.
    """
    size = board.size
    alive = board.alive
    owner = board.owner
    owners = []

    for dr, dc in NEIGHBOR_OFFSETS:
        r, c = row + dr, col + dc
        if 0 <= r < size and 0 <= c < size and alive[r, c] and owner[r, c] != NO_OWNER:
            owners.append(int(owner[r, c]))

    return owners


def neighbor_count_grid(board: Board) -> np.ndarray:
    """Live-neighbor count for every cell at once.

    Same semantics as count_live_neighbors, computed by summing the eight
    shifted views of a zero-padded alive mask.

    Returns:
        2D int array of neighbor counts (0-8)
    """
    size = board.size
    padded = np.zeros((size + 2, size + 2), dtype=np.int16)
    padded[1:-1, 1:-1] = board.alive

    counts = np.zeros((size, size), dtype=np.int16)
    for dr, dc in NEIGHBOR_OFFSETS:
        counts += padded[1 + dr:1 + dr + size, 1 + dc:1 + dc + size]
    return counts
