"""Tests for Moore-neighborhood analysis on a bounded board."""

import numpy as np
import pytest

from superlife.core.board import Board
from superlife.core.cell import Cell
from superlife.core.neighbors import (
    NEIGHBOR_OFFSETS, collect_neighbor_owners, count_live_neighbors, neighbor_count_grid
)


def full_board(size: int = 10, player: int = 0) -> Board:
    return Board.from_pattern(size, np.ones((size, size), dtype=bool), 0, 0, player=player)


class TestNeighborCounting:
    """Test live neighbor counts."""

    def test_offsets(self):
        assert len(NEIGHBOR_OFFSETS) == 8
        assert (0, 0) not in NEIGHBOR_OFFSETS

    def test_center_cell_not_counted(self):
        board = Board.empty(10).with_cell(5, 5, Cell.token(0))
        assert count_live_neighbors(board, 5, 5) == 0

    def test_all_around(self):
        board = full_board().with_cell(5, 5, Cell())
        assert count_live_neighbors(board, 5, 5) == 8

    @pytest.mark.parametrize("row,col,expected", [
        (0, 0, 3),
        (0, 9, 3),
        (9, 0, 3),
        (9, 9, 3),
        (0, 5, 5),
        (5, 0, 5),
        (5, 5, 8),
    ])
    def test_boundary_effects(self, row, col, expected):
        """No wraparound: corners see 3 neighbors, edges 5."""
        assert count_live_neighbors(full_board(), row, col) == expected

    def test_counts_always_in_range(self):
        """Every position of a random board yields 0-8."""
        rng = np.random.default_rng(7)
        alive = rng.random((12, 12)) < 0.5
        board = Board(12, alive=alive, owner=np.where(alive, 0, -1))
        for row in range(12):
            for col in range(12):
                assert 0 <= count_live_neighbors(board, row, col) <= 8

    def test_grid_matches_per_cell_counts(self):
        """Vectorised counts agree with the per-cell version."""
        rng = np.random.default_rng(11)
        alive = rng.random((15, 15)) < 0.4
        board = Board(15, alive=alive, owner=np.where(alive, 1, -1))

        grid = neighbor_count_grid(board)
        expected = np.array([[count_live_neighbors(board, r, c) for c in range(15)]
                             for r in range(15)])
        np.testing.assert_array_equal(grid, expected)


class TestNeighborOwners:
    """Test owner collection for birth resolution."""

    def test_duplicates_kept(self):
        board = (Board.empty(10)
                 .with_cell(0, 0, Cell.token(0))
                 .with_cell(0, 1, Cell.token(0))
                 .with_cell(0, 2, Cell.token(1)))
        assert sorted(collect_neighbor_owners(board, 1, 1)) == [0, 0, 1]

    def test_dead_and_unowned_neighbors_skipped(self):
        board = (Board.empty(10)
                 .with_cell(0, 0, Cell(alive=True))
                 .with_cell(0, 1, Cell.token(1)))
        assert collect_neighbor_owners(board, 1, 1) == [1]

    def test_corner(self):
        assert collect_neighbor_owners(full_board(player=1), 0, 0) == [1, 1, 1]
