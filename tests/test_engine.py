"""Tests for the generation step and game-end detection.

Classic patterns check the baseline automaton and the termination order
(fixed point, cycle, generation cap); single cells check superpower
effects and the death reset.
"""

import time

import numpy as np
import pytest

from superlife.core.board import Board, NO_OWNER
from superlife.core.cell import Cell, MemoryFlag, SuperpowerKind
from superlife.core.engine import (
    CycleHistory, DEFAULT_MAX_GENERATIONS, EndReason, HISTORY_LIMIT, SimulationEngine
)
from superlife.core.scoring import Scores
from superlife.errors import SimulationInvariantViolation

BLINKER = np.array([[True, True, True]])
BLOCK = np.ones((2, 2), dtype=bool)


def lone_cell(kind: int = 0, player: int = 0) -> Board:
    return Board.empty(10).with_cell(5, 5, Cell.token(player, kind))


class TestCycleHistory:
    """Ring buffer of recent fingerprints."""

    def fp(self, value: int) -> bytes:
        return bytes([value]) * 32

    def test_push_and_contains(self):
        history = CycleHistory()
        history.push(self.fp(1))
        assert self.fp(1) in history
        assert self.fp(2) not in history
        assert len(history) == 1

    def test_default_capacity(self):
        assert CycleHistory().capacity == HISTORY_LIMIT == 10

    def test_oldest_evicted(self):
        history = CycleHistory(capacity=3)
        for value in range(4):
            history.push(self.fp(value))

        assert len(history) == 3
        assert self.fp(0) not in history
        assert history.recent() == [self.fp(1), self.fp(2), self.fp(3)]

    def test_recent_before_full(self):
        history = CycleHistory(capacity=5)
        history.push(self.fp(7))
        history.push(self.fp(8))
        assert history.recent() == [self.fp(7), self.fp(8)]

    def test_copy_is_independent(self):
        history = CycleHistory()
        history.push(self.fp(1))
        clone = history.copy()
        clone.push(self.fp(2))

        assert self.fp(2) not in history
        assert len(history) == 1
        assert len(clone) == 2

    def test_wrong_fingerprint_length(self):
        with pytest.raises(ValueError, match="32 bytes"):
            CycleHistory().push(b"short")

    def test_invalid_capacity(self):
        with pytest.raises(ValueError, match="positive"):
            CycleHistory(0)

    def test_seeded(self):
        board = lone_cell()
        assert board.fingerprint() in CycleHistory.seeded(board)


class TestBaselineStepping:
    """Plain Conway behaviour with two-player ownership."""

    def setup_method(self):
        self.engine = SimulationEngine()

    def test_defaults(self):
        assert self.engine.max_generations == DEFAULT_MAX_GENERATIONS == 100
        assert self.engine.birth_rules == {3}
        assert self.engine.survival_rules == {2, 3}

    def test_blinker_oscillates(self):
        board = Board.from_pattern(10, BLINKER, 4, 3, player=0)
        vertical, changes = self.engine.next_board(board)

        assert changes == 4
        assert [(r, c) for r, c, _ in vertical.living_cells()] == [(3, 4), (4, 4), (5, 4)]
        assert all(cell.owner == 0 for _, _, cell in vertical.living_cells())

        horizontal, _ = self.engine.next_board(vertical)
        assert horizontal == board

    def test_blinker_detected_as_cycle(self):
        """Period-2 oscillator ends at generation 2 with player 0 winning 3-0."""
        board = Board.from_pattern(10, BLINKER, 4, 3, player=0)
        result = self.engine.run(board)

        assert result.end_reason is EndReason.CYCLE
        assert result.generation == 2
        assert result.scores == Scores(3, 0)
        assert result.winner == 0

    def test_lone_cell_dies_out(self):
        board = lone_cell()
        first = self.engine.step(board, 0, CycleHistory.seeded(board))

        assert first.changes == 1
        assert first.board.is_empty()
        assert not first.terminal

        second = self.engine.step(first.board, first.generation, first.history)
        assert second.changes == 0
        assert second.generation == 2
        assert second.end_reason is EndReason.EXTINCTION
        assert second.winner is None
        assert second.scores == Scores(0, 0)

    def test_block_is_stable(self):
        board = Board.from_pattern(10, BLOCK, 0, 0, player=1)
        result = self.engine.run(board)

        assert result.end_reason is EndReason.STABLE
        assert result.generation == 1
        assert result.winner == 1

    def test_birth_takes_majority_owner(self):
        """Owners [0, 0, 1] around (1, 1) give the newborn to player 0."""
        board = (Board.empty(10)
                 .with_cell(0, 0, Cell.token(0))
                 .with_cell(0, 1, Cell.token(0))
                 .with_cell(0, 2, Cell.token(1)))
        new_board, _ = self.engine.next_board(board)

        assert new_board[1, 1] == Cell.token(0)
        assert new_board[0, 1].alive
        assert not new_board[0, 0].alive
        assert not new_board[0, 2].alive

    def test_unowned_birth_does_not_happen(self):
        """B0 would birth every isolated cell, but nobody can own them."""
        engine = SimulationEngine(birth_rules={0}, survival_rules={2, 3})
        new_board, changes = engine.next_board(Board.empty(10))

        assert changes == 0
        assert new_board.is_empty()

    def test_generation_cap(self):
        engine = SimulationEngine(max_generations=1)
        result = engine.run(Board.from_pattern(10, BLINKER, 4, 3))

        assert result.end_reason is EndReason.MAX_GENERATIONS
        assert result.generation == 1
        assert result.winner == 0

    def test_stable_checked_before_cap(self):
        engine = SimulationEngine(max_generations=1)
        result = engine.run(Board.from_pattern(10, BLOCK, 4, 4))
        assert result.end_reason is EndReason.STABLE

    def test_input_board_untouched(self):
        board = Board.from_pattern(10, BLINKER, 4, 3)
        alive_before = board.alive.copy()
        owner_before = board.owner.copy()

        self.engine.step(board)

        np.testing.assert_array_equal(board.alive, alive_before)
        np.testing.assert_array_equal(board.owner, owner_before)

    def test_history_argument_not_modified(self):
        board = Board.from_pattern(10, BLINKER, 4, 3)
        history = CycleHistory.seeded(board)
        result = self.engine.step(board, 0, history)

        assert len(history) == 1
        assert len(result.history) == 2

    def test_max_steps_limits_run(self):
        engine = SimulationEngine(max_generations=1000)
        glider = np.array([[False, True, False],
                           [False, False, True],
                           [True, True, True]])
        result = engine.run(Board.from_pattern(30, glider, 0, 0), max_steps=3)

        assert result.generation == 3
        assert not result.terminal

    def test_corrupt_board_rejected(self):
        board = Board(10, owner=np.where(np.eye(10, dtype=bool), 0, NO_OWNER))
        with pytest.raises(SimulationInvariantViolation):
            self.engine.step(board)


class TestSuperpowerStepping:
    """Superpower effects as seen through a full step."""

    def test_death_resets_cell(self):
        """An isolated Destroyer dies and leaves nothing behind."""
        engine = SimulationEngine()
        new_board, changes = engine.next_board(lone_cell(SuperpowerKind.DESTROYER, player=1))

        assert changes == 1
        assert new_board[5, 5].is_clean
        assert not new_board[5, 5].alive

    def test_survivor_becomes_veteran(self):
        engine = SimulationEngine()
        result = engine.run(lone_cell(SuperpowerKind.SURVIVOR, player=1))

        cell = result.board[5, 5]
        assert cell.alive
        assert cell.has_memory(MemoryFlag.IS_VETERAN)
        assert result.end_reason is EndReason.STABLE
        assert result.winner == 1

    def test_destroyer_scarred_in_block(self):
        board = (Board.from_pattern(10, BLOCK, 4, 4)
                 .with_cell(4, 4, Cell.token(0, SuperpowerKind.DESTROYER)))
        new_board, _ = SimulationEngine().next_board(board)
        assert new_board[4, 4].has_memory(MemoryFlag.BATTLE_SCARRED)
        assert not new_board[4, 5].has_memory(MemoryFlag.BATTLE_SCARRED)

    def test_newborns_roll_superpowers(self):
        engine = SimulationEngine(enabled_superpowers=[SuperpowerKind.SPREADER],
                                  superpower_percentage=100,
                                  rng=np.random.default_rng(0))
        new_board, _ = engine.next_board(Board.from_pattern(10, BLINKER, 4, 3))

        assert new_board[3, 4].superpower == SuperpowerKind.SPREADER
        assert new_board[5, 4].superpower == SuperpowerKind.SPREADER
        # Survivors keep what they had
        assert new_board[4, 4].superpower == SuperpowerKind.NONE

    def test_seeded_engines_agree(self):
        """Same seed, same game."""
        rng = np.random.default_rng(3)
        alive = rng.random((20, 20)) < 0.35
        powers = np.where(alive, rng.integers(0, 8, (20, 20)), 0)
        owner = np.where(alive, rng.integers(0, 2, (20, 20)), NO_OWNER)
        board = Board(20, alive=alive, owner=owner, superpower=powers)

        results = []
        for _ in range(2):
            engine = SimulationEngine(enabled_superpowers=range(1, 8), superpower_percentage=20,
                                      max_generations=25, rng=np.random.default_rng(99))
            results.append(engine.run(board))

        assert results[0].board == results[1].board
        assert results[0].generation == results[1].generation
        assert results[0].end_reason == results[1].end_reason

    def test_engine_seed_replays_game(self):
        board = Board.from_pattern(12, BLINKER, 5, 4, player=0).with_cell(1, 1, Cell.token(1))
        runs = [SimulationEngine(enabled_superpowers=range(1, 8), superpower_percentage=50,
                                 seed=5).run(board) for _ in range(2)]

        assert runs[0].board == runs[1].board
        assert runs[0].end_reason == runs[1].end_reason

    def test_unseeded_engine_records_its_seed(self):
        engine = SimulationEngine()
        assert isinstance(engine.seed, int)

        twin = SimulationEngine(seed=engine.seed)
        assert engine.rng.random() == twin.rng.random()

    def test_seed_taken_from_config(self):
        from superlife.game.config import GameConfig

        assert SimulationEngine.from_config(GameConfig(seed=7)).seed == 7

    def test_explicit_rng_keeps_given_seed(self):
        engine = SimulationEngine(rng=np.random.default_rng(1))
        assert engine.seed is None


class TestStepPerformance:
    """A step must fit comfortably inside the 200ms tick."""

    def test_largest_common_board_step_time(self):
        rng = np.random.default_rng(1)
        alive = rng.random((40, 40)) < 0.5
        owner = np.where(alive, rng.integers(0, 2, (40, 40)), NO_OWNER)
        board = Board(40, alive=alive, owner=owner)
        engine = SimulationEngine()

        engine.step(board)  # warm up
        start = time.perf_counter()
        engine.step(board)
        elapsed = time.perf_counter() - start

        assert elapsed < 0.2, f"Step took {elapsed * 1000:.1f}ms"
