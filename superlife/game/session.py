"""Game session lifecycle: placement, simulation, pause and finish.

GameSession is an immutable snapshot of a running game. The module-level
functions are pure transitions (session in, new session out);
GameStateMachine wraps them behind the event/query interface used by the
UI layer and notifies finish listeners (record store, uploader) when a
game ends.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..core.board import Board
from ..core.cell import Cell, PLAYERS
from ..core.engine import CycleHistory, EndReason, SimulationEngine, StepResult
from ..core.rules import RandomSource, assign_superpower
from ..core.scoring import Scores, score
from ..errors import InvalidPlacement
from ..records.record import GameRecord, TokenPlacement
from .config import GameConfig

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 0.2


class Stage(Enum):
    """Coarse game lifecycle stage."""
    PLACEMENT = "placement"
    SIMULATION = "simulation"
    PAUSED = "paused"
    FINISHED = "finished"


def make_generators(seed: int) -> Tuple[np.random.Generator, np.random.Generator]:
    """Independent (placement, simulation) generators derived from one seed.

    Keeping the streams separate lets a replay reproduce the simulation
    from recorded placements without re-rolling placement superpowers.
    """
    placement_seq, simulation_seq = np.random.SeedSequence(seed).spawn(2)
    return np.random.default_rng(placement_seq), np.random.default_rng(simulation_seq)


def new_seed() -> int:
    return int(np.random.SeedSequence().generate_state(1)[0])


@dataclass(frozen=True)
class GameSession:
    """Run state of one game.

    Attributes:
        config: Settings the session was created with
        board: Current board snapshot
        stage: Lifecycle stage
        generation: Simulation steps taken so far
        tokens_remaining: Tokens left for (player 0, player 1)
        active_player: Player whose turn it is during placement
        placements: Accepted placements in order
        history: Recent board fingerprints for cycle detection
        winner: Winning player once finished (None for a draw)
        scores: Final living-cell counts once finished
        end_reason: Why the simulation ended
    """
    config: GameConfig
    board: Board
    stage: Stage = Stage.PLACEMENT
    generation: int = 0
    tokens_remaining: Tuple[int, int] = (0, 0)
    active_player: int = 0
    placements: Tuple[TokenPlacement, ...] = ()
    history: CycleHistory = field(default_factory=CycleHistory, compare=False)
    winner: Optional[int] = None
    scores: Optional[Scores] = None
    end_reason: Optional[EndReason] = None

    @classmethod
    def new(cls, config: GameConfig) -> 'GameSession':
        """Fresh session in the placement stage."""
        return cls(config=config,
                   board=Board.empty(config.board_size),
                   tokens_remaining=config.starting_tokens())

    @property
    def is_finished(self) -> bool:
        return self.stage is Stage.FINISHED

    @property
    def placement_complete(self) -> bool:
        return sum(self.tokens_remaining) == 0


def placement_error(session: GameSession, row: int, col: int,
                    player: Optional[int] = None) -> Optional[str]:
    """Reason a placement would be rejected, None if it is valid."""
    if session.stage is not Stage.PLACEMENT:
        return f"stage is {session.stage.value}"
    if not session.board.in_bounds(row, col):
        return "outside the board"
    if player is not None and player != session.active_player:
        return f"it is player {session.active_player}'s turn"
    if session.board.cell(row, col).owner is not None:
        return "cell already owned"
    if session.tokens_remaining[session.active_player] <= 0:
        return f"player {session.active_player} has no tokens left"
    return None


def place_token(session: GameSession, row: int, col: int,
                rng: RandomSource, player: Optional[int] = None) -> Optional[GameSession]:
    """Place a token for the active player.

    Returns:
        The new session, or None if the placement is invalid
    """
    reason = placement_error(session, row, col, player)
    if reason is not None:
        logger.debug(f"Rejected placement at ({row}, {col}): {reason}")
        return None

    config = session.config
    current = session.active_player
    superpower = assign_superpower(config.enabled_superpowers, config.superpower_percentage, rng)
    board = session.board.with_cell(row, col, Cell.token(current, superpower))

    tokens = list(session.tokens_remaining)
    tokens[current] -= 1
    placement = TokenPlacement(row=row, col=col, player=current, superpower=superpower,
                               move_number=len(session.placements) + 1)

    active = current
    if tokens[current] == 0:
        # Player 0 places all tokens before player 1 begins
        active = next((p for p in PLAYERS if tokens[p] > 0), current)

    session = replace(session, board=board, tokens_remaining=tuple(tokens),
                      active_player=active, placements=session.placements + (placement,))

    if session.placement_complete:
        session = begin_simulation(session)
    return session


def begin_simulation(session: GameSession) -> GameSession:
    """Leave placement; the cycle history starts with the placed board."""
    logger.info(f"Placement complete ({len(session.placements)} tokens), starting simulation")
    return replace(session, stage=Stage.SIMULATION, generation=0,
                   history=CycleHistory.seeded(session.board))


def advance(session: GameSession, engine: SimulationEngine) -> Tuple[GameSession, Optional[StepResult]]:
    """Run one generation if the session is simulating.

    Returns:
        (new session, step result); the result is None when nothing ran
    """
    if session.stage is not Stage.SIMULATION:
        return session, None

    result = engine.step(session.board, session.generation, session.history)
    session = replace(session, board=result.board, generation=result.generation,
                      history=result.history)
    if result.terminal:
        session = replace(session, stage=Stage.FINISHED, winner=result.winner,
                          scores=result.scores, end_reason=result.end_reason)
    return session, result


def pause(session: GameSession) -> GameSession:
    if session.stage is Stage.SIMULATION:
        return replace(session, stage=Stage.PAUSED)
    return session


def resume(session: GameSession) -> GameSession:
    if session.stage is Stage.PAUSED:
        return replace(session, stage=Stage.SIMULATION)
    return session


FinishListener = Callable[[GameRecord], None]


class GameStateMachine:
    """Event and query interface over a single game session.

    Placement events and timer ticks go in; board snapshots, scores and
    the winner come out. The machine owns the random sources, so every
    game can be replayed from the seed stored in its record.
    """

    def __init__(self, config: GameConfig, listeners: Optional[List[FinishListener]] = None):
        """Initialize a new game.

        Args:
            config: Validated game configuration
            listeners: Callbacks receiving the GameRecord when a game finishes
        """
        self.config = config
        self.listeners: List[FinishListener] = list(listeners or [])
        self.record: Optional[GameRecord] = None
        self._start()

    def _start(self) -> None:
        self.seed = self.config.seed if self.config.seed is not None else new_seed()
        self.placement_rng, simulation_rng = make_generators(self.seed)
        self.engine = SimulationEngine.from_config(self.config, rng=simulation_rng)
        self.session = GameSession.new(self.config)
        self.record = None
        logger.info(f"New {self.config.mode.value} game: {self.config.board_size}x{self.config.board_size}, "
                    f"{self.config.rule_notation}, seed={self.seed}")

    def add_finish_listener(self, listener: FinishListener) -> None:
        self.listeners.append(listener)

    # Events

    def place_token(self, row: int, col: int, player: Optional[int] = None) -> bool:
        """Place a token for the active player.

        Invalid placements are ignored and leave the state untouched.

        Returns:
            True if the token was placed
        """
        session = place_token(self.session, row, col, self.placement_rng, player)
        if session is None:
            return False
        self.session = session
        return True

    def place_token_or_raise(self, row: int, col: int, player: Optional[int] = None) -> None:
        """Like place_token, but raise InvalidPlacement on rejection."""
        reason = placement_error(self.session, row, col, player)
        if reason is not None:
            raise InvalidPlacement(row, col, reason)
        self.place_token(row, col, player)

    def advance_generation(self) -> Optional[StepResult]:
        """Timer tick: step once while simulating, no-op otherwise."""
        self.session, result = advance(self.session, self.engine)
        if result is not None and result.terminal:
            self._finish()
        return result

    def pause(self) -> None:
        self.session = pause(self.session)

    def resume(self) -> None:
        self.session = resume(self.session)

    def toggle_pause(self) -> None:
        if self.session.stage is Stage.SIMULATION:
            self.pause()
        else:
            self.resume()

    def reset(self) -> None:
        """Play again: discard board and history, restart from the config."""
        self._start()

    def run_to_end(self, max_ticks: Optional[int] = None) -> Optional[StepResult]:
        """Tick until the game finishes (headless play)."""
        result = None
        ticks = 0
        while self.session.stage is Stage.SIMULATION and (max_ticks is None or ticks < max_ticks):
            result = self.advance_generation()
            ticks += 1
        return result

    # Queries

    def get_board_snapshot(self) -> Board:
        return self.session.board

    def get_generation(self) -> int:
        return self.session.generation

    def get_stage(self) -> Stage:
        return self.session.stage

    def get_winner(self) -> Optional[int]:
        return self.session.winner

    def get_scores(self) -> Scores:
        if self.session.scores is not None:
            return self.session.scores
        return score(self.session.board)

    @property
    def current_player(self) -> int:
        return self.session.active_player

    def tokens_remaining(self, player: int) -> int:
        return self.session.tokens_remaining[player]

    def to_record(self) -> Optional[GameRecord]:
        """Record of the finished game, None while still playing."""
        if not self.session.is_finished:
            return None
        session = self.session
        return GameRecord(settings=self.config.replace(seed=self.seed),
                          initial_placements=session.placements,
                          final_scores=session.scores,
                          winner=session.winner,
                          generations_elapsed=session.generation,
                          end_reason=session.end_reason.value if session.end_reason else None,
                          seed=self.seed)

    def _finish(self) -> None:
        self.record = self.to_record()
        for listener in self.listeners:
            try:
                listener(self.record)
            except Exception as e:
                logger.error(f"Finish listener {listener!r} failed: {e}")
