"""
SuperLife: a two-player Conway's Game of Life variant with superpowers.

Players place tokens on a bounded board; the board then evolves under
Life-like rules where some cells carry superpowers that override the
standard evaluation. The player with more living cells when the board
stabilises, cycles or hits the generation cap wins.
"""

from .core.board import Board, NO_OWNER
from .core.cell import Cell, MemoryFlag, SuperpowerKind
from .core.engine import CycleHistory, EndReason, SimulationEngine, StepResult
from .core.rules import RuleParams, assign_superpower, evaluate
from .core.scoring import Scores, determine_winner, score
from .errors import (
    SuperLifeError, ConfigurationError, InvalidPlacement,
    SimulationInvariantViolation, RecordFormatError
)
from .game.config import GameConfig, GameMode
from .game.session import GameSession, GameStateMachine, Stage

__version__ = "1.0.0"

__all__ = [
    'Board',
    'NO_OWNER',
    'Cell',
    'MemoryFlag',
    'SuperpowerKind',
    'CycleHistory',
    'EndReason',
    'SimulationEngine',
    'StepResult',
    'RuleParams',
    'assign_superpower',
    'evaluate',
    'Scores',
    'determine_winner',
    'score',
    'SuperLifeError',
    'ConfigurationError',
    'InvalidPlacement',
    'SimulationInvariantViolation',
    'RecordFormatError',
    'GameConfig',
    'GameMode',
    'GameSession',
    'GameStateMachine',
    'Stage',
]
