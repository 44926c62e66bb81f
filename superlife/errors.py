"""Exception types raised by the SuperLife engine.

Normal gameplay conditions (exhausted tokens, full board, stalemate) are
modelled as game states, never as exceptions. Only configuration problems,
broken engine invariants and unreadable records are errors.
"""


class SuperLifeError(Exception):
    """Base class for all SuperLife errors."""


class ConfigurationError(SuperLifeError, ValueError):
    """Game configuration rejected at session creation time."""


class InvalidPlacement(SuperLifeError):
    """Token placement refused (wrong stage, occupied cell or no tokens left).

    The state machine rejects placements silently by default; this is only
    raised by ``GameStateMachine.place_token_or_raise``.
    """

    def __init__(self, row: int, col: int, reason: str):
        super().__init__(f"Cannot place token at ({row}, {col}): {reason}")
        self.row = row
        self.col = col
        self.reason = reason


class SimulationInvariantViolation(SuperLifeError, AssertionError):
    """The engine observed a state that correct stepping can never produce."""


class RecordFormatError(SuperLifeError, ValueError):
    """A persisted game record could not be decoded."""
