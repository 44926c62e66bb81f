"""Scoring and winner determination from living cells."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .board import Board


@dataclass(frozen=True)
class Scores:
    """Living cell count per player."""
    player0: int = 0
    player1: int = 0

    def for_player(self, player: int) -> int:
        if player == 0:
            return self.player0
        if player == 1:
            return self.player1
        raise ValueError(f"Unknown player: {player}")

    @property
    def total(self) -> int:
        return self.player0 + self.player1

    def to_dict(self) -> Dict[str, int]:
        return {'player0': self.player0, 'player1': self.player1}


def score(board: Board) -> Scores:
    """Count cells that are alive and owned by each player.

    Dead cells never score, even if they still carry an owner.
    """
    alive = board.alive
    return Scores(player0=int(np.count_nonzero(alive & (board.owner == 0))),
                  player1=int(np.count_nonzero(alive & (board.owner == 1))))


def determine_winner(scores: Scores) -> Optional[int]:
    """Player with strictly more living cells, None on a tie (including 0-0)."""
    if scores.player0 > scores.player1:
        return 0
    if scores.player1 > scores.player0:
        return 1
    return None


def score_and_winner(board: Board) -> Tuple[Scores, Optional[int]]:
    scores = score(board)
    return scores, determine_winner(scores)
