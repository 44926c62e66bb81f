"""Persisted game records.

A GameRecord is produced when a session finishes. It carries the settings,
the initial placements and the outcome, plus the random seed, which is
enough to replay the placement phase and re-run the simulation exactly.
"""

import base64
import hashlib
import json
import logging
import time
import uuid
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..core.scoring import Scores
from ..errors import RecordFormatError
from ..game.config import GameConfig, GameMode

logger = logging.getLogger(__name__)

RECORD_VERSION = "1.0.0"


def generate_game_id() -> str:
    """Unique id of the form ``game_<ms timestamp>_<random>``."""
    return f"game_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _short_hash(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()[:16]


@dataclass(frozen=True)
class TokenPlacement:
    """One accepted token placement, in placement order."""
    row: int
    col: int
    player: int
    superpower: int
    move_number: int

    def pattern_key(self) -> str:
        return f"{self.player}:{self.row},{self.col}:{self.superpower}"

    def to_dict(self) -> Dict[str, int]:
        return {
            'row': self.row,
            'col': self.col,
            'player': self.player,
            'superpowerKind': self.superpower,
            'moveNumber': self.move_number,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'TokenPlacement':
        return cls(row=int(data['row']), col=int(data['col']), player=int(data['player']),
                   superpower=int(data['superpowerKind']), move_number=int(data['moveNumber']))


def placement_hash(placements: Iterable[TokenPlacement]) -> str:
    """Hash of the placement pattern alone, for strategy analysis."""
    ordered = sorted(placements, key=lambda p: p.move_number)
    return _short_hash('|'.join(p.pattern_key() for p in ordered))


def game_hash(settings: GameConfig, placements: Iterable[TokenPlacement]) -> str:
    """Hash of settings + placements, for de-duplication."""
    payload = {
        'settings': settings.to_dict(),
        'placements': '|'.join(p.pattern_key() for p in placements),
    }
    return _short_hash(json.dumps(payload, sort_keys=True))


@dataclass(frozen=True)
class GameRecord:
    """Everything needed to store, upload and replay a finished game."""
    settings: GameConfig
    initial_placements: Tuple[TokenPlacement, ...]
    final_scores: Scores
    winner: Optional[int]
    generations_elapsed: int
    end_reason: Optional[str] = None
    seed: Optional[int] = None
    game_id: str = field(default_factory=generate_game_id)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))
    version: str = RECORD_VERSION

    def __post_init__(self):
        # The record-level seed is authoritative; settings only carry it along
        seed = self.seed if self.seed is not None else self.settings.seed
        object.__setattr__(self, 'seed', seed)
        if self.settings.seed != seed:
            object.__setattr__(self, 'settings', self.settings.replace(seed=seed))

    @property
    def mode(self) -> GameMode:
        return self.settings.mode

    @property
    def game_hash(self) -> str:
        return game_hash(self.settings, self.initial_placements)

    @property
    def placement_hash(self) -> str:
        return placement_hash(self.initial_placements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gameId': self.game_id,
            'timestamp': self.timestamp,
            'mode': self.mode.value,
            'settings': self.settings.to_dict(),
            'initialPlacements': [p.to_dict() for p in self.initial_placements],
            'finalScores': self.final_scores.to_dict(),
            'winner': self.winner,
            'generationsElapsed': self.generations_elapsed,
            'endReason': self.end_reason,
            'seed': self.seed,
            'version': self.version,
            'gameHash': self.game_hash,
            'placementHash': self.placement_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GameRecord':
        """Decode a record produced by ``to_dict``.

        Raises:
            RecordFormatError: If fields are missing or malformed
        """
        try:
            seed = data.get('seed')
            settings = GameConfig.from_dict(data['settings'], seed=seed)
            scores = data['finalScores']
            return cls(settings=settings,
                       initial_placements=tuple(TokenPlacement.from_dict(p)
                                                for p in data['initialPlacements']),
                       final_scores=Scores(int(scores['player0']), int(scores['player1'])),
                       winner=data['winner'],
                       generations_elapsed=int(data['generationsElapsed']),
                       end_reason=data.get('endReason'),
                       seed=seed,
                       game_id=data['gameId'],
                       timestamp=int(data['timestamp']),
                       version=data.get('version', RECORD_VERSION))
        except (KeyError, TypeError, ValueError) as e:
            raise RecordFormatError(f"Malformed game record: {e}") from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_json(cls, text: str) -> 'GameRecord':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RecordFormatError(f"Invalid JSON in game record: {e}") from e
        if not isinstance(data, dict):
            raise RecordFormatError("Game record must be a JSON object")
        return cls.from_dict(data)


@dataclass(frozen=True)
class CompressedRecord:
    """Compact upload form of a GameRecord."""
    game_id: str
    game_hash: str
    data: str
    original_size: int
    compressed_size: int
    timestamp: int

    @property
    def ratio(self) -> float:
        """Fraction of bytes saved by compression."""
        if self.original_size == 0:
            return 0.0
        return 1.0 - self.compressed_size / self.original_size

    def to_payload(self) -> Dict[str, Any]:
        return {
            'gameId': self.game_id,
            'gameHash': self.game_hash,
            'data': self.data,
            'originalSize': self.original_size,
            'compressedSize': self.compressed_size,
            'timestamp': self.timestamp,
        }


def compress_record(record: GameRecord) -> CompressedRecord:
    """zlib + base64 over the compact JSON form of ``record``."""
    raw = record.to_json().encode('utf-8')
    encoded = base64.b64encode(zlib.compress(raw, 9)).decode('ascii')
    return CompressedRecord(game_id=record.game_id,
                            game_hash=record.game_hash,
                            data=encoded,
                            original_size=len(raw),
                            compressed_size=len(encoded),
                            timestamp=record.timestamp)


def decompress_record(compressed: CompressedRecord) -> GameRecord:
    """Inverse of compress_record.

    Raises:
        RecordFormatError: If the payload is not valid compressed data
    """
    try:
        raw = zlib.decompress(base64.b64decode(compressed.data, validate=True))
    except (ValueError, zlib.error) as e:
        raise RecordFormatError(f"Corrupt compressed record {compressed.game_id}: {e}") from e
    return GameRecord.from_json(raw.decode('utf-8'))
