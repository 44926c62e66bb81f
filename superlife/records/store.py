"""Local game record storage.

Records are appended to a JSON-lines file, one record per line, so that a
crash mid-write can only damage the last entry. The same store doubles as
the pending-upload queue for the uploader.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..errors import RecordFormatError
from .record import GameRecord

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("data") / "games.jsonl"


class GameRecordStore:
    """Append-only JSON-lines store of finished games."""

    def __init__(self, path: Union[str, Path] = DEFAULT_STORE_PATH):
        """Initialize store.

        Args:
            path: JSON-lines file; created (with parents) on first save
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    def save(self, record: GameRecord) -> None:
        """Append one record."""
        self.save_many([record])

    def save_many(self, records: Iterable[GameRecord]) -> int:
        lines = [record.to_json() for record in records]
        if not lines:
            return 0
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                for line in lines:
                    f.write(line + '\n')
        logger.debug(f"Stored {len(lines)} game record(s) in {self.path}")
        return len(lines)

    def _read_records(self) -> List[GameRecord]:
        """Decode the file; caller must hold the lock."""
        if not self.path.exists():
            return []
        with open(self.path, 'r', encoding='utf-8') as f:
            lines = f.readlines()

        records = []
        for line_number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(GameRecord.from_json(line))
            except RecordFormatError as e:
                logger.warning(f"Skipping {self.path}:{line_number}: {e}")
        return records

    def load(self) -> List[GameRecord]:
        """Read all records, skipping lines that can't be decoded."""
        with self._lock:
            return self._read_records()

    def get(self, game_id: str) -> Optional[GameRecord]:
        return next((r for r in self.load() if r.game_id == game_id), None)

    def remove(self, game_ids: Iterable[str]) -> int:
        """Drop records by id and rewrite the file.

        Read, filter and rewrite happen under one lock hold so concurrent
        saves are never overwritten.

        Returns:
            Number of records removed
        """
        doomed = set(game_ids)
        with self._lock:
            records = self._read_records()
            kept = [r for r in records if r.game_id not in doomed]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                for record in kept:
                    f.write(record.to_json() + '\n')
        removed = len(records) - len(kept)
        if removed:
            logger.debug(f"Removed {removed} game record(s) from {self.path}")
        return removed

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()

    def __call__(self, record: GameRecord) -> None:
        """Finish-listener entry point."""
        self.save(record)

    def __len__(self) -> int:
        return len(self.load())

    def __repr__(self) -> str:
        return f"GameRecordStore({self.path})"
