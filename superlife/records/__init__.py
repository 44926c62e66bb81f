"""
SuperLife game records: the persisted shape of a finished game, a local
JSON-lines store and the upload client.

Replay lives in ``superlife.records.replay`` and is imported explicitly.
"""

from .record import (
    GameRecord, TokenPlacement, CompressedRecord,
    compress_record, decompress_record, game_hash, placement_hash
)
from .store import GameRecordStore
from .uploader import GameDataUploader, create_uploader

__all__ = [
    'GameRecord',
    'TokenPlacement',
    'CompressedRecord',
    'compress_record',
    'decompress_record',
    'game_hash',
    'placement_hash',
    'GameRecordStore',
    'GameDataUploader',
    'create_uploader',
]
