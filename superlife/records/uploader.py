"""Upload of finished games to the game-data API.

Records are compressed and POSTed with retries. Uploads run on a worker
thread so the game loop never waits on the network; records that can't
be delivered are parked in a local pending store and retried later.
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Sequence

import requests

from .record import GameRecord, compress_record
from .store import GameRecordStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001/api"
CLIENT_VERSION = "1.0.0"


class GameDataUploader:
    """HTTP client for the game-data collection API.

    Endpoints: ``POST /games/upload``, ``POST /games/batch``,
    ``GET /games/exists?hash=...`` and ``GET /health``.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL,
                 timeout: float = 10.0,
                 max_retries: int = 3,
                 pending: Optional[GameRecordStore] = None,
                 max_workers: int = 1):
        """Initialize uploader.

        Args:
            base_url: API root URL
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            pending: Store for records that failed to upload
            max_workers: Background upload threads
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.pending = pending
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="superlife-upload")

        self._stats_lock = threading.Lock()
        self.uploaded_count = 0
        self.failed_count = 0
        self.total_request_time = 0.0

    def _request(self, method: str, endpoint: str,
                 payload: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Send a request with retries.

        Raises:
            RuntimeError: If every attempt fails
        """
        url = f"{self.base_url}{endpoint}"
        headers = {'X-Game-Version': CLIENT_VERSION, 'X-Platform': 'python'}
        start_time = time.time()

        for attempt in range(self.max_retries):
            try:
                response = requests.request(method, url, json=payload, params=params,
                                            headers=headers, timeout=self.timeout)
                response.raise_for_status()
                with self._stats_lock:
                    self.total_request_time += time.time() - start_time
                return response.json()
            except (requests.RequestException, ValueError) as e:
                if attempt == self.max_retries - 1:
                    raise RuntimeError(f"{method} {url} failed after {self.max_retries} attempts: {e}")
                logger.warning(f"{method} {url} attempt {attempt + 1} failed: {e}, retrying...")
                time.sleep(0.5 * (attempt + 1))

        raise RuntimeError(f"{method} {url} was never attempted")

    def _count(self, uploaded: int = 0, failed: int = 0) -> None:
        with self._stats_lock:
            self.uploaded_count += uploaded
            self.failed_count += failed

    def upload(self, record: GameRecord) -> bool:
        """Upload one record; returns False instead of raising on failure."""
        compressed = compress_record(record)
        try:
            response = self._request('POST', '/games/upload', compressed.to_payload())
        except RuntimeError as e:
            logger.warning(f"Upload of {record.game_id} failed: {e}")
            self._count(failed=1)
            return False

        ok = response.get('success') is True
        if ok:
            self._count(uploaded=1)
            logger.info(f"Uploaded game {record.game_id} ({compressed.compressed_size} bytes)")
        else:
            self._count(failed=1)
        return ok

    def upload_batch(self, records: Sequence[GameRecord]) -> int:
        """Upload several records in one request.

        Returns:
            Number of records the server accepted
        """
        if not records:
            return 0

        games = [compress_record(record).to_payload() for record in records]
        try:
            response = self._request('POST', '/games/batch',
                                     {'games': games, 'batchSize': len(games)})
        except RuntimeError as e:
            logger.warning(f"Batch upload of {len(records)} games failed: {e}")
            self._count(failed=len(records))
            return 0

        success_count = int(response.get('successCount', 0))
        self._count(uploaded=success_count, failed=len(records) - success_count)
        logger.info(f"Batch upload: {success_count}/{len(records)} succeeded")
        return success_count

    def game_exists(self, game_hash: str) -> bool:
        """Ask the server whether a game with this hash was already uploaded."""
        try:
            response = self._request('GET', '/games/exists', params={'hash': game_hash})
        except RuntimeError as e:
            logger.warning(f"Duplicate check failed: {e}")
            return False
        return response.get('exists') is True

    def test_connection(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}/health", timeout=5.0)
            response.raise_for_status()
            logger.info(f"Connected to game API at {self.base_url}")
            return True
        except requests.RequestException as e:
            logger.warning(f"Could not reach game API: {e}")
            return False

    def upload_or_queue(self, records: Sequence[GameRecord]) -> Dict[str, int]:
        """Batch-upload, parking the records the server didn't accept.

        The server accepts batches in order, so the first ``successCount``
        records are treated as delivered.
        """
        if not records:
            return {'uploaded': 0, 'stored': 0}

        uploaded = self.upload_batch(records)
        failed = list(records[uploaded:])
        stored = 0
        if failed and self.pending is not None:
            stored = self.pending.save_many(failed)
            logger.info(f"Queued {stored} game(s) for a later upload")
        return {'uploaded': uploaded, 'stored': stored}

    def retry_pending(self) -> int:
        """Upload parked records and drop the ones that went through."""
        if self.pending is None:
            return 0
        records = self.pending.load()
        if not records:
            return 0

        logger.info(f"Retrying {len(records)} pending game(s)")
        uploaded = self.upload_batch(records)
        if uploaded:
            self.pending.remove(r.game_id for r in records[:uploaded])
        return uploaded

    def submit(self, record: GameRecord) -> 'Future[Dict[str, int]]':
        """Upload in the background; the caller never waits.

        Failures inside the worker (e.g. the pending store can't be written)
        are logged, since nobody else looks at the future.
        """
        future = self._executor.submit(self.upload_or_queue, [record])

        def _log_failure(done: 'Future[Dict[str, int]]') -> None:
            error = done.exception()
            if error is not None:
                logger.error(f"Background upload of {record.game_id} failed, record not queued: {error}")

        future.add_done_callback(_log_failure)
        return future

    def __call__(self, record: GameRecord) -> None:
        """Finish-listener entry point (fire and forget)."""
        self.submit(record)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def get_stats(self) -> Dict[str, Any]:
        """Get upload statistics."""
        with self._stats_lock:
            uploaded, failed, request_time = self.uploaded_count, self.failed_count, self.total_request_time
        return {
            'uploaded_count': uploaded,
            'failed_count': failed,
            'total_request_time': request_time,
            'pending_count': len(self.pending) if self.pending is not None else 0,
        }

    def __repr__(self) -> str:
        return f"GameDataUploader(url={self.base_url}, uploaded={self.uploaded_count})"


def create_uploader() -> GameDataUploader:
    """Create uploader from environment configuration."""
    base_url = os.getenv('SUPERLIFE_API_URL', DEFAULT_API_URL)
    pending_path = os.getenv('SUPERLIFE_PENDING_PATH', os.path.join('data', 'pending_uploads.jsonl'))
    return GameDataUploader(base_url=base_url, pending=GameRecordStore(pending_path))
