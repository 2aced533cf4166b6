"""Durable storage for the save queue.

The whole queue lives in one named record holding the JSON list of jobs.
Every write replaces the record wholesale.

Storage failures follow the store's policy: fail-open (default) logs the
problem, reads an unreadable record as an empty queue and drops failed writes;
fail-loud raises StorageError.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import redis.asyncio as redis
from pydantic import TypeAdapter

from formsync.errors import StorageError
from formsync.models import QueueJob

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "autosave_queue"

_JOB_LIST = TypeAdapter(list[QueueJob])


class QueueStore:
    """Base store: serialization and failure policy around raw read/write."""

    def __init__(self, key: str = DEFAULT_STORAGE_KEY, fail_open: bool = True):
        self.key = key
        self.fail_open = fail_open

    async def _read_raw(self) -> Optional[str]:
        raise NotImplementedError

    async def _write_raw(self, data: str) -> None:
        raise NotImplementedError

    async def load(self) -> list[QueueJob]:
        """Read the stored queue. A missing record is an empty queue."""
        jobs = await self.load_for_update()
        return jobs if jobs is not None else []

    async def load_for_update(self) -> Optional[list[QueueJob]]:
        """
        Read the stored queue before a read-modify-write.

        Returns None instead of [] when a fail-open read failed, so the caller
        can leave an unreadable record alone rather than overwrite it.
        """
        try:
            raw = await self._read_raw()
            if not raw:
                return []
            return _JOB_LIST.validate_json(raw)
        except Exception as e:
            if not self.fail_open:
                raise StorageError(f"Error reading queue '{self.key}': {e}", cause=e) from e
            logger.error(f"Error reading queue '{self.key}' from storage, treating as empty: {e}")
            return None

    async def save(self, jobs: list[QueueJob]) -> bool:
        """Overwrite the stored queue. Returns False if a fail-open write was dropped."""
        try:
            await self._write_raw(_JOB_LIST.dump_json(jobs).decode("utf-8"))
            return True
        except Exception as e:
            if not self.fail_open:
                raise StorageError(f"Error saving queue '{self.key}': {e}", cause=e) from e
            logger.error(f"Error saving queue '{self.key}' to storage: {e}")
            return False

    async def check(self) -> dict:
        """Readiness probe for the store."""
        try:
            await self._read_raw()
            return {"status": "ok", "backend": type(self).__name__}
        except Exception as e:
            return {"status": "error", "backend": type(self).__name__, "error": str(e)}

    async def close(self) -> None:
        pass


class MemoryQueueStore(QueueStore):
    """Process-local store; nothing survives a restart."""

    def __init__(self, key: str = DEFAULT_STORAGE_KEY, fail_open: bool = True):
        super().__init__(key, fail_open)
        self.data: Optional[str] = None

    async def _read_raw(self) -> Optional[str]:
        return self.data

    async def _write_raw(self, data: str) -> None:
        self.data = data


class FileQueueStore(QueueStore):
    """JSON file store; writes go to a temp file that atomically replaces the record."""

    def __init__(self, path: str, key: str = DEFAULT_STORAGE_KEY, fail_open: bool = True):
        super().__init__(key, fail_open)
        self.path = Path(path)

    async def _read_raw(self) -> Optional[str]:
        return await asyncio.to_thread(self._read_file)

    async def _write_raw(self, data: str) -> None:
        await asyncio.to_thread(self._write_file, data)

    def _read_file(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def _write_file(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class RedisQueueStore(QueueStore):
    """Store the queue record as a single Redis string key."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key: str = DEFAULT_STORAGE_KEY,
        fail_open: bool = True,
        client: Optional[redis.Redis] = None,
    ):
        super().__init__(key, fail_open)
        self.redis_url = redis_url
        self._redis = client
        self._owns_client = client is None

    def _client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            logger.info(f"Using Redis queue store at {self.redis_url}")
        return self._redis

    async def _read_raw(self) -> Optional[str]:
        value = await self._client().get(self.key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def _write_raw(self, data: str) -> None:
        await self._client().set(self.key, data)

    async def close(self) -> None:
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
