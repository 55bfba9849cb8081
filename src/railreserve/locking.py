from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock

from loguru import logger

from railreserve.errors import Busy


class TrainLockRegistry:
    """One mutex per train id; different trains never contend."""

    def __init__(self, timeout: float = 2.0, retries: int = 3) -> None:
        self.timeout = timeout
        self.retries = max(1, retries)
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}

    def _lock_for(self, train_id: str) -> Lock:
        key = train_id.upper()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock

    @contextmanager
    def hold(self, train_id: str) -> Iterator[None]:
        lock = self._lock_for(train_id)
        for attempt in range(1, self.retries + 1):
            if lock.acquire(timeout=self.timeout):
                break
            logger.debug("Lock on {} still held after attempt {}/{}", train_id, attempt, self.retries)
        else:
            logger.warning("Gave up waiting for lock on {}", train_id)
            raise Busy(f"Train {train_id} is busy, try again", field="train_id")
        try:
            yield
        finally:
            lock.release()
