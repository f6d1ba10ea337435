from __future__ import annotations
"""Per-repository try-lock guarding working-tree mutations."""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from lyra_sync.domain.errors import PublishInProgressError


class PublishGate:
    """Fail-fast mutual exclusion keyed by repository path.

    Callers that find the gate held get `PublishInProgressError` immediately
    instead of queuing behind a workflow whose base branch is still moving.
    """

    def __init__(self) -> None:
        self._locks: dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Path) -> Iterator[None]:
        lock = self._lock_for(key)
        if not lock.acquire(blocking=False):
            raise PublishInProgressError(key)
        try:
            yield
        finally:
            lock.release()

    def is_busy(self, key: Path) -> bool:
        return self._lock_for(key).locked()
