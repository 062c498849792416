from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class KeyedLocks:
    """Hand out one re-entrant lock per key; keys are dropped once released."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._holders: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                remaining = self._holders.get(key, 1) - 1
                if remaining <= 0:
                    self._holders.pop(key, None)
                    self._locks.pop(key, None)
                else:
                    self._holders[key] = remaining

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
