from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """One re-entrant lock per key, e.g. per (user_id, work_date).

    Entries are reference counted and dropped when the last holder or waiter
    releases them, so the map only holds keys currently in use.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    @contextmanager
    def hold_all(self, *keys: Hashable) -> Iterator[None]:
        """Acquire several keys in the order given; callers share one order."""
        if not keys:
            yield
            return
        with self.hold(keys[0]):
            with self.hold_all(*keys[1:]):
                yield
