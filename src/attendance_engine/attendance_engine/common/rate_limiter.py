from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..core.constants import ATTENDANCE_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS
from ..core.exceptions import RateLimitExceeded


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window limiter keyed per user/action, guarding double submissions."""

    def __init__(
        self,
        *,
        max_requests: int = ATTENDANCE_RATE_LIMIT,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_requests = int(max_requests)
        self._window_seconds = float(window_seconds)
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def is_allowed(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._purge(now)
            window = self._windows.get(key)
            if window is None:
                self._windows[key] = _Window(count=1, reset_at=now + self._window_seconds)
                return True
            if window.count >= self._max_requests:
                return False
            window.count += 1
            return True

    def hit(self, key: str) -> None:
        if not self.is_allowed(key):
            raise RateLimitExceeded("Too many requests. Please try again later.")

    def _purge(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in expired:
            del self._windows[k]
