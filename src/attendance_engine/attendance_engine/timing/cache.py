"""Timing cache backends.

InMemoryTimingCache is per process: other instances may serve a value up to
the TTL old after a write. RedisTimingCache is shared, so an invalidate on one
instance is seen by all.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Callable, Optional, Protocol

from .model import DepartmentTiming


class TimingCache(Protocol):
    def get(self, key: str) -> Optional[DepartmentTiming]:
        raise NotImplementedError

    def set(self, key: str, timing: DepartmentTiming) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryTimingCache:
    def __init__(self, *, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[float, DepartmentTiming]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[DepartmentTiming]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, timing = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return timing

    def set(self, key: str, timing: DepartmentTiming) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, timing)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisTimingCache:
    """Shared backend for multi-instance deployments (redis-py client)."""

    prefix = "dept_timing:"

    def __init__(self, client, *, ttl_seconds: float):
        self._client = client
        self._ttl = int(ttl_seconds)

    @classmethod
    def from_url(cls, url: str, *, ttl_seconds: float) -> "RedisTimingCache":
        import redis

        return cls(redis.Redis.from_url(url), ttl_seconds=ttl_seconds)

    def get(self, key: str) -> Optional[DepartmentTiming]:
        raw = self._client.get(self.prefix + key)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return DepartmentTiming.from_dict(json.loads(raw))

    def set(self, key: str, timing: DepartmentTiming) -> None:
        self._client.setex(self.prefix + key, self._ttl, json.dumps(timing.to_dict()))

    def delete(self, key: str) -> None:
        self._client.delete(self.prefix + key)

    def clear(self) -> None:
        keys = list(self._client.scan_iter(match=self.prefix + "*"))
        if keys:
            self._client.delete(*keys)
