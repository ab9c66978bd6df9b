"""Rate limiting and response caching shared by every call of one provider client.

Both components take an injected monotonic clock so tests can drive them
deterministically, and both guard their state with a lock so a client can be
shared by worker threads.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Protocol

MonotonicClock = Callable[[], float]
Sleeper = Callable[[float], None]


class RateLimiter:
    """Enforce a minimum gap between calls by delaying, never rejecting, the caller."""

    def __init__(
        self,
        min_interval_seconds: float,
        clock: MonotonicClock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        if min_interval_seconds < 0:
            raise ValueError("Minimum interval cannot be negative.")
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: float | None = None

    def acquire(self) -> float:
        """Block until the next call is allowed and return how long we waited."""
        with self._lock:
            now = self._clock()
            waited = 0.0
            if self._last_call is not None:
                elapsed = now - self._last_call
                if elapsed < self.min_interval_seconds:
                    waited = self.min_interval_seconds - elapsed
                    self._sleep(waited)
            self._last_call = max(self._clock(), now + waited)
            return waited


class ResponseCache(Protocol):
    def get(self, key: Hashable) -> Any | None: ...

    def set(self, key: Hashable, value: Any) -> None: ...

    def clear(self) -> None: ...


class BoundedTTLCache:
    """Least-recently-used cache with an optional time-to-live per entry."""

    def __init__(
        self,
        max_entries: int = 512,
        ttl_seconds: float | None = None,
        clock: MonotonicClock = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("Cache must hold at least one entry.")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
