"""In-memory trailing-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards every read-modify-write of the key map.
- Bounded: keys are kept in LRU order, swept lazily once their newest
  timestamp has left the window, and evicted past ``max_keys``.
"""

from __future__ import annotations

import math
import threading
import time
from collections import OrderedDict
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Admit at most ``limit`` requests per key in any trailing window.

    Each key keeps the millisecond timestamps of its admitted requests. On
    every check the timestamps older than the window are dropped; if the
    remaining count already reached the limit the request is denied and
    nothing is recorded, otherwise the current time is appended.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        max_keys: int = 10000,
        sweep_interval: int = 256,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum admitted requests per key per window.
            window_seconds: Trailing window size in seconds.
            max_keys: Upper bound on tracked keys before LRU eviction.
            sweep_interval: Number of checks between stale-key sweeps.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If any bound is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_keys < 1:
            raise ValueError("max_keys must be >= 1")
        if sweep_interval < 1:
            raise ValueError("sweep_interval must be >= 1")

        self._limit = limit
        self._window_ms = window_seconds * 1000
        self._max_keys = max_keys
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: OrderedDict[str, list[int]] = OrderedDict()
        self._checks = 0
        self._evictions = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_ms // 1000

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _recent(self, key: str, now_ms: int) -> list[int]:
        return [ts for ts in self._windows.get(key, ()) if now_ms - ts < self._window_ms]

    def _check_locked(self, key: str, now_ms: int) -> tuple[bool, list[int]]:
        """Apply one admission decision and store the filtered window back."""
        if not key:
            raise ValueError("key must be a non-empty string")

        self._checks += 1
        if self._checks % self._sweep_interval == 0:
            self._sweep_locked(now_ms)

        recent = self._recent(key, now_ms)
        allowed = len(recent) < self._limit
        if allowed:
            recent.append(now_ms)

        if recent:
            self._windows[key] = recent
            self._windows.move_to_end(key)
            self._evict_if_over_capacity_locked()
        else:
            self._windows.pop(key, None)

        return allowed, recent

    def _sweep_locked(self, now_ms: int) -> None:
        stale = [
            key
            for key, stamps in self._windows.items()
            if not stamps or now_ms - stamps[-1] >= self._window_ms
        ]
        for key in stale:
            del self._windows[key]
            self._evictions += 1

    def _evict_if_over_capacity_locked(self) -> None:
        while len(self._windows) > self._max_keys:
            # popitem(last=False) removes the least recently used key
            self._windows.popitem(last=False)
            self._evictions += 1

    def admit(self, key: str, now_ms: int) -> bool:
        """Admit or deny ``key`` at ``now_ms`` (milliseconds since epoch)."""
        with self._lock:
            allowed, _ = self._check_locked(key, now_ms)
        return allowed

    def consume(self, key: str) -> RateLimitResult:
        """Admission check at the current clock time with quota metadata.

        Raises:
            ValueError: If key is empty.
        """
        now_ms = self._now_ms()
        with self._lock:
            allowed, recent = self._check_locked(key, now_ms)

        reset_at_ms = recent[0] + self._window_ms if recent else now_ms
        reset_at = int(math.ceil(reset_at_ms / 1000))

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=max(0, self._limit - len(recent)),
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        retry_after = max(1, int(math.ceil((reset_at_ms - now_ms) / 1000)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._checks = 0
            self._evictions = 0

    def stats(self) -> dict[str, int]:
        """Return counters without exposing client keys."""
        with self._lock:
            return {
                "limit": self._limit,
                "window_seconds": self.window_seconds,
                "max_keys": self._max_keys,
                "tracked_keys": len(self._windows),
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
