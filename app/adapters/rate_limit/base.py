"""Rate limiter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single admission check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per trailing window.
        remaining: Requests still available in the window (0 when blocked).
        reset_at: UNIX epoch seconds when the oldest counted request leaves
            the window and a slot frees up.
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Record one request for ``key`` if it is admitted.

        Args:
            key: Client identifier (e.g. forwarded address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def admit(self, key: str, now_ms: int) -> bool:
        """Admission decision for ``key`` at an explicit time in milliseconds."""
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget every tracked key."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        """Counters for logs (tracked keys, evictions); never the keys themselves."""
        raise NotImplementedError
