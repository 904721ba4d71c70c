"""Rate limiting for the generate endpoint.

Wires the rate limiting adapter into the HTTP layer.

Strategy:
- Trailing-window limit per client key.
- The client key is the first address in ``X-Forwarded-For`` (the demo runs
  behind a proxy) or ``"unknown"`` when the header is absent, so every
  header-less caller shares one budget.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import settings
from app.core.errors import RATE_LIMITED_MESSAGE, RateLimitAppError

logger = logging.getLogger(__name__)

FORWARDED_FOR_HEADER = "X-Forwarded-For"
UNKNOWN_CLIENT_KEY = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide limiter, rebuilding it if its settings changed."""

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_keys,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemorySlidingWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            max_keys=settings.app.rate_limit_max_keys,
        )
        _limiter_config = config

    return _limiter


def get_client_key(request: Request) -> str:
    """Derive the client key from the forwarded-address header.

    Examples:
        ``"203.0.113.7, 10.0.0.2"`` -> ``"203.0.113.7"``; missing -> ``"unknown"``.
    """

    forwarded = request.headers.get(FORWARDED_FOR_HEADER, "")
    first = forwarded.split(",", 1)[0].strip()
    return first or UNKNOWN_CLIENT_KEY


def _hash_client_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def enforce_rate_limit(request: Request) -> RateLimitResult | None:
    """Consume one unit of the caller's budget.

    Returns:
        The limiter result when limiting is enabled, else None.

    Raises:
        RateLimitAppError: When the caller already used its quota.
    """

    if not settings.app.rate_limit_enabled:
        return None

    limiter = get_rate_limiter()
    key = get_client_key(request)
    key_hash = _hash_client_key(key)

    result = limiter.consume(key)
    log_extra = {
        "key_hash": key_hash,
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
        return result

    stats = limiter.stats()
    logger.warning(
        "rate_limit.exceeded",
        extra={
            **log_extra,
            "retry_after_s": result.retry_after_seconds,
            "tracked_keys": stats["tracked_keys"],
            "evictions": stats["evictions"],
        },
    )
    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMITED_MESSAGE,
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": result.retry_after_seconds or 0,
        },
    )
