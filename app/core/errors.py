"""Application-level exception types.

Each error carries the HTTP status it maps to and the client-facing message,
so the exception handlers can render a flat ``{"error": message}`` body while
the machine-readable ``code`` and ``details`` only reach the logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict

EMAIL_REQUIRED_MESSAGE = "Email content is required"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
RATE_LIMITED_MESSAGE = "Demo limit reached. Please contact me for full access."
GENERATION_FAILED_MESSAGE = "Failed to generate responses. Please try again."
NOT_FOUND_MESSAGE = "Not found"


class ErrorDetails(TypedDict, total=False):
    """Structured error context for logs. Never rendered to clients."""

    hint: str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    model: str
    upstream_error: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable message returned to the client.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input or configuration is invalid."""

    status_code: ClassVar[int] = 400


class MethodNotAllowedAppError(AppError):
    """Raised for HTTP methods the generate endpoint does not serve."""

    status_code: ClassVar[int] = 405


class RateLimitAppError(AppError):
    """Raised when a client exhausts its demo quota."""

    status_code: ClassVar[int] = 429


class GenerationAppError(AppError):
    """Raised when the completion provider fails or returns unusable output."""

    status_code: ClassVar[int] = 500
