"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"error": "<message>"}`` with a status chosen
from the error type:

- AppError subclasses -> their ``status_code`` (400, 405, 429, 500)
- Request body validation (bad JSON, non-string email) -> 400
- Routing errors (unknown path, wrong method) -> 404 / 405
- Unexpected Exception -> generic 500 (safety net)

Error codes, upstream detail and the request id are logged only; the client
never sees stack traces or provider messages.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import (
    EMAIL_REQUIRED_MESSAGE,
    GENERATION_FAILED_MESSAGE,
    METHOD_NOT_ALLOWED_MESSAGE,
    NOT_FOUND_MESSAGE,
    AppError,
    MethodNotAllowedAppError,
    RateLimitAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_HTTP_ERROR_MESSAGES = {
    404: NOT_FOUND_MESSAGE,
}


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str] | None:
    if not settings.app.rate_limit_include_headers or not exc.details:
        return None
    details = exc.details
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", 0)),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", 0)),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors with the status their class declares.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status code and client message.
    """
    status_code = exc.status_code
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitAppError) else None
    return error_response(status_code, exc.message, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies count as missing email content."""
    logger.warning(
        "request_validation_failed",
        extra={
            "error_count": len(exc.errors()),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return error_response(400, EMAIL_REQUIRED_MESSAGE)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Flatten framework HTTP errors (404, 405, ...) into the error envelope."""
    headers = getattr(exc, "headers", None)
    if exc.status_code == 405:
        response = await app_error_handler(
            request,
            MethodNotAllowedAppError(code="method_not_allowed", message=METHOD_NOT_ALLOWED_MESSAGE),
        )
        if headers:
            response.headers.update(headers)
        return response

    message = _HTTP_ERROR_MESSAGES.get(exc.status_code) or str(exc.detail)
    return error_response(exc.status_code, message, headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure for debugging while returning the generic message, so no
    implementation detail reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
        exc_info=exc,
    )
    return error_response(500, GENERATION_FAILED_MESSAGE)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
