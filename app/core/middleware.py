"""HTTP middleware: request correlation and cross-origin access.

- ``request_id_middleware`` accepts an incoming X-Request-ID (configurable)
  or generates a UUID, binds it to the logging context, and echoes it on the
  response together with the request duration.
- ``PreflightCORSMiddleware`` is Starlette's CORS middleware with every
  pre-flight answered by an empty 200, matching the bare OPTIONS route. The
  Access-Control-Allow-* headers still list what is configured, and the
  browser decides whether the actual request may proceed.

Usage:
    app.middleware("http")(request_id_middleware)
    add_cors_middleware(app)
"""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers

from app.core.config import settings
from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

_BODY_HEADERS = {"content-length", "content-type"}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id and timing to every request/response pair.

    Side Effects:
        - Sets request_id in contextvars (accessible via get_request_id())
        - Clears request_id from contextvars after request completes
        - Adds the request id header and X-Request-Duration-ms to the response
        - Turns unexpected exceptions into the generic 500 here, inside the
          CORS layer, so the error body still carries CORS headers
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose pre-flight responses are always an empty 200.

    Starlette answers a disallowed origin, method or header with 400
    "Disallowed CORS ...". Here the status is always 200 and only the
    configured allow headers are returned.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        return Response(status_code=200, headers=headers)


def add_cors_middleware(app: FastAPI) -> None:
    """Allow browser calls from the configured origins (any, by default)."""

    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_methods=settings.app.cors_methods,
        allow_headers=settings.app.cors_headers,
        allow_credentials=settings.app.cors_allow_credentials,
    )
