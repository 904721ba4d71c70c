from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
the responder backend) so tests can build isolated instances.
"""

from fastapi import FastAPI

from app.api.routes import generate_router, health_router, ui_router
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import add_cors_middleware, request_id_middleware
from app.services.factory import create_responder
from app.services.responder import AbstractResponder


def create_app(
    cfg: Settings | None = None,
    *,
    responder: AbstractResponder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to build from; defaults to the global settings.
        responder: Optional prebuilt responder (tests inject fakes here).

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ValidationAppError: If the configured responder cannot be built
            (e.g. generative mode without LLM_API_KEY).
    """
    cfg = cfg or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Email Responder API",
        description=(
            "Drafts three reply variants (professional, friendly, brief) for a "
            "customer email, either from keyword-triggered canned text or an "
            "LLM. Rate limited per client for demo use."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.responder = responder or create_responder(cfg)

    # Middleware (last added runs first: CORS wraps request id)
    app.middleware("http")(request_id_middleware)
    add_cors_middleware(app)

    setup_exception_handlers(app)

    app.include_router(generate_router, prefix=cfg.app.api_prefix.rstrip("/"))
    app.include_router(health_router)
    if cfg.app.serve_ui:
        app.include_router(ui_router)

    return app
