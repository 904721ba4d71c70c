from __future__ import annotations

from app.api.routes.generate import router as generate_router
from app.api.routes.health import router as health_router
from app.api.routes.ui import router as ui_router

__all__ = ["generate_router", "health_router", "ui_router"]
