from __future__ import annotations

from functools import lru_cache
from importlib import resources

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.core.config import settings

router = APIRouter(tags=["UI"])

API_PREFIX_PLACEHOLDER = "__API_PREFIX__"


@lru_cache(maxsize=4)
def render_index(api_prefix: str) -> str:
    """Load the client page with the generate endpoint's prefix filled in."""
    template = resources.files("app.static").joinpath("index.html").read_text(encoding="utf-8")
    return template.replace(API_PREFIX_PLACEHOLDER, api_prefix.rstrip("/"))


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index() -> HTMLResponse:
    return HTMLResponse(render_index(settings.app.api_prefix))
