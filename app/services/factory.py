"""Builds the responder selected by ``APP_RESPONDER_MODE``.

The canned and generative backends are alternatives, not a chain: a
generative failure is reported as a 500 and never answered with canned text.
"""

from __future__ import annotations

import logging

from app.adapters.llm.factory import create_llm_client
from app.core.config import Settings, settings
from app.core.errors import ValidationAppError
from app.services.canned_catalog import load_catalog
from app.services.canned_responder import CannedResponder
from app.services.generation_service import GenerationService
from app.services.responder import AbstractResponder

logger = logging.getLogger(__name__)


def create_responder(cfg: Settings | None = None) -> AbstractResponder:
    """Instantiate the responder for the configured mode.

    Raises:
        ValidationAppError: If the mode is unknown or its requirements are missing.
    """
    cfg = cfg or settings
    mode = cfg.app.responder_mode

    if mode == "canned":
        responder: AbstractResponder = CannedResponder(
            catalog=load_catalog(cfg.app.canned_catalog_path),
            delay_ms=cfg.app.canned_delay_ms,
        )
    elif mode == "generative":
        responder = GenerationService(
            create_llm_client(cfg.llm),
            temperature=cfg.llm.temperature,
            max_tokens=cfg.llm.max_tokens,
        )
    else:
        raise ValidationAppError(
            code="unknown_responder_mode",
            message=f"Unknown responder mode: '{mode}'. Supported modes: canned, generative",
        )

    logger.info("responder.created", extra={"mode": responder.mode})
    return responder
