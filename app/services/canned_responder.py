"""Keyword-triggered canned reply drafts.

The demo backend: no model call, just a lookup into the canned catalog and a
fixed pause so the UI shows a realistic "Generating..." state.
"""

from __future__ import annotations

import asyncio
import logging

from app.schemas.generate import ResponseBundle
from app.services.canned_catalog import DEFAULT_CATALOG, CannedCatalog, CannedRule
from app.services.responder import AbstractResponder

logger = logging.getLogger(__name__)


def classify(text: str, catalog: CannedCatalog = DEFAULT_CATALOG) -> CannedRule:
    """Pick the first catalog rule with a keyword contained in ``text``.

    Matching is a case-insensitive substring test, so "REFUND" and "refunded"
    both hit the refund rule. Rule order is priority order.
    """
    lowered = text.lower()
    for rule in catalog.rules:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule
    return catalog.default


class CannedResponder(AbstractResponder):
    """Responder that returns pre-written drafts after an artificial delay."""

    mode = "canned"

    def __init__(self, catalog: CannedCatalog = DEFAULT_CATALOG, delay_ms: int = 1500) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self.catalog = catalog
        self.delay_ms = delay_ms

    async def respond(self, email_text: str) -> ResponseBundle:
        if self.delay_ms:
            await asyncio.sleep(self.delay_ms / 1000)

        rule = classify(email_text, self.catalog)
        logger.info(
            "canned.classified",
            extra={"category": rule.category.value, "email_chars": len(email_text)},
        )
        return rule.responses
