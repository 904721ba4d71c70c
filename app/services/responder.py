"""Responder interface shared by the canned and generative backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas.generate import ResponseBundle


class AbstractResponder(ABC):
    """Turns one customer email into a professional/friendly/brief bundle."""

    mode: str

    @abstractmethod
    async def respond(self, email_text: str) -> ResponseBundle:
        """Draft the three reply variants for ``email_text``.

        Args:
            email_text: Customer email, already checked to be non-blank.

        Raises:
            GenerationAppError: If the backend cannot produce a valid bundle.
        """
        ...
