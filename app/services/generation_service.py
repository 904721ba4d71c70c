"""Reply drafting through an external completion model.

Builds the prompt, calls the LLM adapter once, and accepts the answer only if
it is exactly the three-field bundle. Every failure mode (provider error,
empty answer, invalid JSON, wrong shape) becomes a ``GenerationAppError``;
the upstream detail goes to the log, never to the client. No retries, no
caching.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import GENERATION_FAILED_MESSAGE, GenerationAppError
from app.schemas.generate import ResponseBundle
from app.services.responder import AbstractResponder

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful email assistant that generates appropriate responses."


def build_prompt(email_text: str) -> str:
    """Embed the customer email between delimiters and demand strict JSON."""
    return f"""
You are an expert email assistant. Given the following email, generate 3 different response options:

1. Professional tone
2. Friendly tone
3. Brief/concise tone

Original email:
\"\"\"
{email_text}
\"\"\"

Return ONLY a JSON object with exactly this structure and no extra text, comments, or markdown:
{{
  "professional": "response here",
  "friendly": "response here",
  "brief": "response here"
}}
""".strip()


class GenerationService(AbstractResponder):
    """Responder backed by an LLM completion call.

    Attributes:
        llm: Adapter performing the completion request.
        temperature: Sampling temperature passed to the provider.
        max_tokens: Completion token budget.
    """

    mode = "generative"

    def __init__(
        self,
        llm: AbstractLLMClient,
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> None:
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _fail(self, code: str, exc: Exception) -> GenerationAppError:
        logger.error(
            "generation.failed",
            extra={
                "error_code": code,
                "error_type": type(exc).__name__,
                "error_msg": str(exc)[:500],
                "model": getattr(self.llm, "model", None),
            },
        )
        return GenerationAppError(
            code=code,
            message=GENERATION_FAILED_MESSAGE,
            details={"upstream_error": str(exc)[:500]},
        )

    async def generate(self, email_text: str) -> ResponseBundle:
        """Draft the three reply variants with the model.

        Raises:
            GenerationAppError: On any upstream or parsing failure.
        """
        prompt = build_prompt(email_text)

        try:
            raw: dict[str, Any] = await self.llm.generate_json(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                schema=ResponseBundle.model_json_schema(),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except RuntimeError as exc:
            raise self._fail("llm_call_failed", exc) from exc

        try:
            bundle = ResponseBundle.model_validate(raw)
        except ValidationError as exc:
            raise self._fail("llm_invalid_bundle", exc) from exc

        logger.info(
            "generation.succeeded",
            extra={"email_chars": len(email_text), "model": getattr(self.llm, "model", None)},
        )
        return bundle

    async def respond(self, email_text: str) -> ResponseBundle:
        return await self.generate(email_text)
