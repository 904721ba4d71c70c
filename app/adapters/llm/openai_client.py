"""OpenAI LLM client adapter."""

import json
from typing import Any

from openai import AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient

DEFAULT_SYSTEM_PROMPT = "You are a helpful email assistant that generates appropriate responses."


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions that must answer with JSON.

    Uses the official OpenAI Python SDK with async support. No retries: the
    SDK's own retry loop is disabled so a failure surfaces on the first try.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name (e.g., "gpt-3.5-turbo").
            base_url: Optional custom base URL for OpenAI-compatible APIs.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model

    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        schema: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generate structured JSON using OpenAI chat completions.

        Args:
            prompt: User prompt to send to the model.
            system_prompt: System instruction; defaults to the email assistant role.
            schema: Optional JSON schema (enables json_object mode if provided).
            **kwargs: Provider options (temperature, max_tokens, top_p, etc.).

        Returns:
            dict[str, Any]: Parsed JSON object from the LLM response.

        Raises:
            RuntimeError: If the API call fails or the response is not one JSON object.
        """
        messages = [
            {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", 0.7),
        }

        if schema is not None:
            request_params["response_format"] = {"type": "json_object"}

        allowed_params = {
            "max_tokens",
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {exc}") from exc

        if not response.choices:
            raise RuntimeError("LLM returned no choices")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise RuntimeError("LLM returned empty response")

        # json.loads rejects trailing text after the object
        try:
            parsed = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"LLM returned invalid JSON: {exc}") from exc

        if not isinstance(parsed, dict):
            raise RuntimeError(
                f"LLM returned JSON {type(parsed).__name__}, expected an object"
            )
        return parsed
