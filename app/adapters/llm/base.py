from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for completion clients that return one parsed JSON object."""

	model: str

	@abstractmethod
	async def generate_json(
		self,
		prompt: str,
		*,
		system_prompt: str | None = None,
		schema: dict[str, Any] | None = None,
		**kwargs: Any,
	) -> dict[str, Any]:
		"""Ask the model for a JSON object and parse it.

		Args:
			prompt: User prompt to send to the model.
			system_prompt: Optional system instruction replacing the default.
			schema: Optional JSON schema; enables the provider's JSON mode.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			dict[str, Any]: Parsed JSON object returned by the model.

		Raises:
			RuntimeError: If the provider call fails, returns nothing, or the
				content is not exactly one JSON object.
		"""
		...
