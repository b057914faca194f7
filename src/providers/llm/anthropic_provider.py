"""Claude models through the Anthropic Messages API."""

from __future__ import annotations

import anthropic
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.providers.llm.error_mapping import classify_api_error
from src.utils.errors import LLMError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """Claude through the Messages API, selected when ``ANTHROPIC_API_KEY`` is set.

    Parameters
    ----------
    settings:
        Supplies ``anthropic_api_key`` and ``anthropic_model``.
    client:
        Pre-built SDK client; tests pass a mock here.
    """

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None) -> None:
        self._api_key = settings.anthropic_api_key
        self._model = settings.anthropic_model
        self._client = client or anthropic.AsyncAnthropic(api_key=self._api_key or "missing")

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Send one user turn and join the text blocks of the reply.

        Non-text blocks (tool use and the like) are ignored.  A reply with
        no text block at all raises :class:`~src.utils.errors.LLMError`.
        """
        # The Messages API takes the system prompt as its own parameter.
        try:
            message = await self._client.messages.create(
                model=self._model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except anthropic.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"api.anthropic.com did not respond: {exc}",
                provider_name="anthropic",
            ) from exc
        except anthropic.APIError as exc:
            raise classify_api_error(exc, "anthropic") from exc

        text = "\n".join(block.text for block in message.content if block.type == "text")
        if not text:
            raise LLMError(message=f"{self._model} returned no text blocks", provider_name="anthropic")

        logger.info(
            "chat_completion_done",
            provider="anthropic",
            model=self._model,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )
        return text

    def get_provider_name(self) -> str:
        """Always ``"anthropic"``."""
        return "anthropic"

    def get_model_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """``True`` when an API key is configured."""
        return bool(self._api_key)
