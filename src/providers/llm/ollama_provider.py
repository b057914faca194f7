"""Local models served by Ollama.

Ollama speaks the OpenAI chat API under ``/v1``, so requests go through the
``openai`` SDK with a placeholder key. This is the fallback when no remote
key is configured; nothing is checked until the first request.
"""

from __future__ import annotations

import openai

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.providers.llm.openai_provider import chat_completion


class OllamaLLMProvider(ILLMProvider):
    """Chat completions against a local Ollama server.

    Parameters
    ----------
    settings:
        Supplies ``ollama_base_url`` (without the ``/v1`` suffix) and
        ``ollama_model``.
    client:
        Pre-built SDK client pointed at the server; tests pass a mock here.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model
        # Local generation is slow on CPU, hence the long read timeout.
        self._client = client or openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",
            timeout=openai.Timeout(120.0, connect=5.0),
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Run one exchange on the local model.

        Raises
        ------
        src.utils.errors.ProviderUnavailableError
            The server is not running or the request timed out.  The
            message names the configured base URL.
        """
        return await chat_completion(
            self._client,
            model=self._model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            provider_name="ollama",
            unreachable=f"Ollama server at {self._base_url}",
        )

    def get_provider_name(self) -> str:
        """Always ``"ollama"``."""
        return "ollama"

    def get_model_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """``True`` whenever a base URL is set; the server itself is not contacted."""
        return bool(self._base_url)
