"""Chat completions through the ``openai`` SDK.

One adapter serves api.openai.com and every host that mimics it (DeepSeek,
Groq, TogetherAI, ...): set ``OPENAI_BASE_URL`` and the provider reports
itself as ``openai-compatible``. :func:`chat_completion` is also used by the
Ollama adapter, which talks to Ollama's ``/v1`` endpoint.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.providers.llm.error_mapping import classify_api_error
from src.utils.errors import LLMError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


async def chat_completion(
    client: openai.AsyncOpenAI,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
    provider_name: str,
    unreachable: str,
) -> str:
    """Send one system+user exchange and return the first choice's text.

    ``unreachable`` describes the host in the error raised on connection
    failures and timeouts.
    """
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except openai.APIConnectionError as exc:
        # Also covers APITimeoutError.
        raise ProviderUnavailableError(
            message=f"{unreachable} did not respond: {exc}", provider_name=provider_name
        ) from exc
    except openai.APIError as exc:
        raise classify_api_error(exc, provider_name) from exc

    choice = response.choices[0] if response.choices else None
    text = choice.message.content if choice is not None else None
    if not text:
        raise LLMError(message=f"{model} returned an empty reply", provider_name=provider_name)

    usage = getattr(response, "usage", None)
    logger.info(
        "chat_completion_done",
        provider=provider_name,
        model=model,
        tokens=getattr(usage, "total_tokens", None),
    )
    return text


class OpenAILLMProvider(ILLMProvider):
    """OpenAI chat models, or any host speaking the same API.

    Parameters
    ----------
    settings:
        Supplies ``openai_api_key``, ``llm_model`` and the optional
        ``openai_base_url`` that redirects requests to a compatible host.
    client:
        Pre-built SDK client; tests pass a mock here.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url or None
        self._model = settings.llm_model or DEFAULT_OPENAI_MODEL
        self._client = client or openai.AsyncOpenAI(
            api_key=self._api_key or "missing",
            base_url=self._base_url,
            timeout=openai.Timeout(60.0, connect=5.0),
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        return await chat_completion(
            self._client,
            model=self._model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            provider_name=self.get_provider_name(),
            unreachable=self._base_url or "api.openai.com",
        )

    def get_provider_name(self) -> str:
        """Backend label used in error prefixes and pipeline metadata.

        Returns
        -------
        str
            ``"openai-compatible"`` when a custom base URL is configured,
            otherwise ``"openai"``.
        """
        return "openai-compatible" if self._base_url else "openai"

    def get_model_name(self) -> str:
        """Configured model, falling back to :data:`DEFAULT_OPENAI_MODEL`."""
        return self._model

    def is_available(self) -> bool:
        # Presence only; a bad key surfaces as ProviderAuthError on first call.
        return bool(self._api_key)
