"""Text-generation backend contract.

Both pairing stages call :meth:`ILLMProvider.complete` and nothing else, so
swapping OpenAI for Anthropic or a local Ollama model is a wiring change in
``src/main.py`` only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ILLMProvider(ABC):
    """A chat model that turns a system and user prompt into one reply."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Return the model's reply text for a single-turn conversation.

        The reply is returned untouched; JSON extraction and repair happen in
        :mod:`src.services.output_recovery`.

        Parameters
        ----------
        system_prompt:
            Role and output-format instructions for the stage.
        user_prompt:
            The rendered request, including any retrieved recipe context.
        temperature:
            Sampling temperature passed straight to the backend.
        max_tokens:
            Upper bound on the reply length.

        Raises
        ------
        src.utils.errors.RateLimitError
            The backend throttled the request.
        src.utils.errors.QuotaExceededError
            The account has no credit left.
        src.utils.errors.ProviderAuthError
            Key missing or rejected.
        src.utils.errors.ProviderUnavailableError
            Connection failure or timeout.
        src.utils.errors.LLMError
            Any other failed call, or a reply with no text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Short backend id such as ``"anthropic"``, used as the error prefix."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Model id recorded in pipeline metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether credentials or a host are configured.

        Never calls the model.  The provider chain in ``src/main.py`` picks
        the first adapter returning ``True``.
        """
