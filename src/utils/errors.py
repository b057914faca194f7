"""Exception hierarchy for the pairing engine.

Every error raised by the engine derives from :class:`PairingEngineError`.
Each one can name the backend it came from (``provider_name``), and that
name is shown in brackets when the error is rendered, so a log line reads
``[anthropic] overloaded`` rather than a bare message.

    PairingEngineError
    +-- InputValidationError     food list empty after cleaning
    +-- ProviderError            generation or embedding backend failed
    |   +-- LLMError
    |   +-- RateLimitError
    |   +-- QuotaExceededError
    |   +-- ProviderAuthError
    |   +-- ProviderUnavailableError
    +-- RAGError                 embedding or vector index problem
    +-- IngestionError           ingestion gave up after retries
    +-- PipelineError            stage graph or orchestration problem
    |   +-- GraphConfigurationError
    +-- ConfigurationError

Stages turn :class:`ProviderError` into ``PipelineState.error`` instead of
raising it. Ingestion raises, since a half-built index is never kept.
"""

from __future__ import annotations


class PairingEngineError(Exception):
    """Base class; subclasses override ``default_message``."""

    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if not self._provider_name:
            return self._message
        return f"[{self._provider_name}] {self._message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._message!r}, provider_name={self._provider_name!r})"


class InputValidationError(PairingEngineError):
    default_message = "Invalid pairing request"


# -- backends ---------------------------------------------------------------


class ProviderError(PairingEngineError):
    """A generation or embedding backend call failed.

    Caught inside stages and recorded on the pipeline state so output from
    earlier stages survives.
    """

    default_message = "Provider call failed"


class LLMError(ProviderError):
    default_message = "LLM API call failed"


class RateLimitError(ProviderError):
    default_message = "Rate limit exceeded, please try again later"


class QuotaExceededError(ProviderError):
    default_message = "API quota exhausted, check the account balance"


class ProviderAuthError(ProviderError):
    default_message = "API key is missing or invalid"


class ProviderUnavailableError(ProviderError):
    """Backend unreachable or timed out; embedding selection skips to the next one."""

    default_message = "External service is unavailable"


# -- retrieval --------------------------------------------------------------


class RAGError(PairingEngineError):
    default_message = "RAG operation failed"


class IngestionError(PairingEngineError):
    """Ingestion failed; the vector index still holds its previous contents."""

    default_message = "Document ingestion failed"


# -- orchestration ----------------------------------------------------------


class PipelineError(PairingEngineError):
    default_message = "Pipeline orchestration failed"


class GraphConfigurationError(PipelineError):
    """A transition named a stage that was never registered."""

    default_message = "Stage graph is misconfigured"


class ConfigurationError(PairingEngineError):
    default_message = "Invalid or missing configuration"
