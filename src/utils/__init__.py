"""Cross-cutting helpers: the error hierarchy, structlog setup and retry."""

from src.utils.errors import (
    ConfigurationError,
    GraphConfigurationError,
    IngestionError,
    InputValidationError,
    LLMError,
    PairingEngineError,
    PipelineError,
    ProviderAuthError,
    ProviderError,
    ProviderUnavailableError,
    QuotaExceededError,
    RAGError,
    RateLimitError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.retry import BackoffPolicy, RetryExhaustedError

__all__ = [
    "BackoffPolicy",
    "ConfigurationError",
    "GraphConfigurationError",
    "IngestionError",
    "InputValidationError",
    "LLMError",
    "PairingEngineError",
    "PipelineError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderUnavailableError",
    "QuotaExceededError",
    "RAGError",
    "RateLimitError",
    "RetryExhaustedError",
    "configure_logging",
    "get_logger",
]
