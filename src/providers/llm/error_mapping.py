"""Translate SDK exceptions into the engine's ProviderError family.

The openai and anthropic SDKs share an exception layout (``APIStatusError``
with ``status_code``, ``APIConnectionError`` / ``APITimeoutError``), so one
classifier serves all three adapters.  Classification uses the HTTP status
first and falls back to message keywords for gateways that return generic
statuses.
"""

from __future__ import annotations

from src.utils.errors import (
    LLMError,
    ProviderAuthError,
    ProviderError,
    QuotaExceededError,
    RateLimitError,
)

_QUOTA_HINTS = ("insufficient_quota", "quota", "credit balance", "billing")
_AUTH_HINTS = ("api key", "api_key", "authentication", "unauthorized", "invalid x-api-key")
_RATE_HINTS = ("rate limit", "rate_limit", "too many requests")


def classify_api_error(exc: Exception, provider_name: str) -> ProviderError:
    """Return the :class:`ProviderError` subclass describing *exc*."""
    status = getattr(exc, "status_code", None)
    code = str(getattr(exc, "code", "") or "").lower()
    text = f"{code} {exc}".lower()

    if status == 402 or any(hint in text for hint in _QUOTA_HINTS):
        return QuotaExceededError(provider_name=provider_name)
    if status == 429 or any(hint in text for hint in _RATE_HINTS):
        return RateLimitError(provider_name=provider_name)
    if status in (401, 403) or any(hint in text for hint in _AUTH_HINTS):
        return ProviderAuthError(provider_name=provider_name)
    return LLMError(message=f"API error: {exc}", provider_name=provider_name)
