"""Injectable retry policy for async operations.

:class:`BackoffPolicy` wraps an ``async`` callable and re-invokes it until it
succeeds or the attempt budget is spent.  The delay between attempts is
``base_delay * multiplier ** (attempt - 1)`` plus an optional random jitter,
so ``multiplier=1.0`` (the default) gives a fixed inter-attempt delay.

The sleep function is injectable so tests can run without real waiting.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Raised by :meth:`BackoffPolicy.run` when every attempt failed.

    The last underlying exception is chained as ``__cause__`` and kept on
    ``last_error``.
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry configuration shared by ingestion and other retrying callers.

    Attributes
    ----------
    max_attempts:
        Total number of tries, including the first one.  Must be >= 1.
    base_delay:
        Seconds to wait after the first failure.
    jitter:
        Upper bound (seconds) of a uniform random delay added to each wait.
    multiplier:
        Growth factor applied to the delay for each further failure.
    retry_on:
        Exception types that trigger another attempt.  Anything else
        propagates immediately.
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    jitter: float = 0.0
    multiplier: float = 1.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.jitter < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Return the wait (seconds) after failed attempt number *attempt* (1-based)."""
        delay = self.base_delay * (self.multiplier ** (attempt - 1))
        if self.jitter:
            delay += random.uniform(0.0, self.jitter)
        return delay

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        Raises
        ------
        RetryExhaustedError
            If all ``max_attempts`` tries raised one of ``retry_on``.
        """
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except self.retry_on as exc:
                last_error = exc
                logger.warning(
                    "retry_attempt_failed",
                    label=label,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(exc),
                )
                if attempt < self.max_attempts:
                    await self.sleep(self.delay_for(attempt))

        assert last_error is not None
        raise RetryExhaustedError(self.max_attempts, last_error) from last_error
