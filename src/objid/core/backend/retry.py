"""
Retry policy with exponential backoff for async operations.

Wraps an awaitable-producing callable and re-invokes it on transient
failures. Backoff is deterministic: no jitter is applied, so the delay
before retry ``n`` is always ``min(initial_delay * multiplier ** n, max_delay)``.

Example:
    >>> policy = RetryPolicy(max_retries=3, initial_delay=1.0, max_delay=10.0)
    >>> result = await policy.execute(lambda: client.send(request))

Configuration:
    - Default retries: 3 (up to 4 attempts)
    - Default initial delay: 1.0 seconds
    - Default multiplier: 2.0x per retry
    - Default delay cap: 30.0 seconds
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from objid.core.backend.errors import (
    ECONNREFUSED,
    ECONNRESET,
    ENOTFOUND,
    ETIMEDOUT,
    BackendError,
    NetworkError,
    RequestFailure,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]

DEFAULT_RETRYABLE_CODES = frozenset({ECONNRESET, ECONNREFUSED, ETIMEDOUT, ENOTFOUND})


def _is_retryable_status(status: int) -> bool:
    return status == 0 or status == 429 or 500 <= status <= 599


def default_is_retryable(error: BaseException) -> bool:
    """
    Default retryability predicate.

    Retries on network-level failures (status 0), server errors (5xx),
    rate limiting (429) and the transient network codes ECONNRESET,
    ECONNREFUSED, ETIMEDOUT and ENOTFOUND. Everything else is terminal.

    Args:
        error: Exception raised by the operation

    Returns:
        True if the operation should be retried
    """
    if isinstance(error, RequestFailure):
        return _is_retryable_status(error.status)
    if isinstance(error, BackendError):
        return _is_retryable_status(error.status_code)
    if isinstance(error, NetworkError):
        return error.code in DEFAULT_RETRYABLE_CODES
    return False


class RetryPolicy:
    """
    Configuration and executor for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Delay in seconds before the first retry (default: 1.0)
        multiplier: Exponential backoff multiplier (default: 2.0)
        max_delay: Upper bound for any single delay in seconds (default: 30.0)
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
    ) -> None:
        """
        Initialize retry configuration.

        Raises:
            ValueError: If parameters are invalid
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if initial_delay <= 0:
            raise ValueError("initial_delay must be positive")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if max_delay < initial_delay:
            raise ValueError("max_delay must be >= initial_delay")

        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self.max_delay = max_delay

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given retry attempt.

        Args:
            attempt: Retry attempt number (0-indexed)

        Returns:
            Delay in seconds before next retry
        """
        return min(self.initial_delay * (self.multiplier**attempt), self.max_delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        is_retryable: RetryPredicate | None = None,
    ) -> T:
        """
        Run an operation, retrying transient failures.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            is_retryable: Predicate deciding whether an error is transient.
                Defaults to ``default_is_retryable``.

        Returns:
            The operation's result from the first successful attempt

        Raises:
            Exception: The last error once retries are exhausted or the
                error is not retryable
        """
        predicate = is_retryable or default_is_retryable
        attempt = 0

        while True:
            try:
                return await operation()
            except Exception as e:
                if not predicate(e):
                    logger.debug(f"Non-retryable error on attempt {attempt + 1}: {e}")
                    raise

                if attempt >= self.max_retries:
                    logger.warning(f"Max retries ({self.max_retries}) exceeded: {e}")
                    raise

                delay = self.calculate_delay(attempt)
                logger.info(
                    f"Retry attempt {attempt + 1}/{self.max_retries} "
                    f"after {delay:.2f}s due to: {e}"
                )
                await asyncio.sleep(delay)
                attempt += 1


__all__ = [
    "RetryPolicy",
    "RetryPredicate",
    "default_is_retryable",
    "DEFAULT_RETRYABLE_CODES",
]
