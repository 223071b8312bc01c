"""Caller-side retry policy for Okta operations.

The dispatch client never retries. Callers that want to ride out rate
limits or transient outages wrap their calls with :func:`with_retry`.
"""

from typing import Awaitable, Callable, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from okta_connector.clients.exceptions import ApiError, TransportError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_retryable(error: BaseException) -> bool:
    """Transport failures, rate limits and server errors are worth retrying."""
    if isinstance(error, TransportError):
        return True
    if isinstance(error, ApiError):
        return error.status_code in RETRYABLE_STATUS_CODES
    return False


class wait_retry_after(wait_base):
    """Wait as long as Okta's ``Retry-After`` asks, else fall back.

    Args:
        fallback: Wait strategy used when the last error carries no ``Retry-After``
        max_delay_seconds: Upper bound for a server-requested delay
    """

    def __init__(self, fallback: wait_base, max_delay_seconds: float) -> None:
        self.fallback = fallback
        self.max_delay_seconds = max_delay_seconds

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None and outcome.failed else None
        if isinstance(error, ApiError) and error.retry_after is not None:
            return float(min(max(error.retry_after, 0), self.max_delay_seconds))
        return self.fallback(retry_state)


async def with_retry(
    operation_name: str,
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    retry_delay_seconds: float = 1.0,
    max_delay_seconds: float = 60.0,
) -> T:
    """Execute an operation with exponential backoff.

    A ``Retry-After`` header on a failed response takes precedence over
    the backoff, capped at ``max_delay_seconds``.

    Args:
        operation_name: Name of the operation for logging
        operation: Callable returning a fresh awaitable for each attempt
        max_retries: Maximum retry attempts after the first call
        retry_delay_seconds: Initial delay between retries
        max_delay_seconds: Upper bound for a single delay

    Returns:
        Result of the operation

    Raises:
        The last error once retries are exhausted, or the first
        non-retryable error.
    """
    backoff = wait_exponential(
        multiplier=retry_delay_seconds,
        min=retry_delay_seconds,
        max=max_delay_seconds,
    )
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_retry_after(backoff, max_delay_seconds),
        retry=retry_if_exception(is_retryable),
        reraise=True,
    ):
        with attempt:
            attempt_number = attempt.retry_state.attempt_number
            if attempt_number > 1:
                logger.info(
                    "Retrying operation",
                    operation=operation_name,
                    attempt_number=attempt_number,
                )
            return await operation()
