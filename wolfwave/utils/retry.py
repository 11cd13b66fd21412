"""Exponential-backoff retries for asynchronous operations, built on Tenacity."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors.internal import ChatConnectionError, NetworkError

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    aiohttp.ClientError,
    NetworkError,
    ChatConnectionError,
)


class RetryRequested(Exception):
    """Tells Tenacity that another attempt is wanted."""


class RetryExhaustedError(Exception):
    """Raised when an operation gave up, either out of attempts or on a fatal error.

    Attributes:
        attempts: Number of attempts actually made.
        final_exception: The error that ended the retries.
    """

    def __init__(self, message: str, attempts: int, final_exception: Exception | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.final_exception = final_exception


async def retry_async(
    operation: Callable[[int], Awaitable[tuple[T | None, bool]]],
    max_attempts: int = 6,
    max_wait: float = 60.0,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
) -> T:
    """Run ``operation`` until it succeeds, backing off exponentially between tries.

    Args:
        operation: Async callable receiving the zero-based attempt number and
            returning ``(result, should_retry)``.
        max_attempts: Maximum number of attempts.
        max_wait: Upper bound for a single backoff wait in seconds.
        retry_on: Exception types that count as transient. Anything else ends
            the retries immediately.

    Returns:
        The result of the first attempt that does not ask for a retry.

    Raises:
        RetryExhaustedError: When attempts run out or a non-transient error occurs.
    """
    attempts_made = 0

    async def attempt_once() -> T | None:
        nonlocal attempts_made
        attempt_number = attempts_made
        attempts_made += 1
        try:
            result, again = await operation(attempt_number)
        except retry_on as e:
            logging.debug(
                f"🔁 Attempt {attempts_made}/{max_attempts} failed: {type(e).__name__} {str(e)}"
            )
            raise RetryRequested(str(e)) from e
        if again:
            raise RetryRequested("operation asked for another attempt")
        return result

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, max=max_wait),
        retry=retry_if_exception_type(RetryRequested),
    )
    try:
        return await retrying(attempt_once)
    except Exception as e:
        raise RetryExhaustedError(
            f"Operation failed after {attempts_made} attempt(s)",
            attempts=attempts_made,
            final_exception=e,
        ) from e
