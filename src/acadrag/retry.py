"""Bounded retry with exponential backoff.

Embedding calls, vector-store calls and quiz batch generation all go through
these two helpers so they share a single retry policy.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_BACKOFF_SECONDS = 30.0


def _log_before_sleep(label: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def _log(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"🔁 {label}: attempt {retry_state.attempt_number}/{max_attempts} failed "
            f"({error}), retrying in {retry_state.upcoming_sleep:.1f}s"
        )

    return _log


def _validate(max_attempts: int, base_delay: float) -> None:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if base_delay < 0:
        raise ValueError("base_delay must not be negative")


def retry_call(
    operation: Callable[[int], T],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "operation",
) -> T:
    """Call ``operation`` until it succeeds or ``max_attempts`` is reached.

    Args:
        operation: Callable receiving the 1-based attempt number
        max_attempts: Total number of attempts, including the first
        base_delay: Wait before the second attempt; doubles on each further retry
        retry_on: Exception types that trigger another attempt
        label: Name used in log messages

    Returns:
        The first successful result of ``operation``

    Raises:
        The last exception raised by ``operation`` once attempts are exhausted,
        or immediately for exception types outside ``retry_on``.
    """
    _validate(max_attempts, base_delay)
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_before_sleep(label, max_attempts),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            return operation(attempt.retry_state.attempt_number)
    raise AssertionError("unreachable")  # pragma: no cover


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "operation",
) -> T:
    """Async counterpart of :func:`retry_call`; waits with ``asyncio.sleep``."""
    _validate(max_attempts, base_delay)
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_before_sleep(label, max_attempts),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation(attempt.retry_state.attempt_number)
    raise AssertionError("unreachable")  # pragma: no cover
