"""
Retry helper built on tenacity.

Wraps an async callable in bounded exponential backoff with jitter and a
``before_sleep`` log line per retry. Only the exception types passed in
are retried; everything else propagates on the first attempt.

Dependencies: tenacity
System role: Shared retry policy for LLM calls and embedding sync
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_before_sleep(operation: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep_for = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"{__name__}:{operation} - Retry {retry_state.attempt_number}/{max_attempts} "
            f"in {sleep_for:.2f}s after {type(exc).__name__}: {exc}"
        )

    return _before_sleep


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    operation: str,
    retry_on: tuple[type[BaseException], ...],
    max_attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 30.0,
    jitter: float = 1.0,
    **kwargs: Any,
) -> T:
    """
    Call an async function with exponential backoff retry.

    Args:
        func: Coroutine function to call
        *args: Positional arguments for func
        operation: Name used in retry log lines
        retry_on: Exception types that trigger a retry
        max_attempts: Total attempts including the first
        initial_wait: First backoff interval in seconds
        max_wait: Backoff cap in seconds
        jitter: Maximum random jitter added per wait
        **kwargs: Keyword arguments for func

    Returns:
        Whatever func returns

    Raises:
        Exception: The last exception once attempts are exhausted, or any
            non-retryable exception immediately
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception_type(retry_on),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=initial_wait, max=max_wait, jitter=jitter),
        before_sleep=_log_before_sleep(operation, max_attempts),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await func(*args, **kwargs)
    raise AssertionError("unreachable: tenacity reraises on the last attempt")
