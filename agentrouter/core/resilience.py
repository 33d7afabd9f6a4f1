"""Timeout and retry helpers used around agent calls."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import AgentError, AgentErrorType, is_circuit_open

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout_ms: float, operation_name: str) -> T:
    """Await ``awaitable`` for at most ``timeout_ms``.

    On expiry the pending work is cancelled and a TIMEOUT error is raised.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as exc:
        raise AgentError(
            AgentErrorType.TIMEOUT,
            f"{operation_name} timed out after {timeout_ms:g}ms",
            {"timeout_ms": timeout_ms},
        ) from exc


def _should_retry(exc: BaseException) -> bool:
    # Cancellation reaches tenacity as an outcome too; it must propagate.
    return isinstance(exc, Exception) and not is_circuit_open(exc)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Attempt {} failed: {}; retrying in {:.3f}s",
        retry_state.attempt_number,
        exc,
        retry_state.next_action.sleep if retry_state.next_action else 0,
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    base_delay_ms: float = 1000,
    operation_name: str = "unknown",
) -> T:
    """Run ``operation`` up to ``max_retries + 1`` times.

    The wait before retry ``n`` (0-based) is ``base_delay_ms * 2 ** n``. A
    rejection from an OPEN circuit is not retried and propagates as is.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay_ms / 1000, exp_base=2),
        retry=retry_if_exception(_should_retry),
        before_sleep=_log_retry,
    )
    try:
        return await retrying(operation)
    except RetryError as exc:
        last = exc.last_attempt.exception()
        raise AgentError(
            AgentErrorType.OPERATION,
            f"Operation {operation_name} failed after {max_retries} retries",
            {"attempts": max_retries + 1},
        ) from last
