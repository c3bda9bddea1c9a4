"""
Exponential backoff with jitter for async operations.

Usage:
    from proposalpilot.core.backoff import with_exponential_backoff

    result = await with_exponential_backoff(call_service, max_attempts=3)

The wait before retry i (0-based) is 2^i * base_delay_ms plus a jitter drawn
from [0, max_jitter_ms). Waits are asyncio suspensions and can be cut short by
a cancellation event.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from proposalpilot.core.errors import GenerationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RequestAttempt:
    """Outcome of a single attempt. Only lives inside the retry loop."""

    index: int
    outcome: str  # "success" | "failure"
    delay_ms: Optional[float] = None  # wait scheduled before the next attempt
    error: Optional[BaseException] = None


def compute_delay_ms(
    attempt: int,
    base_delay_ms: float = 1000.0,
    max_jitter_ms: float = 1000.0,
    rng: Any = random
) -> float:
    """Delay after failed attempt `attempt`, in milliseconds."""
    return (2 ** attempt) * base_delay_ms + rng.random() * max_jitter_ms


def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("Request cancelled before the next attempt")


async def _pause(
    seconds: float,
    cancel_event: Optional[asyncio.Event],
    sleep: Callable[[float], Awaitable[Any]]
):
    """Sleep, waking early if the cancel event fires."""
    if cancel_event is None:
        await sleep(seconds)
        return

    sleeper = asyncio.ensure_future(sleep(seconds))
    watcher = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, watcher):
            if not task.done():
                task.cancel()

    _raise_if_cancelled(cancel_event)


async def with_exponential_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    *,
    base_delay_ms: float = 1000.0,
    max_jitter_ms: float = 1000.0,
    should_retry: Optional[Callable[[Exception], bool]] = None,
    cancel_event: Optional[asyncio.Event] = None,
    on_attempt: Optional[Callable[[RequestAttempt], None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: Any = random
) -> T:
    """
    Run `operation`, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine function to execute
        max_attempts: Total attempts; values below 1 still run once
        base_delay_ms: Base of the exponential delay
        max_jitter_ms: Exclusive upper bound of the per-attempt jitter
        should_retry: Predicate deciding whether an error is worth retrying.
                      Errors it rejects propagate immediately.
        cancel_event: When set, no further attempt is started
        on_attempt: Observer called with a RequestAttempt after each attempt
        sleep: Coroutine used to wait (injectable for tests)
        rng: Source of jitter; needs a random() method

    Returns:
        The first successful result

    Raises:
        The error of the last attempt, a non-retryable error, or
        GenerationCancelled
    """
    attempts = max(1, max_attempts)

    for attempt in range(attempts):
        _raise_if_cancelled(cancel_event)

        try:
            result = await operation()
        except Exception as e:
            is_last = attempt == attempts - 1
            retryable = should_retry(e) if should_retry is not None else True

            if is_last or not retryable:
                if on_attempt:
                    on_attempt(RequestAttempt(index=attempt, outcome="failure", error=e))
                if not retryable:
                    logger.info(f"Attempt {attempt + 1}/{attempts} failed with non-retryable error: {e}")
                else:
                    logger.error(f"Attempt {attempt + 1}/{attempts} failed, giving up: {e}")
                raise

            delay_ms = compute_delay_ms(attempt, base_delay_ms, max_jitter_ms, rng)
            if on_attempt:
                on_attempt(RequestAttempt(index=attempt, outcome="failure", delay_ms=delay_ms, error=e))
            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed: {e}. "
                f"Retrying in {delay_ms / 1000:.2f} seconds..."
            )
            await _pause(delay_ms / 1000.0, cancel_event, sleep)
        else:
            if on_attempt:
                on_attempt(RequestAttempt(index=attempt, outcome="success"))
            if attempt:
                logger.info(f"Attempt {attempt + 1}/{attempts} succeeded")
            return result

    # Unreachable: the last attempt either returns or raises
    raise RuntimeError("Backoff loop exited without a result")
