"""
Rate-limit aware retry for remote calls.

invoke_with_retry() is a transport-independent higher-order coroutine:
it runs an async zero-argument callable and retries it with exponential
backoff, but only when the failure is classified as rate limiting.

Retry Policy:
    - Attempts are 1-indexed, at most `max_retries` attempts in total
    - Rate limited and attempt < max_retries: wait base_delay * 2^(attempt-1), retry
    - Rate limited on the last attempt: re-raise the original exception
    - Any other failure: re-raise immediately, no wait

Usage:
    result = await invoke_with_retry(
        lambda: client.generate(request), max_retries=5, base_delay=2.0
    )
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from doc_anonymizer.monitoring.metrics import remote_call_attempts_total, retry_backoff_seconds_total
from doc_anonymizer.retry.metadata import (
    OUTCOME_FAILED,
    OUTCOME_RATE_LIMITED,
    OUTCOME_SUCCESS,
    InvocationAttempt,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
AttemptObserver = Callable[[InvocationAttempt], None]


def is_rate_limited(error: BaseException) -> bool:
    """
    Default failure classifier.

    Clients classify at their boundary by raising RateLimitError (which sets
    `rate_limited = True`); any exception carrying a truthy `rate_limited`
    attribute is treated the same way.
    """
    return bool(getattr(error, "rate_limited", False))


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Wait before the attempt following `attempt` (1-indexed)."""
    return base_delay * (2 ** (attempt - 1))


async def invoke_with_retry(
    call: Callable[[], Awaitable[T]],
    max_retries: int,
    base_delay: float,
    *,
    operation: str = "remote_call",
    sleep: SleepFn = asyncio.sleep,
    classify: Callable[[BaseException], bool] = is_rate_limited,
    on_attempt: Optional[AttemptObserver] = None,
) -> T:
    """
    Execute `call`, retrying only on rate limiting.

    Args:
        call: Async zero-argument callable performing one remote request
        max_retries: Maximum number of attempts (>= 1)
        base_delay: Backoff base in seconds (first wait)
        operation: Label used in logs and metrics
        sleep: Awaitable sleep (injectable for tests)
        classify: Returns True if a failure is rate limiting
        on_attempt: Optional observer receiving an InvocationAttempt per attempt

    Returns:
        Whatever `call` returns on the first successful attempt

    Raises:
        The original exception from the last attempt
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        start = time.perf_counter()
        try:
            result = await call()
        except Exception as exc:
            latency_ms = int((time.perf_counter() - start) * 1000)
            rate_limited = classify(exc)
            will_retry = rate_limited and attempt < max_retries
            delay = backoff_delay(base_delay, attempt) if will_retry else 0.0
            outcome = OUTCOME_RATE_LIMITED if rate_limited else OUTCOME_FAILED

            remote_call_attempts_total.labels(operation=operation, outcome=outcome).inc()
            _notify(on_attempt, InvocationAttempt(
                operation=operation,
                attempt=attempt,
                outcome=outcome,
                latency_ms=latency_ms,
                will_retry=will_retry,
                backoff_seconds=delay,
                error=str(exc),
            ))

            if not will_retry:
                logger.error(
                    "Remote call failed",
                    operation=operation,
                    attempt=attempt,
                    max_retries=max_retries,
                    rate_limited=rate_limited,
                    error=str(exc),
                    error_type=type(exc).__name__,
                    latency_ms=latency_ms,
                )
                raise

            logger.warning(
                "Rate limit hit, backing off",
                operation=operation,
                attempt=attempt,
                max_retries=max_retries,
                backoff_seconds=delay,
                latency_ms=latency_ms,
            )
            retry_backoff_seconds_total.labels(operation=operation).inc(delay)
            await sleep(delay)
            continue

        latency_ms = int((time.perf_counter() - start) * 1000)
        remote_call_attempts_total.labels(operation=operation, outcome=OUTCOME_SUCCESS).inc()
        _notify(on_attempt, InvocationAttempt(
            operation=operation,
            attempt=attempt,
            outcome=OUTCOME_SUCCESS,
            latency_ms=latency_ms,
        ))
        logger.debug(
            "Remote call succeeded",
            operation=operation,
            attempt=attempt,
            latency_ms=latency_ms,
        )
        return result


def _notify(observer: Optional[AttemptObserver], attempt: InvocationAttempt) -> None:
    if observer is not None:
        observer(attempt)
