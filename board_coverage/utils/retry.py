# board_coverage/utils/retry.py
"""
Provides a generic, asynchronous retry decorator for handling transient errors.

Used to give the game source a bounded number of retries, with exponential
backoff, before an unavailable provider is treated as fatal.
"""
import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, Coroutine, Optional, Tuple, Type

import structlog

from board_coverage.exceptions import SourceUnavailable
from board_coverage.utils import metrics

logger = structlog.get_logger(__name__)

# A tuple of default exception types that are considered "transient" and worth retrying.
DEFAULT_TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    SourceUnavailable,
    ConnectionError,
    asyncio.TimeoutError,
)


def retry_with_backoff(
    attempts: int = 3,
    initial_backoff_s: float = 0.5,
    max_backoff_s: float = 5.0,
    jitter_factor: float = 0.2,
    exceptions_to_catch: Tuple[Type[Exception], ...] = DEFAULT_TRANSIENT_EXCEPTIONS,
    operation: str = "unknown",
    sleeper: Optional[Callable[[float], Awaitable[None]]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Callable[[Callable[..., Coroutine]], Callable[..., Coroutine]]:
    """
    An async decorator to retry a function with exponential backoff and jitter.

    Args:
        attempts: The maximum number of times to try the function (including the first attempt).
        initial_backoff_s: The initial delay in seconds for the first retry.
        max_backoff_s: The maximum possible delay in seconds, to cap the backoff time.
        jitter_factor: A factor to add randomness to the delay. A value of 0.2
                       adds or subtracts up to 20% of the current backoff time.
        exceptions_to_catch: A tuple of specific exception classes that should trigger a retry.
        operation: A label for Prometheus metrics, identifying what is being retried.
        sleeper: Awaitable used for the backoff pause; `asyncio.sleep` if omitted.
        should_stop: Checked after each failure and after each pause. When it
                     returns True the last error is re-raised without further attempts.

    Returns:
        A decorated asynchronous function.
    """
    def stop_requested() -> bool:
        return should_stop is not None and should_stop()

    def decorator(func: Callable[..., Coroutine]) -> Callable[..., Coroutine]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = initial_backoff_s
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions_to_catch as e:
                    if stop_requested():
                        logger.info(
                            "Shutdown requested, abandoning retries.",
                            function=func.__name__,
                            operation=operation,
                            attempt=attempt,
                        )
                        raise

                    if attempt == attempts:
                        logger.error(
                            "Function call failed after max attempts.",
                            function=func.__name__,
                            operation=operation,
                            total_attempts=attempts,
                            error=str(e),
                        )
                        raise

                    metrics.SOURCE_TRANSIENT_ERRORS_TOTAL.labels(operation=operation).inc()
                    jitter = random.uniform(-current_delay * jitter_factor, current_delay * jitter_factor)
                    wait_time = max(0.0, min(max_backoff_s, current_delay + jitter))

                    logger.warning(
                        "Caught transient error, retrying function.",
                        function=func.__name__,
                        operation=operation,
                        attempt=attempt,
                        total_attempts=attempts,
                        wait_seconds=round(wait_time, 2),
                        error=str(e),
                    )

                    await (sleeper or asyncio.sleep)(wait_time)
                    if stop_requested():
                        logger.info("Shutdown requested during backoff.", function=func.__name__, operation=operation)
                        raise
                    current_delay *= 2
        return wrapper
    return decorator
