"""Retry policy for flaky remote calls."""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Delay = Union[float, Callable[[int], float]]


class RetryError(Exception):
    """All attempts of a retried call failed.

    last_exception is None when every attempt returned a rejected result.
    """

    def __init__(self, attempts: int, last_exception: Optional[BaseException] = None):
        reason = f": {last_exception}" if last_exception else ": no usable result"
        super().__init__(f"Gave up after {attempts} attempts{reason}")
        self.attempts = attempts
        self.last_exception = last_exception


def _always(_exc: BaseException) -> bool:
    return True


def _is_none(result: Any) -> bool:
    return result is None


def retry_async(
    attempts: int = 5,
    delay: Delay = 1.0,
    retry_on: Callable[[BaseException], bool] = _always,
    retry_if_result: Callable[[Any], bool] = _is_none,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
):
    """Decorate a coroutine function so failed calls are attempted again.

    Args:
        attempts: Total number of calls, including the first one.
        delay: Seconds to wait between calls, or a function of the attempt
            number (1-based) returning the seconds to wait after it.
        retry_on: Decides whether an exception is retried. Exceptions it
            rejects propagate immediately.
        retry_if_result: Decides whether a returned value counts as a
            failure (None by default).
        sleep: Awaitable used to wait between attempts.

    Raises:
        RetryError: When every attempt failed.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    def decorator(func: Callable[..., Awaitable[Any]]):
        name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(1, attempts + 1):
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    if not retry_on(e):
                        raise
                    last_exception = e
                    logger.warning(f"{name} failed (attempt {attempt}/{attempts}): {e}")
                else:
                    if not retry_if_result(result):
                        return result
                    last_exception = None
                    logger.warning(f"{name} returned no result (attempt {attempt}/{attempts})")

                if attempt < attempts:
                    wait = delay(attempt) if callable(delay) else delay
                    if wait > 0:
                        await sleep(wait)

            raise RetryError(attempts, last_exception)

        return wrapper

    return decorator
