"""
Retry with exponential backoff for Google Sheets calls.

Sheets answers request bursts with HTTP 429 and occasionally with a 5xx;
both clear up on their own. Everything else (a missing worksheet, a
duplicate key, a bad credential) is raised on the first attempt.
"""

import asyncio
import functools
import logging
import random
from typing import Any, Callable, Optional

import gspread

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)

RetryPredicate = Callable[[Exception], bool]


class RetryExhausted(Exception):
    """Raised when every attempt failed with a retryable error."""
    pass


def _status_code(error: gspread.exceptions.APIError) -> Optional[int]:
    code = getattr(error, "code", None)
    if code is None:
        code = getattr(getattr(error, "response", None), "status_code", None)
    try:
        return int(code)
    except (TypeError, ValueError):
        return None


def is_transient_error(error: Exception) -> bool:
    """Quota/server errors from the Sheets API and dropped connections."""
    if isinstance(error, gspread.exceptions.APIError):
        return _status_code(error) in TRANSIENT_STATUS_CODES
    return isinstance(error, (ConnectionError, TimeoutError, OSError))


def backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool = True) -> float:
    """Delay before retry number `attempt` (0-based), doubling each time."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


async def retry_with_backoff(
    func: Callable,
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_if: RetryPredicate = is_transient_error,
    **kwargs
) -> Any:
    """
    Await `func(*args, **kwargs)`, retrying while `retry_if(error)` holds.

    Raises:
        RetryExhausted: after `max_retries` retries all failed
    """
    name = getattr(func, "__name__", repr(func))
    attempt = 0
    while True:
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            if not retry_if(e):
                raise
            if attempt >= max_retries:
                logger.error(f"Giving up on {name} after {attempt + 1} attempts: {e}")
                raise RetryExhausted(f"{name} failed after {attempt + 1} attempts: {type(e).__name__}: {e}") from e

            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            logger.warning(f"{name} failed ({type(e).__name__}: {e}), retry {attempt + 1}/{max_retries} in {delay:.2f}s")
            await asyncio.sleep(delay)
            attempt += 1
            continue

        if attempt:
            logger.info(f"{name} succeeded on attempt {attempt + 1}")
        return result


def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_if: RetryPredicate = is_transient_error,
):
    """Decorator form of retry_with_backoff for async functions."""
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await retry_with_backoff(
                func,
                *args,
                max_retries=max_retries,
                base_delay=base_delay,
                max_delay=max_delay,
                jitter=jitter,
                retry_if=retry_if,
                **kwargs
            )
        return wrapper
    return decorator


def with_google_api_retry(func: Callable):
    """Retry preset for record store calls: 5 retries, 2s base delay."""
    return with_retry(max_retries=5, base_delay=2.0, max_delay=60.0)(func)
