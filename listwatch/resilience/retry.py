"""Bounded retry with exponential backoff for remote calls.

Every remote call gets a fixed number of attempts; callers decide which
exceptions are worth retrying.
"""

import asyncio
import random
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Network errors, timeouts, 429 and 5xx responses are worth another try."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    jitter: float = 0.2,
    retry_on: Callable[[BaseException], bool] = is_transient,
    description: Optional[str] = None,
) -> T:
    """Await ``func()`` up to ``attempts`` times, sleeping between failures.

    Exceptions rejected by ``retry_on`` propagate immediately. After the
    last attempt the final exception propagates unchanged.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as e:
            if attempt >= attempts or not retry_on(e):
                raise
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            if jitter:
                delay += random.uniform(0, jitter)
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description or "Request", attempt, attempts, e, delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
