"""Bounded retry for transient transport failures."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Type, TypeVar

from ...domain.errors import TransportUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
RETRY_BACKOFF_START = 0.25
MAX_RETRY_DELAY = 2.0


def backoff_delays(
    start: float = RETRY_BACKOFF_START, maximum: float = MAX_RETRY_DELAY
) -> Iterator[float]:
    """Yield exponential delays in seconds, capped at `maximum`."""
    delay = start
    while True:
        yield delay
        delay = min(delay * 2, maximum)


async def retry_transient(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff_start: float = RETRY_BACKOFF_START,
    retry_on: tuple[Type[BaseException], ...] = (TransportUnavailable,),
    description: str = "operation",
) -> T:
    """Run `operation`, retrying up to `attempts` times on transient errors.

    Non-transient errors propagate immediately. After the last attempt the
    final transient error is re-raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    delays = backoff_delays(backoff_start)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                logger.warning(
                    "%s failed after %d attempts: %s", description, attempts, e
                )
                raise
            delay = next(delays)
            logger.info(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                description,
                attempt,
                attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")
