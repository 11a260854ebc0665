from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .delay import Sleep
from ..errors import AllAttemptsFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_seconds(attempt: int, unit: float = 1.0) -> float:
    """Delay after failed attempt ``attempt`` (1-based): 2, 4, 8, ... units."""
    return (2 ** attempt) * unit


async def retry(
    max_attempts: int,
    operation: Callable[[], Awaitable[T]],
    *,
    sleep: Sleep = asyncio.sleep,
    backoff_unit: float = 1.0,
    label: str = "operation",
) -> T:
    """
    Await ``operation()`` up to ``max_attempts`` times and return its first result.

    A failed attempt ``k < max_attempts`` is followed by a ``2**k * backoff_unit``
    sleep. Once the last attempt fails, ``AllAttemptsFailed`` is raised
    immediately, chained to the last error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_exc: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:  # retry policy is agnostic of the failure type
            last_exc = exc
        if attempt < max_attempts:
            wait = backoff_seconds(attempt, backoff_unit)
            logger.warning("Attempt %s/%s failed for %s: %s; retrying in %.1fs",
                           attempt, max_attempts, label, last_exc, wait)
            await sleep(wait)

    assert last_exc is not None
    raise AllAttemptsFailed(max_attempts, last_exc, label=label) from last_exc
