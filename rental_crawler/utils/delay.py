from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional

Sleep = Callable[[float], Awaitable[None]]


async def random_delay(
    min_seconds: float,
    max_seconds: float,
    *,
    sleep: Sleep = asyncio.sleep,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Sleep for a uniformly random duration in [min_seconds, max_seconds].
    Returns the duration slept.
    """
    rng = rng or random
    seconds = rng.uniform(min_seconds, max_seconds) if max_seconds > min_seconds else min_seconds
    if seconds > 0:
        await sleep(seconds)
    return seconds
