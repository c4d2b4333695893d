"""
Fixed-interval rate limiting for calls to the market data provider.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """
    Enforces a minimum delay between consecutive calls to ``wait()``.

    The first call returns immediately; every later call blocks until
    ``min_delay`` seconds have passed since the previous one was released.
    A limiter with ``min_delay <= 0`` never blocks.
    """

    def __init__(
        self,
        min_delay: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._lock: Optional[asyncio.Lock] = None
        self._next_time: Optional[float] = None

    async def wait(self) -> None:
        if self.min_delay <= 0:
            return
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            now = self._clock()
            if self._next_time is not None and now < self._next_time:
                await self._sleep(self._next_time - now)
            self._next_time = self._clock() + self.min_delay
