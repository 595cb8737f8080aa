"""Request pacing for upstream Linnworks calls.

N concurrent slots with a minimum spacing between slot acquisitions. Inside a
batch this staggers request starts by a fixed interval, which smooths burst
load on the Linnworks API.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from linnworks_profit.core.logger import setup_logger

logger = setup_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RequestPacer:
    """Semaphore with minimum inter-acquisition spacing.

    Acquisitions are granted in arrival order; each is held back until at
    least ``spacing_seconds`` after the previous grant.
    """

    def __init__(
        self,
        slots: int,
        spacing_seconds: float,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize pacer.

        Args:
            slots: Maximum concurrently held slots
            spacing_seconds: Minimum time between two grants
            sleep: Awaitable sleep (injectable for tests)
            clock: Monotonic clock in seconds
        """
        if slots < 1:
            raise ValueError("slots must be >= 1")
        self.slots = slots
        self.spacing_seconds = spacing_seconds
        self._sleep = sleep
        self._clock = clock
        self._semaphore = asyncio.Semaphore(slots)
        self._lock = asyncio.Lock()
        self._next_grant_at = None

    async def _wait_for_turn(self) -> None:
        async with self._lock:
            now = self._clock()
            if self._next_grant_at is not None and self._next_grant_at > now:
                wait = self._next_grant_at - now
                await self._sleep(wait)
                granted_at = self._next_grant_at
            else:
                granted_at = now
            self._next_grant_at = granted_at + self.spacing_seconds

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        async with self._semaphore:
            await self._wait_for_turn()
            yield

    def reset(self) -> None:
        """Forget the last grant so the next acquisition starts immediately."""
        self._next_grant_at = None
