"""Fixed-period timer for the monitor loop."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Fires at a fixed period, independent of how long the caller works.

    Ticks are scheduled at ``anchor + k * interval``. Ticks that pass while the
    caller is busy are dropped rather than queued, so a slow caller never
    sees a burst of back-to-back ticks.

    Example:
        ```python
        ticker = Ticker(300)
        ticker.start()
        while True:
            await ticker.wait()
            await do_work()
        ```
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the ticker.

        Args:
            interval_seconds: Period between ticks.
            clock: Monotonic time source.
            sleep: Coroutine function used to wait.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._interval = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._next_tick = 0.0
        self._started = False
        self._ticks = 0
        self._dropped = 0

    @property
    def interval(self) -> float:
        """Period between ticks in seconds."""
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of ticks delivered so far."""
        return self._ticks

    @property
    def dropped(self) -> int:
        """Number of ticks dropped because the caller overran them."""
        return self._dropped

    def start(self) -> None:
        """Anchor the schedule at the current time.

        The first tick fires one full interval from now.
        """
        self._next_tick = self._clock() + self._interval
        self._started = True

    async def wait(self) -> int:
        """Sleep until the next tick.

        Returns:
            Number of ticks dropped since the previous call.
        """
        if not self._started:
            self.start()

        now = self._clock()
        dropped = 0
        if now >= self._next_tick:
            dropped = int((now - self._next_tick) // self._interval) + 1
            self._next_tick += dropped * self._interval
            self._dropped += dropped
            logger.debug("Dropped %d tick(s)", dropped)

        await self._sleep(self._next_tick - now)

        self._next_tick += self._interval
        self._ticks += 1
        return dropped
