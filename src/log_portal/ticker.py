"""Fixed-period ticker that drops fires instead of queueing them."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)


class DropTicker:
    """
    Yield once per ``interval_seconds`` on a fixed schedule.

    Fires are aligned to ``start + n * interval``. If the consumer is still
    busy when one or more boundaries pass, those fires are discarded and the
    next fire waits for the following boundary, so at most one tick is ever
    being processed.
    """

    def __init__(self, interval_seconds: float, *, clock: Callable[[], float] = time.monotonic):
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive (got {interval_seconds})")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._stopped = asyncio.Event()
        self._next_fire: Optional[float] = None
        self.dropped = 0

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def arm(self) -> None:
        """Start the schedule now; the first fire is one interval away."""
        self._next_fire = self._clock() + self.interval_seconds

    def stop(self) -> None:
        self._stopped.set()

    def _skip_missed(self, next_fire: float, now: float) -> float:
        if next_fire > now:
            return next_fire
        missed = math.floor((now - next_fire) / self.interval_seconds) + 1
        self.dropped += missed
        logger.debug("Tick overran; dropping %d fire(s)", missed)
        return next_fire + missed * self.interval_seconds

    async def ticks(self) -> AsyncIterator[int]:
        """Async iterator of tick numbers; ends once ``stop`` is called."""
        if self._next_fire is None:
            self.arm()
        count = 0
        next_fire = self._next_fire
        while not self.stopped:
            delay = next_fire - self._clock()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
            if self.stopped:
                return
            count += 1
            yield count
            next_fire = self._skip_missed(next_fire + self.interval_seconds, self._clock())


__all__ = ["DropTicker"]
