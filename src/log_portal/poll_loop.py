"""Polling state machine: probe, fetch increments, detect rotation."""

from __future__ import annotations

import enum
import logging
from typing import Optional

from .errors import RemoteError, RotationError
from .range_fetcher import RangeFetcher
from .rotation_manager import RotationManager
from .session import Session
from .ticker import DropTicker

logger = logging.getLogger(__name__)


class LoopState(enum.Enum):
    INITIAL_FETCH = "initial_fetch"
    STEADY_POLL = "steady_poll"
    ROTATING = "rotating"
    SHUTDOWN = "shutdown"


class TickOutcome(enum.Enum):
    PROBE_FAILED = "probe_failed"
    FETCHED = "fetched"
    FETCH_FAILED = "fetch_failed"
    UNCHANGED = "unchanged"
    ROTATED = "rotated"


class PollLoop:
    """
    Drive one session: back-fill the tail, then mirror growth on every tick.

    ``session.offset`` only moves forward inside a generation. A remote size
    below the offset is treated as rotation: the local mirror is archived and
    the offset drops to zero whether or not archiving worked, so the next
    probe becomes the new baseline.
    """

    def __init__(
        self,
        session: Session,
        fetcher: RangeFetcher,
        rotation: RotationManager,
        *,
        ticker: Optional[DropTicker] = None,
    ):
        self.session = session
        self.fetcher = fetcher
        self.rotation = rotation
        self.ticker = ticker or DropTicker(session.interval)
        self.state = LoopState.INITIAL_FETCH

    async def initial_fetch(self) -> None:
        """Mirror the last ``tail`` bytes once before regular polling starts."""
        self.state = LoopState.INITIAL_FETCH
        size = await self.fetcher.probe_size()
        tail = self.session.tail
        if size == 0 or size < tail:
            logger.debug("Initial fetch skipped (size=%d, tail=%d)", size, tail)
            return
        if tail > 0:
            await self.fetcher.fetch_range(size - tail, size, self.session.writer)
        self.session.offset = size

    async def tick(self) -> TickOutcome:
        self.state = LoopState.STEADY_POLL
        session = self.session
        try:
            size = await self.fetcher.probe_size()
        except RemoteError as exc:
            logger.warning("get log size: %s", exc)
            return TickOutcome.PROBE_FAILED

        if size > session.offset:
            try:
                await self.fetcher.fetch_range(session.offset, size, session.writer)
            except RemoteError as exc:
                logger.warning("fetch incremental content [%d, %d): %s", session.offset, size, exc)
                return TickOutcome.FETCH_FAILED
            session.offset = size
            return TickOutcome.FETCHED

        if size == session.offset:
            return TickOutcome.UNCHANGED

        logger.info("Remote log shrank from %d to %d bytes; rotating", session.offset, size)
        self.state = LoopState.ROTATING
        try:
            self.rotation.rotate(session)
        except RotationError as exc:
            logger.error("rotate file: %s", exc)
        finally:
            session.offset = 0
            self.state = LoopState.STEADY_POLL
        return TickOutcome.ROTATED

    async def run(self) -> None:
        """Poll until ``stop`` is called; returns once ticking has ended."""
        logger.info("Fetching {%s}...", self.session.url)
        self.ticker.arm()
        try:
            await self.initial_fetch()
        except RemoteError as exc:
            logger.warning("initial fetch: %s", exc)

        self.state = LoopState.STEADY_POLL
        async for _ in self.ticker.ticks():
            await self.tick()
        self.state = LoopState.SHUTDOWN

    def stop(self) -> None:
        """Halt future ticks; a request already in flight is left to finish."""
        self.ticker.stop()
        self.state = LoopState.SHUTDOWN


__all__ = ["LoopState", "PollLoop", "TickOutcome"]
