"""Session facade: initialization, writer wiring, start and finalize."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from .config.errors import ConfigurationError
from .config.settings import RuntimeSettings
from .errors import RotationError
from .poll_loop import PollLoop
from .range_fetcher import RangeFetcher
from .retention_sweeper import RetentionSweeper
from .rotation_manager import RotationManager
from .session import MIRROR_DIR_MODE, Session, open_live_file

logger = logging.getLogger(__name__)


class Portal:
    """
    Tail one remote log into the configured sinks.

    Call ``init`` then ``setup_writer`` before ``start``; ``finalize`` must run
    before the process exits, even when ``start`` is still in flight.
    """

    def __init__(
        self,
        url: str,
        interval: float,
        tail: int = 0,
        *,
        settings: Optional[RuntimeSettings] = None,
        fetcher: Optional[RangeFetcher] = None,
        rotation: Optional[RotationManager] = None,
    ):
        self.settings = settings or RuntimeSettings()
        self.session = Session(url=url, interval=interval, tail=tail)
        self.fetcher = fetcher or RangeFetcher(
            url,
            request_timeout_seconds=self.settings.request_timeout_seconds,
            chunk_size=self.settings.chunk_size,
        )
        self.rotation = rotation or RotationManager(self.settings.timezone_name)
        self.loop: Optional[PollLoop] = None
        self.sweeper: Optional[RetentionSweeper] = None
        self._sweeper_task: Optional[asyncio.Task] = None
        self._finalized = False

    def init(self) -> None:
        self.session.initialize()

    def setup_writer(self, disable_console: bool, enable_file: bool, dir: str = "", lifetime: int = 0) -> None:
        """
        Decide which sinks receive mirrored bytes; must be called after ``init``.

        Raises:
            ConfigurationError: the file sink was requested without a usable
                directory, or the live file could not be opened.
        """
        session = self.session
        if not session.filename:
            raise ConfigurationError("setup_writer called before init")

        session.console_enabled = not disable_console

        if enable_file:
            if not dir:
                raise ConfigurationError.missing_value("log dir", "required when the file sink is enabled")
            try:
                os.makedirs(dir, mode=MIRROR_DIR_MODE, exist_ok=True)
            except OSError as exc:
                raise ConfigurationError.setup_failed("mirror directory", dir) from exc

            session.dir = dir
            path = session.live_path
            try:
                session.file = open_live_file(path)
            except OSError as exc:
                raise ConfigurationError.setup_failed("live file", path) from exc

            session.lifetime = lifetime
            session.file_enabled = True
            self.sweeper = RetentionSweeper(
                dir,
                session.filename,
                lifetime,
                timezone_name=self.settings.timezone_name,
                interval_seconds=self.settings.sweep_interval_seconds,
            )

        session.rebuild_writer()
        logger.debug("Writer configured with sinks %s", session.writer.sink_names)

    async def start(self) -> None:
        """Run the sweeper (file sink only) and the poll loop until ``stop``."""
        if self._finalized:
            return
        self.loop = PollLoop(self.session, self.fetcher, self.rotation)
        if self.sweeper is not None:
            self._sweeper_task = asyncio.create_task(self.sweeper.run(), name="retention-sweeper")
        await self.loop.run()

    def stop(self) -> None:
        if self.loop is not None:
            self.loop.stop()
        if self.sweeper is not None:
            self.sweeper.request_shutdown()

    async def finalize(self) -> None:
        """Rotate once more, close the live file and release the HTTP session."""
        if self._finalized:
            return
        self._finalized = True
        self.stop()

        try:
            self.rotation.rotate(self.session)
        except RotationError as exc:
            logger.error("final rotate: %s", exc)

        self._close_live_file()
        await self._stop_sweeper()
        await self.fetcher.close()

    def _close_live_file(self) -> None:
        handle = self.session.file
        if handle is None or handle.closed:
            return
        try:
            handle.flush()
            os.fsync(handle.fileno())
        except (OSError, ValueError) as exc:
            # An in-flight tick may already have closed or swapped the handle.
            logger.debug("Syncing live file during finalize: %s", exc)
        finally:
            try:
                handle.close()
            except OSError as exc:
                logger.debug("Closing live file during finalize: %s", exc)

    async def _stop_sweeper(self) -> None:
        task = self._sweeper_task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            logger.debug("Retention sweeper stopped")


__all__ = ["Portal"]
