"""Periodic removal of expired archives from the mirror directory."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .archive_naming import parse_archive_filename
from .config.settings import DEFAULT_SWEEP_INTERVAL_SECONDS, DEFAULT_TIMEZONE, resolve_timezone
from .errors import SweepError

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Delete archives whose embedded timestamp is older than ``lifetime_days``.

    Removal uses the bare archive filename, so it resolves against the
    process working directory rather than ``directory``. Expired archives are
    only removed when the two coincide.
    """

    def __init__(
        self,
        directory: str,
        live_filename: str,
        lifetime_days: int,
        *,
        timezone_name: str = DEFAULT_TIMEZONE,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.directory = directory
        self.live_filename = live_filename
        self.lifetime = timedelta(days=lifetime_days)
        self.tz = resolve_timezone(timezone_name)
        self.interval_seconds = interval_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._shutdown_requested = False
        self._wakeup = asyncio.Event()

    def is_expired(self, filename: str, now: datetime) -> bool:
        stamp = parse_archive_filename(filename, self.tz)
        if stamp is None:
            return False
        return now - stamp >= self.lifetime

    def clean(self) -> List[str]:
        """Remove expired archives once; returns the names removed."""
        now = self._clock()
        removed: List[str] = []
        with os.scandir(self.directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    continue
                if entry.name == self.live_filename:
                    continue
                if not self.is_expired(entry.name, now):
                    continue
                try:
                    os.remove(entry.name)
                except OSError as exc:
                    raise SweepError(entry.name) from exc
                removed.append(entry.name)
                logger.info("Removed expired archive %s", entry.name)
        return removed

    async def run(self) -> None:
        """Sweep every ``interval_seconds`` until ``request_shutdown``."""
        logger.debug("Retention sweeper started for %s (every %ss)", self.directory, self.interval_seconds)
        try:
            while not self._shutdown_requested:
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval_seconds)
                except asyncio.TimeoutError:
                    pass
                if self._shutdown_requested:
                    break
                self._sweep_once()
        except asyncio.CancelledError:
            logger.debug("Retention sweeper cancelled")
            raise

    def _sweep_once(self) -> None:
        try:
            self.clean()
        except SweepError as exc:
            logger.warning("Clean archives: %s: %s", exc, exc.__cause__)
        except OSError as exc:
            logger.warning("Clean archives in %s failed: %s", self.directory, exc)

    def request_shutdown(self) -> None:
        self._shutdown_requested = True
        self._wakeup.set()


__all__ = ["RetentionSweeper"]
