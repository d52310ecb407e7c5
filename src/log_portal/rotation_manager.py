"""Archive the local mirror when the remote log rotates."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .archive_naming import archive_filename
from .config.settings import DEFAULT_TIMEZONE, resolve_timezone
from .errors import RotationError
from .session import Session, open_live_file

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RotationManager:
    """
    Move the live mirror aside under a timestamped archive name.

    The archive timezone and clock belong to the instance. A fresh live file is
    always reopened at the live path, even when an earlier step failed, so
    the mirror keeps accepting writes after a partial rotation.
    """

    def __init__(self, timezone_name: str = DEFAULT_TIMEZONE, *, clock: Optional[Clock] = None):
        self.timezone_name = timezone_name
        self.tz = resolve_timezone(timezone_name)
        self._clock = clock or _utc_now

    def archive_path(self, session: Session) -> str:
        name = archive_filename(session.filename, self._clock(), self.tz)
        return os.path.join(session.dir, name)

    def rotate(self, session: Session) -> Optional[str]:
        """
        Archive the live file and reopen it.

        Returns the archive path, or ``None`` when the file sink is disabled.

        Raises:
            RotationError: flush, close, rename or reopen failed. The session
                still holds a writable file unless reopening failed.
        """
        if not session.file_enabled:
            return None

        failures: List[Tuple[str, BaseException]] = []
        self._close_live_file(session, failures)

        live_path = session.live_path
        archived_path = self.archive_path(session)
        try:
            os.rename(live_path, archived_path)
        except OSError as exc:
            failures.append(("rename file", exc))
            archived_path = None
        else:
            logger.info("Archived %s -> %s", live_path, archived_path)

        try:
            session.file = open_live_file(live_path)
        except OSError as exc:
            failures.append(("open new file", exc))
            session.file = None
        session.rebuild_writer()

        if failures:
            raise RotationError(f"rotate {live_path}", failures)
        return archived_path

    @staticmethod
    def _close_live_file(session: Session, failures: List[Tuple[str, BaseException]]) -> None:
        handle = session.file
        if handle is None or handle.closed:
            return
        try:
            handle.flush()
            os.fsync(handle.fileno())
        except (OSError, ValueError) as exc:
            failures.append(("sync file", exc))
        try:
            handle.close()
        except OSError as exc:
            failures.append(("close file", exc))


__all__ = ["RotationManager"]
