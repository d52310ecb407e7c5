"""Mutable tailing context shared by the poll loop, rotation and sweeper."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from .config.errors import ConfigurationError
from .http_utils import ensure_http_url, remote_basename
from .writer_fanout import WriterFanout, console_stream

LIVE_FILE_MODE = 0o644
MIRROR_DIR_MODE = 0o755


def open_live_file(path: str) -> BinaryIO:
    """Open *path* for appending, creating it with 0644 permissions."""
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_RDWR, LIVE_FILE_MODE)
    return os.fdopen(fd, "ab")


def _has_separator(name: str) -> bool:
    return any(sep and sep in name for sep in ("/", os.sep, os.altsep))


@dataclass
class Session:
    """
    State for tailing one remote log.

    ``offset`` is the remote size already mirrored in the current generation.
    ``filename`` is derived once by ``initialize`` and never changes; rotation
    swaps ``file`` and rebuilds ``writer`` but keeps the live path stable.
    """

    url: str
    interval: float
    tail: int = 0
    dir: str = ""
    lifetime: int = 0
    console_enabled: bool = True
    file_enabled: bool = False
    offset: int = 0
    filename: str = ""
    file: Optional[BinaryIO] = field(default=None, repr=False)
    writer: WriterFanout = field(default_factory=WriterFanout, repr=False)

    def initialize(self) -> None:
        """Derive the live filename from the URL; must succeed before any fetch."""
        ensure_http_url(self.url)
        filename = remote_basename(self.url)
        if not filename or filename == "." or ".." in filename or _has_separator(filename):
            raise ConfigurationError(f"invalid log file url: {{{self.url}}}")
        self.filename = filename

    @property
    def live_path(self) -> str:
        return os.path.join(self.dir, self.filename)

    def rebuild_writer(self) -> WriterFanout:
        """Recompose the fan-out after the file handle changed."""
        self.writer = WriterFanout.build(
            console=console_stream() if self.console_enabled else None,
            file=self.file if self.file_enabled else None,
        )
        return self.writer


__all__ = ["LIVE_FILE_MODE", "MIRROR_DIR_MODE", "Session", "open_live_file"]
