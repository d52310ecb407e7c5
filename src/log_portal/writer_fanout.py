"""Fan a byte stream out to the console and/or the local mirror file."""

from __future__ import annotations

import sys
from typing import BinaryIO, List, Optional, Tuple

from .errors import SinkWriteError


CONSOLE_SINK = "console"
FILE_SINK = "file"


def console_stream() -> BinaryIO:
    """Binary stdout, so mirrored bytes pass through untouched."""
    return sys.stdout.buffer


class WriterFanout:
    """
    Write every chunk to each configured sink.

    A failing sink does not prevent the remaining sinks from receiving the
    chunk; all failures are reported together as one ``SinkWriteError``.
    """

    def __init__(self, sinks: Optional[List[Tuple[str, BinaryIO]]] = None):
        self._sinks: List[Tuple[str, BinaryIO]] = list(sinks or [])

    @classmethod
    def build(cls, *, console: Optional[BinaryIO] = None, file: Optional[BinaryIO] = None) -> "WriterFanout":
        """Compose the console and file sinks; ``None`` means the sink is disabled."""
        sinks: List[Tuple[str, BinaryIO]] = []
        if console is not None:
            sinks.append((CONSOLE_SINK, console))
        if file is not None:
            sinks.append((FILE_SINK, file))
        return cls(sinks)

    @property
    def sink_names(self) -> List[str]:
        return [name for name, _ in self._sinks]

    def write(self, data: bytes) -> int:
        failures = []
        for name, sink in self._sinks:
            try:
                sink.write(data)
            except (OSError, ValueError) as exc:
                failures.append((name, exc))
        if failures:
            raise SinkWriteError(failures)
        return len(data)

    def flush(self) -> None:
        failures = []
        for name, sink in self._sinks:
            try:
                sink.flush()
            except (OSError, ValueError) as exc:
                failures.append((name, exc))
        if failures:
            raise SinkWriteError(failures)


__all__ = ["CONSOLE_SINK", "FILE_SINK", "WriterFanout", "console_stream"]
