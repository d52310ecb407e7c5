"""Archive filename formatting and parsing.

Archives are named ``<prefix>-<YYYY-MM-DDTHH-MM-SS.mmm>.log`` with the
timestamp rendered in a fixed timezone.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

ARCHIVE_SUFFIX = ".log"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"

_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}\.(\d{3})$")


def format_archive_timestamp(moment: datetime, tz) -> str:
    """Render *moment* in *tz* with millisecond precision."""
    local = moment.astimezone(tz)
    return f"{local.strftime(TIMESTAMP_FORMAT)}.{local.microsecond // 1000:03d}"


def parse_archive_timestamp(text: str, tz) -> Optional[datetime]:
    """Inverse of ``format_archive_timestamp``; ``None`` when *text* does not match."""
    match = _TIMESTAMP_PATTERN.match(text)
    if match is None:
        return None
    try:
        naive = datetime.strptime(text[: -len(".000")], TIMESTAMP_FORMAT)
    except ValueError:
        return None
    naive = naive.replace(microsecond=int(match.group(1)) * 1000)
    return tz.localize(naive)


def archive_prefix(filename: str) -> str:
    """``access.log`` -> ``access``; anything not split into exactly two dot segments is kept whole."""
    fields = filename.split(".")
    if len(fields) == 2:
        return fields[0]
    return filename


def archive_filename(filename: str, moment: datetime, tz) -> str:
    return f"{archive_prefix(filename)}-{format_archive_timestamp(moment, tz)}{ARCHIVE_SUFFIX}"


def parse_archive_filename(filename: str, tz) -> Optional[datetime]:
    """
    Return the timestamp embedded in an archive filename.

    The name is split once on the first ``-``; everything after it must be a
    timestamp followed by ``.log``. Prefixes containing ``-`` therefore never
    match.
    """
    fields = filename.split("-", 1)
    if len(fields) != 2:
        return None

    rest = fields[1]
    if not rest.endswith(ARCHIVE_SUFFIX):
        return None

    return parse_archive_timestamp(rest[: -len(ARCHIVE_SUFFIX)], tz)


__all__ = [
    "ARCHIVE_SUFFIX",
    "archive_filename",
    "archive_prefix",
    "format_archive_timestamp",
    "parse_archive_filename",
    "parse_archive_timestamp",
]
