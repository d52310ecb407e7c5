from __future__ import annotations

"""HTTP helper utilities for the remote log source."""

from typing import Dict, Optional
from urllib.parse import urlsplit

import aiohttp

from . import __version__
from .config.errors import ConfigurationError

USER_AGENT = f"log-portal/{__version__}"


def ensure_http_url(request_url: str) -> str:
    """Ensure the provided URL uses an allowed HTTP/HTTPS scheme."""
    parsed = urlsplit(request_url)
    scheme = parsed.scheme.lower()
    if scheme not in {"http", "https"}:
        raise ConfigurationError(f"invalid log file url: {{{request_url}}}: unsupported scheme")
    if not parsed.netloc:
        raise ConfigurationError(f"invalid log file url: {{{request_url}}}: missing network location")
    return request_url


def remote_basename(request_url: str) -> str:
    """Return the final path segment of *request_url* as sent, without percent-decoding."""
    path = urlsplit(request_url).path
    return path.rsplit("/", 1)[-1]


def format_range_header(start: int, end: int) -> str:
    """Byte range header value for the half-open interval ``[start, end)``."""
    return f"bytes={start}-{end - 1}"


def build_http_session(
    *,
    timeout_seconds: float,
    user_agent: str = USER_AGENT,
    additional_headers: Optional[Dict[str, str]] = None,
) -> aiohttp.ClientSession:
    """
    Create an aiohttp ClientSession for talking to the log server.

    Args:
        timeout_seconds: Total request timeout in seconds
        user_agent: User-Agent header value
        additional_headers: Optional additional headers to include
    """
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    headers = {"User-Agent": user_agent}

    if additional_headers:
        headers.update(additional_headers)

    # Range offsets are byte positions in the stored file; never let the
    # server hand back a compressed representation.
    headers.setdefault("Accept-Encoding", "identity")

    return aiohttp.ClientSession(timeout=timeout, headers=headers, auto_decompress=False)


def is_session_open(session: Optional[aiohttp.ClientSession]) -> bool:
    """Return True when the provided aiohttp session exists and remains open."""
    if session is None:
        return False
    return not session.closed


__all__ = [
    "USER_AGENT",
    "build_http_session",
    "ensure_http_url",
    "format_range_header",
    "is_session_open",
    "remote_basename",
]
