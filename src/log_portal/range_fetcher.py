"""HTTP size probe and ranged reads against the remote log."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import aiohttp

from .errors import CopyError, RemoteError, SinkWriteError
from .http_utils import build_http_session, format_range_header, is_session_open
from .network_errors import NETWORK_ERROR_TYPES, is_network_unreachable_error

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_PARTIAL_CONTENT = 206


class ByteSink(Protocol):
    def write(self, data: bytes) -> int: ...

    def flush(self) -> None: ...


class RangeFetcher:
    """
    Probe the remote log size and stream byte ranges of it.

    One ``aiohttp.ClientSession`` is created lazily and reused for every
    request until ``close`` is called.
    """

    def __init__(
        self,
        url: str,
        *,
        request_timeout_seconds: float = 30.0,
        chunk_size: int = 64 * 1024,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.url = url
        self.request_timeout_seconds = request_timeout_seconds
        self.chunk_size = chunk_size
        self._session = session
        self._owns_session = session is None
        self._closed = False

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise RemoteError(f"fetcher for {self.url} is closed")
        if not is_session_open(self._session):
            self._session = build_http_session(timeout_seconds=self.request_timeout_seconds)
            self._owns_session = True
        return self._session

    async def probe_size(self) -> int:
        """Return the remote length in bytes using a HEAD request."""
        session = self._get_session()
        try:
            async with session.head(self.url, allow_redirects=True) as response:
                if response.status != HTTP_OK:
                    raise RemoteError.unexpected_status("HEAD", response.status)
                length = response.content_length
        except NETWORK_ERROR_TYPES as exc:
            self._log_transport_failure("HEAD", exc)
            raise RemoteError.transport("HEAD", self.url) from exc

        if length is None or length < 0:
            raise RemoteError.missing_length(self.url)
        return length

    async def fetch_range(self, start: int, end: int, sink: ByteSink) -> None:
        """
        Stream bytes ``[start, end)`` of the remote log into *sink*.

        Each chunk is written and flushed as it arrives. The number of bytes received is not
        checked against ``end - start``.

        Raises:
            RemoteError: transport failure or a status other than 206.
            CopyError: the body could not be streamed into the sink.
        """
        session = self._get_session()
        headers = {"Range": format_range_header(start, end)}
        try:
            async with session.get(self.url, headers=headers) as response:
                if response.status != HTTP_PARTIAL_CONTENT:
                    raise RemoteError.unexpected_status("GET", response.status)
                await self._copy_body(response, sink)
        except NETWORK_ERROR_TYPES as exc:
            self._log_transport_failure("GET", exc)
            raise RemoteError.transport("GET", self.url) from exc

    async def _copy_body(self, response: aiohttp.ClientResponse, sink: ByteSink) -> None:
        try:
            async for chunk in response.content.iter_chunked(self.chunk_size):
                sink.write(chunk)
                sink.flush()
        except SinkWriteError as exc:
            raise CopyError(f"copy response body: {exc}") from exc
        except NETWORK_ERROR_TYPES as exc:
            raise CopyError(f"copy response body: {exc!r}") from exc

    def _log_transport_failure(self, method: str, exc: BaseException) -> None:
        if is_network_unreachable_error(exc):
            logger.debug("%s %s: remote unreachable: %s", method, self.url, exc)
        else:
            logger.debug("%s %s failed: %r", method, self.url, exc)

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it; later requests fail."""
        self._closed = True
        if self._session is None:
            return
        if self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


__all__ = ["HTTP_OK", "HTTP_PARTIAL_CONTENT", "ByteSink", "RangeFetcher"]
