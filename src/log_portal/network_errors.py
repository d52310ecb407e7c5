"""
Classification of transport-level failures.

The fetcher converts anything listed here into a ``RemoteError`` so the poll
loop can skip the tick and retry on the next one.
"""

import asyncio
import socket

import aiohttp

NETWORK_ERROR_TYPES = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    socket.gaierror,
    ConnectionError,
)


def is_network_unreachable_error(exception: BaseException) -> bool:
    """Return True when *exception* means the remote host could not be reached."""
    if isinstance(exception, (aiohttp.ClientConnectorError, aiohttp.ServerTimeoutError, socket.gaierror)):
        return True

    os_error = getattr(exception, "os_error", None)
    return isinstance(os_error, OSError)


__all__ = ["NETWORK_ERROR_TYPES", "is_network_unreachable_error"]
