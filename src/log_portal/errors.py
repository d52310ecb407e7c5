"""Error types raised by the tailing engine."""

from __future__ import annotations

from typing import Sequence


class PortalError(RuntimeError):
    """Base class for all log portal failures."""


class RemoteError(PortalError):
    """Raised when the remote log cannot be probed or read."""

    @classmethod
    def unexpected_status(cls, method: str, status: int) -> "RemoteError":
        """Create error for a response carrying the wrong status code."""
        return cls(f"http {method.lower()}: unexpected status code: {status}")

    @classmethod
    def transport(cls, method: str, url: str) -> "RemoteError":
        """Create error for a failed HTTP exchange."""
        return cls(f"http {method.lower()} {url} failed")

    @classmethod
    def missing_length(cls, url: str) -> "RemoteError":
        """Create error for a probe response without a usable Content-Length."""
        return cls(f"http head {url}: response has no usable content length")


class CopyError(RemoteError):
    """Raised when a ranged response body cannot be streamed into the sink."""


class SinkWriteError(PortalError):
    """Raised by the fan-out writer when one or more sinks fail."""

    def __init__(self, failures: Sequence[tuple[str, BaseException]]) -> None:
        self.failures = list(failures)
        details = "; ".join(f"{name}: {exc}" for name, exc in self.failures)
        super().__init__(f"write to {len(self.failures)} sink(s) failed: {details}")


class RotationError(PortalError):
    """Raised when archiving or reopening the local mirror fails."""

    def __init__(self, message: str, failures: Sequence[tuple[str, BaseException]] = ()) -> None:
        self.failures = list(failures)
        if self.failures:
            message = f"{message}: " + "; ".join(f"{step}: {exc}" for step, exc in self.failures)
        super().__init__(message)


class SweepError(PortalError):
    """Raised when an expired archive cannot be removed."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"remove expired archive {filename!r} failed")
        self.filename = filename


__all__ = [
    "CopyError",
    "PortalError",
    "RemoteError",
    "RotationError",
    "SinkWriteError",
    "SweepError",
]
