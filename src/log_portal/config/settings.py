"""Runtime knobs shared by the tailing components."""

from __future__ import annotations

from dataclasses import dataclass

import pytz

from .errors import ConfigurationError
from .runtime import env_int, env_seconds, env_str

DEFAULT_TIMEZONE = "Asia/Shanghai"
DEFAULT_SWEEP_INTERVAL_SECONDS = 10.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class RuntimeSettings:
    """Values every component receives explicitly instead of reading globals."""

    timezone_name: str = DEFAULT_TIMEZONE
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE


def resolve_timezone(tz_name: str):
    """Return the pytz timezone for *tz_name* or raise ``ConfigurationError``."""
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as exc:
        raise ConfigurationError.invalid_timezone(tz_name) from exc


def load_runtime_settings() -> RuntimeSettings:
    """Build ``RuntimeSettings`` from ``LOG_PORTAL_*`` environment variables."""

    timezone_name = env_str("LOG_PORTAL_TIMEZONE", DEFAULT_TIMEZONE)
    resolve_timezone(timezone_name)

    chunk_size = env_int("LOG_PORTAL_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)
    if chunk_size <= 0:
        raise ConfigurationError.invalid_value("LOG_PORTAL_CHUNK_SIZE", chunk_size, "Must be positive")

    return RuntimeSettings(
        timezone_name=timezone_name,
        sweep_interval_seconds=env_seconds("LOG_PORTAL_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS),
        request_timeout_seconds=env_seconds("LOG_PORTAL_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS),
        chunk_size=chunk_size,
    )


__all__ = ["RuntimeSettings", "load_runtime_settings", "resolve_timezone"]
