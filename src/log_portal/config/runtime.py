from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".log_portal.env")

_DEFAULT_VALUES: dict[str, str] | None = None


def _read_dotenv(path: Path) -> Dict[str, str]:
    """Parse ``KEY=value`` lines from a dotenv file, ignoring comments and ``export``."""
    if not path.exists():
        return {}

    try:
        lines = path.read_text().splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Failed to load configuration from {path}") from exc

    values: Dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :]
        key, raw_value = stripped.split("=", 1)
        key = key.strip()
        if key:
            values[key] = raw_value.strip().strip("'").strip('"')
    return values


def _load_default_values() -> dict[str, str]:
    """Load fallback values from the first dotenv file declaring each key."""
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is not None:
        return _DEFAULT_VALUES

    defaults: dict[str, str] = {}
    for path in _DOTENV_CANDIDATES:
        for key, value in _read_dotenv(path).items():
            defaults.setdefault(key, value)

    _DEFAULT_VALUES = defaults
    return defaults


def _default_value(name: str) -> Optional[str]:
    return _load_default_values().get(name)


def _normalize(value: str | None, *, strip: bool) -> str | None:
    if value is None:
        return None
    return value.strip() if strip else value


def _coerce(name: str, raw_value: str, *, cast: Callable[[str], T], kind: str) -> T:
    try:
        return cast(raw_value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be {kind} (got {raw_value!r})") from exc


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a string with validation."""

    value = _normalize(os.getenv(name), strip=strip)

    if value is None or (not allow_blank and value == ""):
        configured_default = _default_value(name)
        if configured_default is not None:
            value = _normalize(configured_default, strip=strip)

    if value is None or (not allow_blank and value == ""):
        if required:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return value


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Fetch an environment variable and coerce it to ``int``."""

    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return _coerce(name, raw, cast=int, kind="an integer")


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""

    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return _coerce(name, raw, cast=float, kind="a float")


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Fetch an environment variable and coerce it to ``bool``."""

    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value

    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Environment variable {name!r} must be a boolean (got {raw!r})")


def env_seconds(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Durations in seconds; must be strictly positive."""

    value = env_float(name, or_value=or_value, required=required)
    if value is None:
        return None
    if value <= 0:
        raise ConfigurationError(f"Environment variable {name!r} must be positive (got {value})")
    return value


__all__ = ["env_bool", "env_float", "env_int", "env_seconds", "env_str"]
