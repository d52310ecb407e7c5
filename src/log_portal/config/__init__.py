"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_seconds, env_str
from .settings import RuntimeSettings, load_runtime_settings, resolve_timezone

__all__ = [
    "ConfigurationError",
    "RuntimeSettings",
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "load_runtime_settings",
    "resolve_timezone",
]
