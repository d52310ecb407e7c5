"""
Centralized logging configuration for the log portal.

Diagnostics go to stderr because stdout carries the mirrored log when the
console sink is enabled. An optional log file is appended to when
``LOG_PORTAL_LOG_FILE`` is set.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import env_str

_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_NOISY_LOGGERS = ("aiohttp", "aiohttp.access", "aiohttp.client", "asyncio")


def _resolve_level(level: Optional[str]) -> int:
    name = (level or env_str("LOG_PORTAL_LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        _MODULE_LOGGER.warning("Unknown log level %r; using INFO", name)
        return logging.INFO
    return resolved


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:  # Best-effort cleanup operation
            _MODULE_LOGGER.debug("Handler close failed: %s", exc)
        logger.removeHandler(handler)


def _build_console_handler(stream) -> logging.Handler:
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return console_handler


def _build_file_handler(log_file: Optional[str]) -> Optional[logging.Handler]:
    target = log_file or env_str("LOG_PORTAL_LOG_FILE")
    if not target:
        return None

    log_path = Path(target).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, mode="a")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(level: Optional[str] = None, *, log_file: Optional[str] = None, stream=None) -> None:
    """Configure the root logger; safe to call more than once."""

    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(stream or sys.stderr))

        file_handler = _build_file_handler(log_file)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(_resolve_level(level))
        _suppress_noisy_third_parties()


__all__ = ["LOG_FORMAT", "setup_logging"]
