from __future__ import annotations

"""Run a portal until a stop signal arrives, then finalize it."""

import asyncio
import logging
import signal
from typing import Iterable, Optional

from .portal import Portal

logger = logging.getLogger(__name__)

STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGHUP", "SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)
_LOOP_DRAIN_TIMEOUT_SECONDS = 5.0


def _install_signal_handlers(stop_event: asyncio.Event, signals: Iterable[int]) -> list[int]:
    loop = asyncio.get_running_loop()
    installed = []

    def _on_signal(signum: int) -> None:
        logger.info("[Portal]: received signal[%s] and exiting...", signal.Signals(signum).name)
        stop_event.set()

    for signum in signals:
        try:
            loop.add_signal_handler(signum, _on_signal, signum)
        except (NotImplementedError, RuntimeError, ValueError):
            # add_signal_handler is unavailable on Windows and off the main thread.
            logger.debug("Cannot install handler for signal %s", signum)
            continue
        installed.append(signum)
    return installed


def _remove_signal_handlers(signals: Iterable[int]) -> None:
    loop = asyncio.get_running_loop()
    for signum in signals:
        loop.remove_signal_handler(signum)


async def serve(portal: Portal, *, stop_event: Optional[asyncio.Event] = None, signals: Iterable[int] = STOP_SIGNALS) -> None:
    """
    Start *portal* and block until *stop_event* is set or the loop ends.

    ``finalize`` always runs, including when the loop task failed.
    """
    stop_event = stop_event or asyncio.Event()
    installed = _install_signal_handlers(stop_event, signals)
    loop_task = asyncio.create_task(portal.start(), name="poll-loop")
    stop_task = asyncio.create_task(stop_event.wait(), name="stop-signal")
    try:
        await asyncio.wait({loop_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop_task.cancel()
        _remove_signal_handlers(installed)
        await portal.finalize()
        await _drain(loop_task)


async def _drain(loop_task: asyncio.Task) -> None:
    if loop_task.done():
        if not loop_task.cancelled():
            exc = loop_task.exception()
            if exc is not None:
                raise exc
        return
    try:
        await asyncio.wait_for(loop_task, timeout=_LOOP_DRAIN_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("Poll loop did not stop within %.0fs", _LOOP_DRAIN_TIMEOUT_SECONDS)


def run_portal(portal: Portal) -> None:
    """Blocking entry point used by the CLI."""
    try:
        asyncio.run(serve(portal))
    except KeyboardInterrupt:
        logger.info("log portal interrupted by user")


__all__ = ["STOP_SIGNALS", "run_portal", "serve"]
