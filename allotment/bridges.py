# allotment/bridges.py
"""
Shared total ↔ spinner bridge.

Subscribes to a node's channel and mirrors the total into the percent
spinner from a daemon watcher thread. Writers are never touched: the watcher
only waits on its own reader, so a slow terminal cannot slow the workload.
If the spinner cannot start we fall back to a no-op spinner so the workload
never breaks.
"""
from __future__ import annotations

import logging
import sys
import threading
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

from .channel import ChannelClosed, Reader
from .node import Progress
from .progress_ux import NullSpinner, Spinner, percent_spinner

LOGGER = logging.getLogger(__name__)

__all__ = ["live_total", "watch"]


def _safe_on_value(on_value: Callable[[Any], None], value: Any) -> None:
    try:
        on_value(value)
    except Exception:
        # UX must not break the workload or stop the watcher.
        LOGGER.debug("progress display update failed", exc_info=True)


def watch(
    reader: Reader[Any],
    on_value: Callable[[Any], None],
    stop: threading.Event,
    *,
    interval: float = 0.05,
) -> None:
    """
    Call ``on_value`` with each new total until *stop* is set or the channel closes.

    Bursts of writes between two wakeups are coalesced into one call. Errors
    raised by ``on_value`` are logged and the watcher keeps going.
    """
    while not stop.is_set():
        try:
            if not reader.wait(timeout=interval):
                continue
        except ChannelClosed:
            break
        _safe_on_value(on_value, reader.read())
    changed, value = reader.poll()
    if changed:
        _safe_on_value(on_value, value)


@contextmanager
def live_total(
    progress: Progress[Any, Any],
    *,
    prefix: str = "PROGRESS",
    label: str = "",
    interval: float = 0.05,
    spinner: Optional[Spinner] = None,
    stream: Any | None = None,
) -> Generator[Spinner, None, None]:
    """
    Context manager that shows *progress*'s shared total on a spinner.

    ``total`` is the node's allocation; ``count`` follows the channel. Yields
    the spinner so callers can change the label (``sp.update(label=...)``).
    Display failures are logged and never reach the workload.
    """
    sp: Spinner = spinner if spinner is not None else percent_spinner(
        prefix,
        stream=stream if stream is not None else getattr(sys, "__stderr__", sys.stderr),
    )
    reader = progress.subscribe()
    initial = {"total": progress.allocation, "count": reader.get(), "label": label}

    try:
        sp.update(**initial)
        sp.__enter__()
    except Exception as exc:
        # e.g. invalid console handle or closed stream under a capturing harness
        LOGGER.warning("spinner could not start (%s); continuing without display", exc)
        sp = NullSpinner()
        sp.update(**initial)

    def on_value(value: Any) -> None:
        sp.update(count=value)

    stop = threading.Event()
    watcher = threading.Thread(
        target=watch,
        args=(reader, on_value, stop),
        kwargs={"interval": interval},
        name="allotment-watch",
        daemon=True,
    )
    watcher.start()
    try:
        yield sp
    finally:
        stop.set()
        watcher.join(timeout=interval + 1.0)
        try:
            sp.update(count=reader.get())
            sp.__exit__(None, None, None)
        except Exception:
            LOGGER.debug("progress display teardown failed", exc_info=True)
