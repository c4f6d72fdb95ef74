# allotment/__init__.py
"""
allotment — nested progress allocations folded into one shared total.

A root ``Progress`` owns an absolute range (say 0..10000) and the channel that
broadcasts the running total. Subtasks receive slices of that range through
``allocate`` / ``allocate_fraction``, report progress in their own internal
units with ``advance``, and every report lands atomically in the one total that
readers watch.

Exports
-------
- Progress                      → progress node (root or subtask)
- TotalChannel / Sender / Reader → the shared total channel
- channel(initial)              → (sender, subscribe) pair
- ChannelClosed                 → raised when no sender is left
- live_total(progress)          → bind a node's total to the Halo spinner
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from .channel import ChannelClosed, Reader, Sender, TotalChannel, channel
from .node import Progress

__all__ = [
    "__version__",
    "ChannelClosed",
    "Progress",
    "Reader",
    "Sender",
    "TotalChannel",
    "channel",
    "live_total",
]


def _detect_version() -> str:
    try:
        return _pkg_version("allotment")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _detect_version()


# Import AFTER the core exports: the bridge pulls the Halo spinner and the
# node module, both already importable at this point.
from .bridges import live_total  # noqa: E402
