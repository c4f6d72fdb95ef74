# allotment/integrations/iter_progress.py
"""Advance a node by one internal unit per item of an iterable."""
from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional, Sized, TypeVar, cast

from ..node import Progress

E = TypeVar("E")


def track(
    iterable: Iterable[E],
    progress: Progress[Any, Any],
    total: Optional[int] = None,
) -> Iterator[E]:
    """
    Yield from *iterable*, advancing *progress* by 1 after each item.

    *total* (or ``len(iterable)`` when it is sized) becomes the node's
    internal max. Without either, the node's current internal max is kept.
    The advance happens after the consumer is done with the item.
    """
    if total is None and hasattr(iterable, "__len__"):
        total = len(cast(Sized, iterable))
    if total is not None:
        progress.set_internal_max(max(1, total))
    for item in iterable:
        yield item
        progress.advance(1)
