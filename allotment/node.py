# allotment/node.py
"""
Progress nodes: one task's slice of the shared absolute total.

A root node owns the whole external range and the channel behind it. Any
node can hand out child nodes with a smaller allocation; children only keep a
sender on the shared channel, never a link to their parent, so the tree is
purely conceptual and nodes can be created and dropped freely.

A node reports progress in its own internal units. ``advance`` converts them
into absolute units proportionally to the node's allocation, multiplying
before dividing and carrying the truncated remainder to the next call, so
many small advances add up to the same total as one big advance.

Nothing is bounds-checked. Over-allocating children or advancing past
``internal_max`` simply pushes the total past the nominal range.

Example
-------
    root = Progress(10000)
    reader = root.subscribe()

    sub = root.allocate(8000)
    sub.set_internal_max(10000)
    sub.advance(5000)              # 8000 * 5000 / 10000
    assert reader.read() == 4000
"""
from __future__ import annotations

import logging
from typing import Any, Generic, Optional, TypeVar

from . import numeric
from .channel import Reader, Sender, TotalChannel

T = TypeVar("T")
U = TypeVar("U")

LOGGER = logging.getLogger(__name__)

__all__ = ["Progress"]


class Progress(Generic[T, U]):
    """
    Maps internal progress of one task onto the shared absolute total.

    Parameters
    ----------
    allocation : T
        This node's absolute share of the external range. Fixed for the
        node's lifetime.
    internal_max : U, default 0
        Internal value at which the task is complete. Must be set (here or
        via ``set_internal_max``) before calling ``advance``.
    sender : Optional[Sender[T]]
        Write handle on an existing channel. When omitted a fresh channel is
        created, initialised to the identity of ``allocation``'s type, and
        this node becomes a root.
    """

    def __init__(
        self,
        allocation: T,
        *,
        internal_max: Any = 0,
        sender: Optional[Sender[T]] = None,
    ) -> None:
        if sender is None:
            sender = TotalChannel(numeric.identity(allocation)).sender()
            LOGGER.debug("root progress created allocation=%r", allocation)
        self._sender: Sender[T] = sender
        self._allocation = allocation
        self._internal_max: U = internal_max
        self._unaccounted: U = numeric.identity(internal_max)

    @classmethod
    def root(cls, allocation: T, *, internal_max: Any = 0) -> "Progress[T, Any]":
        """Create a root node together with its channel."""
        return cls(allocation, internal_max=internal_max)

    def __repr__(self) -> str:
        return (
            f"Progress(allocation={self._allocation!r}, internal_max={self._internal_max!r}, "
            f"unaccounted={self._unaccounted!r})"
        )

    def __enter__(self) -> "Progress[T, U]":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # -- accessors ----------------------------------------------------------

    @property
    def allocation(self) -> T:
        return self._allocation

    @property
    def internal_max(self) -> U:
        return self._internal_max

    @internal_max.setter
    def internal_max(self, value: U) -> None:
        self._internal_max = value

    @property
    def unaccounted(self) -> U:
        """
        Progress reported but not yet reflected in the total, kept in
        ``internal × absolute`` units (``unaccounted / internal_max`` absolute units).
        """
        return self._unaccounted

    @property
    def channel(self) -> TotalChannel[T]:
        return self._sender.channel

    def set_internal_max(self, value: U) -> None:
        self._internal_max = value

    def subscribe(self) -> Reader[T]:
        """Reader on the shared total."""
        return self._sender.subscribe()

    # -- subdivision --------------------------------------------------------

    def allocate(self, allocation: T, *, internal_max: Any = 0) -> "Progress[T, Any]":
        """
        New node on the same channel with the given absolute allocation.

        The allocation should not exceed this node's own, which is not checked.
        """
        LOGGER.debug("allocate %r of %r", allocation, self._allocation)
        return Progress(allocation, internal_max=internal_max, sender=self._sender.clone())

    def allocate_fraction(self, divisor: Any, *, internal_max: Any = 0) -> "Progress[T, Any]":
        """
        New node with ``allocation / divisor`` of this node's allocation.

        Integer allocations are floor-divided, so N children of
        ``allocate_fraction(N)`` may fall short of the parent by up to N-1 units.
        """
        return self.allocate(numeric.share(self._allocation, divisor), internal_max=internal_max)

    # -- reporting ----------------------------------------------------------

    def advance_raw(self, delta: Any) -> None:
        """
        Add ``delta`` straight to the absolute total.

        Skips the internal-unit conversion; only use with a delta already
        expressed in absolute units.
        """
        self._sender.add(delta)

    def advance(self, progress: Any) -> None:
        """
        Report ``progress`` internal units and emit the matching absolute delta.

        ``progress`` is scaled by the allocation before dividing by
        ``internal_max``. Whatever the division truncates is kept (already
        scaled) and folded into the next call, so the emitted total always
        equals ``floor(cumulative_progress * allocation / internal_max)``.

        ``progress`` is first folded into ``internal_max``'s type, so the
        multiplication runs in the internal domain (e.g. ``uint64``) rather
        than in a narrower absolute type.
        """
        combined = progress + numeric.identity(self._internal_max)
        scaled = combined * self._allocation + self._unaccounted
        delta, self._unaccounted = numeric.split(scaled, self._internal_max)
        self.advance_raw(delta)

    def close(self) -> None:
        """Release this node's sender. Other nodes and readers are unaffected."""
        self._sender.close()
