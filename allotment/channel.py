# allotment/channel.py
"""
Shared total channel: one slot holding the current absolute progress value.

Many senders add deltas, many readers observe the latest value. There is no
history and no queue: a reader that misses several writes only sees the
final value, which keeps slow readers from ever holding writers back.

Readers track the generation they last saw, so "changed since I last looked"
is a comparison of two counters. Waiting for the next change is the only
suspension point and lives entirely on the reader side:

- ``Reader.wait(timeout)`` blocks the calling thread;
- ``await Reader.changed()`` suspends an asyncio task and is woken
  thread-safely, whichever thread the write came from.

The channel stays open while at least one ``Sender`` is alive. Senders are
released explicitly (``close()``) or when garbage collected.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from typing import Callable, Generic, List, Tuple, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)

__all__ = ["ChannelClosed", "TotalChannel", "Sender", "Reader", "channel"]

_Waiter = Tuple[asyncio.AbstractEventLoop, "asyncio.Future[None]"]


class ChannelClosed(RuntimeError):
    """Every sender is gone: no further updates can ever arrive."""


def _resolve(fut: "asyncio.Future[None]") -> None:
    if not fut.done():
        fut.set_result(None)


def _wake(waiters: List[_Waiter]) -> None:
    for loop, fut in waiters:
        try:
            loop.call_soon_threadsafe(_resolve, fut)
        except RuntimeError:
            # Loop already closed; nobody is left awaiting on it.
            continue


class TotalChannel(Generic[T]):
    """Single-slot broadcast cell for the absolute progress total."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._version = 0
        self._senders = 0
        self._closed = False
        # Re-entrant: a sender finalizer may fire from GC while this thread holds the lock.
        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._waiters: List[_Waiter] = []

    def __repr__(self) -> str:
        return (
            f"TotalChannel(value={self._value!r}, version={self._version}, "
            f"senders={self._senders}, closed={self._closed})"
        )

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    @property
    def sender_count(self) -> int:
        with self._lock:
            return self._senders

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def sender(self) -> "Sender[T]":
        """Register a new write handle. Raises ``ChannelClosed`` once closed."""
        return Sender(self)

    def subscribe(self) -> "Reader[T]":
        """
        Attach a new reader. Its first read always reports a change.

        Raises ``ChannelClosed`` when every sender has been released.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosed("all senders are gone; no further updates can arrive")
        return Reader(self)

    # -- internals used by Sender / Reader ---------------------------------

    def _attach(self) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("cannot attach a sender to a closed channel")
            self._senders += 1

    def _release(self) -> None:
        with self._lock:
            self._senders -= 1
            if self._senders > 0:
                return
            self._closed = True
            self._cond.notify_all()
            waiters, self._waiters = self._waiters, []
        LOGGER.debug("total channel closed at value=%r", self._value)
        _wake(waiters)

    def _add(self, delta: object) -> None:
        with self._lock:
            # Compute first: an arithmetic failure leaves value and version untouched.
            self._value = self._value + delta  # type: ignore[operator]
            self._version += 1
            self._cond.notify_all()
            waiters, self._waiters = self._waiters, []
        _wake(waiters)

    def _discard_waiter(self, waiter: _Waiter) -> None:
        with self._lock:
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass


class Sender(Generic[T]):
    """Write handle on a ``TotalChannel``. Cheap to clone; each clone keeps the channel open."""

    def __init__(self, channel: TotalChannel[T]) -> None:
        channel._attach()
        self._channel = channel
        self._finalizer = weakref.finalize(self, channel._release)
        self._finalizer.atexit = False

    def __repr__(self) -> str:
        state = "open" if self._finalizer.alive else "closed"
        return f"Sender({state}, channel={self._channel!r})"

    @property
    def channel(self) -> TotalChannel[T]:
        return self._channel

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def clone(self) -> "Sender[T]":
        if self.closed:
            raise ChannelClosed("cannot clone a closed sender")
        return Sender(self._channel)

    def add(self, delta: object) -> None:
        """Atomically add ``delta`` to the shared value and flag every reader."""
        if self.closed:
            raise ChannelClosed("this sender has been closed")
        self._channel._add(delta)

    def subscribe(self) -> "Reader[T]":
        return self._channel.subscribe()

    def close(self) -> None:
        """Release this handle. Idempotent."""
        self._finalizer()


class Reader(Generic[T]):
    """Observer of a ``TotalChannel`` with its own "seen" generation."""

    def __init__(self, channel: TotalChannel[T]) -> None:
        self._channel = channel
        self._seen = -1

    def __repr__(self) -> str:
        return f"Reader(seen={self._seen}, channel={self._channel!r})"

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def get(self) -> T:
        """Current value; the seen flag is left alone."""
        return self._channel.value

    def read(self) -> T:
        """Current value, marking it as seen."""
        ch = self._channel
        with ch._lock:
            self._seen = ch._version
            return ch._value

    def poll(self) -> Tuple[bool, T]:
        """``(changed, value)`` in one step; clears the changed flag."""
        ch = self._channel
        with ch._lock:
            changed = self._seen != ch._version
            self._seen = ch._version
            return changed, ch._value

    def has_changed(self) -> bool:
        ch = self._channel
        with ch._lock:
            return self._seen != ch._version

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until there is an unseen change.

        Returns ``True`` when a change is pending (call ``read()`` to take it),
        ``False`` on timeout. Raises ``ChannelClosed`` if the channel closes
        with nothing left unseen.
        """
        ch = self._channel
        with ch._cond:
            ch._cond.wait_for(lambda: self._seen != ch._version or ch._closed, timeout)
            if self._seen != ch._version:
                return True
            if ch._closed:
                raise ChannelClosed("all senders are gone; no further updates can arrive")
            return False

    async def changed(self) -> None:
        """Suspend the current task until there is an unseen change."""
        ch = self._channel
        loop = asyncio.get_running_loop()
        while True:
            with ch._lock:
                if self._seen != ch._version:
                    return
                if ch._closed:
                    raise ChannelClosed("all senders are gone; no further updates can arrive")
                fut: "asyncio.Future[None]" = loop.create_future()
                waiter: _Waiter = (loop, fut)
                ch._waiters.append(waiter)
            try:
                await fut
            finally:
                ch._discard_waiter(waiter)


def channel(initial: T) -> Tuple[Sender[T], Callable[[], Reader[T]]]:
    """Create a channel holding ``initial``; return a sender and a reader factory."""
    ch: TotalChannel[T] = TotalChannel(initial)
    return ch.sender(), ch.subscribe
