"""Object-level queues used by ``Stream``: inbox, outbox and consume queue.

All three are plain FIFOs owned by a single stream. None of them locks: a
stream is used from one flow of control at a time.

- ``Inbox``: decoded objects not yet dispatched, in arrival order.
- ``Outbox``: pending writes, each an ``Immediate`` value or a ``Deferred``
  producer evaluated only when the outbox is flushed.
- ``ConsumeQueue``: one-shot callbacks that intercept the next objects read.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

import msgspec

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

__all__ = ['ConsumeQueue', 'Deferred', 'Immediate', 'Inbox', 'Outbox', 'OutboxEntry']


# -----------------------------------------------------------------------------
# Outbox entries (tagged union)
# -----------------------------------------------------------------------------


class Immediate(msgspec.Struct, frozen=True):
    """Outbox entry holding a value that is ready to encode."""

    value: Any

    def resolve(self) -> Any:
        """Return the value to encode."""
        return self.value


class Deferred(msgspec.Struct, frozen=True):
    """Outbox entry whose value is computed when the outbox is flushed.

    The producer runs exactly once, at flush time, so it can capture state
    that is only known later (sequence numbers, final totals).

    Example:
        ```python
        stream.write_to_outbox(Deferred(lambda: {'sent': counter.value}))
        ```
    """

    producer: Callable[[], Any]

    def resolve(self) -> Any:
        """Run the producer and return its result."""
        return self.producer()


OutboxEntry = Immediate | Deferred


# -----------------------------------------------------------------------------
# Queues
# -----------------------------------------------------------------------------


class Inbox:
    """Decoded objects waiting to be dispatched, oldest first."""

    __slots__ = ('_items',)

    def __init__(self) -> None:
        self._items: deque[Any] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def extend(self, objects: Iterable[Any]) -> None:
        """Append objects behind everything already waiting."""
        self._items.extend(objects)

    def restore(self, objects: Iterable[Any]) -> None:
        """Put objects back at the front, keeping their order."""
        self._items.extendleft(reversed(list(objects)))

    def popleft(self) -> Any:
        """Remove and return the oldest object."""
        return self._items.popleft()


class Outbox:
    """Writes queued but not yet encoded, in enqueue order."""

    __slots__ = ('_entries',)

    def __init__(self) -> None:
        self._entries: deque[OutboxEntry] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def push(self, obj: Any) -> None:
        """Queue a value; ``Deferred`` and ``Immediate`` entries are kept as-is."""
        if not isinstance(obj, Immediate | Deferred):
            obj = Immediate(obj)
        self._entries.append(obj)

    def drain(self) -> Iterator[Any]:
        """Yield resolved values, removing each entry before it is resolved.

        An entry whose producer raises is dropped; later entries stay queued.
        """
        while self._entries:
            yield self._entries.popleft().resolve()


class ConsumeQueue:
    """One-shot interceptors, each called with exactly one incoming object."""

    __slots__ = ('_callbacks',)

    def __init__(self) -> None:
        self._callbacks: deque[Callable[[Any], Any]] = deque()

    def __len__(self) -> int:
        return len(self._callbacks)

    def __bool__(self) -> bool:
        return bool(self._callbacks)

    def push(self, callback: Callable[[Any], Any]) -> None:
        """Queue a callback behind those already waiting."""
        self._callbacks.append(callback)

    def offer(self, obj: Any) -> bool:
        """Hand ``obj`` to the oldest waiting callback.

        Returns:
            True if a callback took the object, False if none was waiting.
        """
        if not self._callbacks:
            return False
        callback = self._callbacks.popleft()
        callback(obj)
        return True
