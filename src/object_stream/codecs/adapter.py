"""Incremental parse adapter: byte chunks in, complete objects out.

Each incremental format supplies a subclass that owns the growable byte
buffer (or the parser holding it) and knows how to pull complete values off
its head. The base class applies the overflow policy: after every chunk is
appended, and before anything is extracted, the unconsumed size is checked
against ``max_buffer``. An object that never completes is therefore caught
as soon as it crosses the limit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import msgspec

from object_stream._logging import get_logger
from object_stream.errors import Overflow

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ['IncrementalParseAdapter']

logger = get_logger(__name__)


class IncrementalParseAdapter(ABC):
    """Accumulates partial input and extracts complete values in order.

    Invariant: once ``extract()`` is exhausted, the buffer holds only bytes that
    do not yet form a complete value.

    Attributes:
        max_buffer: Limit on unconsumed bytes, or None for no limit.
    """

    __slots__ = ('max_buffer',)

    def __init__(self, max_buffer: int | None = None) -> None:
        self.max_buffer = max_buffer

    @property
    @abstractmethod
    def buffered(self) -> int:
        """Number of unconsumed bytes currently held."""
        ...

    @property
    def ready(self) -> bool:
        """True if complete values are held back from an interrupted ``extract()``."""
        return False

    @abstractmethod
    def _append(self, data: bytes) -> None:
        """Add a chunk to the buffer."""
        ...

    @abstractmethod
    def _drain(self) -> Iterator[Any]:
        """Yield every complete value at the head of the buffer, removing it.

        Values before an undecodable one are yielded before the error is raised.
        """
        ...

    def feed(self, data: bytes) -> None:
        """Append a chunk, then enforce the buffer limit.

        Raises:
            OverflowError: If the unconsumed size now exceeds ``max_buffer``.
        """
        self._append(data)
        self.check_overflow()

    def check_overflow(self) -> None:
        """Raise if the unconsumed size exceeds ``max_buffer``."""
        if self.max_buffer is None:
            return
        buffered = self.buffered
        if buffered > self.max_buffer:
            overflow = Overflow(limit=self.max_buffer, buffered=buffered)
            logger.warning(
                'buffer limit exceeded',
                excess=overflow.excess,
                **msgspec.structs.asdict(overflow),
            )
            raise overflow.to_exception()

    def extract(self) -> Iterator[Any]:
        """Yield every value the buffered bytes complete, in decode order."""
        return self._drain()
