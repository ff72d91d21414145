"""Codec protocol: the capability contract a format must satisfy.

A codec sits between a ``Stream`` and its ``ByteChannel``. It knows how to
turn bytes into objects and back, and nothing about inboxes, outboxes or
consumers. Two variants exist:

- whole-object codecs block in ``read_from_stream`` until one complete
  object has been decoded (they may emit more if the format streams several
  documents per read);
- incremental codecs perform exactly one partial read per call and emit
  every object the new bytes complete, possibly none.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, Self

if TYPE_CHECKING:
    from collections.abc import Callable

    from object_stream.channel import ByteChannel

__all__ = ['Codec']


class Codec(Protocol):
    """Protocol for a format-specific encoder/decoder bound to one channel.

    Class Attributes:
        incremental: True if ``read_from_stream`` never waits for more than
            one partial read.
        preserves_types: True if decoded objects keep their application
            type, making ``Stream.expect`` a no-op.
    """

    incremental: ClassVar[bool]
    preserves_types: ClassVar[bool]

    @abstractmethod
    def __init__(self, channel: ByteChannel, **options: Any) -> None: ...

    @property
    @abstractmethod
    def buffered(self) -> int:
        """Bytes read from the channel but not yet attributed to an object."""
        ...

    @property
    @abstractmethod
    def ready(self) -> bool:
        """True if complete objects can be emitted without reading the channel."""
        ...

    @abstractmethod
    def read_from_stream(self, emit: Callable[[Any], object]) -> None:
        """Decode from the channel, calling ``emit`` once per object in order.

        Raises:
            EndOfStreamError: If the channel is exhausted.
            OverflowError: If the partial-parse buffer exceeds its limit.
        """
        ...

    @abstractmethod
    def write_to_stream(self, obj: Any) -> Self:
        """Encode ``obj`` and transmit it, together with anything buffered."""
        ...

    @abstractmethod
    def write_to_buffer(self, obj: Any) -> Self:
        """Encode ``obj`` without forcing it onto the channel."""
        ...

    @abstractmethod
    def flush_buffer(self) -> Self:
        """Transmit everything encoded by ``write_to_buffer``."""
        ...
