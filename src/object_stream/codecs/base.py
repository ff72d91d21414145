"""Base classes for the two codec variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Self

from object_stream._logging import get_logger
from object_stream.errors import EndOfStream

if TYPE_CHECKING:
    from collections.abc import Callable

    from object_stream.channel import ByteChannel
    from object_stream.codecs.adapter import IncrementalParseAdapter

__all__ = ['IncrementalCodec', 'WholeObjectCodec']

logger = get_logger(__name__)


class WholeObjectCodec(ABC):
    """Codec that decodes one complete object per blocking read.

    Subclasses implement ``_load`` (read one object from the channel) and
    ``_dump`` (serialize one object). Writes go straight to the channel, so
    ``write_to_buffer`` is the same as ``write_to_stream``.
    """

    incremental: ClassVar[bool] = False
    preserves_types: ClassVar[bool] = True

    def __init__(self, channel: ByteChannel) -> None:
        self._channel = channel

    @property
    def buffered(self) -> int:
        return 0

    @property
    def ready(self) -> bool:
        return False

    @abstractmethod
    def _load(self, emit: Callable[[Any], object]) -> None: ...

    @abstractmethod
    def _dump(self, obj: Any) -> bytes: ...

    def read_from_stream(self, emit: Callable[[Any], object]) -> None:
        """Block until one object is decoded and emit it.

        Raises:
            EndOfStreamError: If the channel holds no further bytes.
        """
        if self._channel.at_eof():
            raise EndOfStream().to_exception()
        self._load(emit)

    def write_to_stream(self, obj: Any) -> Self:
        self._channel.write(self._dump(obj))
        return self

    def write_to_buffer(self, obj: Any) -> Self:
        return self.write_to_stream(obj)

    def flush_buffer(self) -> Self:
        return self


class IncrementalCodec(ABC):
    """Codec that decodes from partial reads through a parse adapter.

    Each ``read_from_stream`` call performs one ``read_partial`` of at most
    ``chunk_size`` bytes, feeds it to the adapter and emits whatever became
    complete. Encoded output accumulates in a write buffer until
    ``flush_buffer`` (``write_to_stream`` flushes immediately).

    Attributes:
        chunk_size: Upper bound on bytes requested per partial read.
    """

    incremental: ClassVar[bool] = True
    preserves_types: ClassVar[bool] = False

    DEFAULT_CHUNK_SIZE: ClassVar[int] = 2000
    DEFAULT_MAX_BUFFER: ClassVar[int | None] = None

    def __init__(self, channel: ByteChannel, *, chunk_size: int, adapter: IncrementalParseAdapter) -> None:
        self._channel = channel
        self._adapter = adapter
        self._write_buffer = bytearray()
        self.chunk_size = chunk_size

    @property
    def buffered(self) -> int:
        return self._adapter.buffered

    @property
    def ready(self) -> bool:
        return self._adapter.ready

    @property
    def max_buffer(self) -> int | None:
        """Overflow threshold in bytes, or None if unbounded."""
        return self._adapter.max_buffer

    @max_buffer.setter
    def max_buffer(self, value: int | None) -> None:
        self._adapter.max_buffer = value

    @abstractmethod
    def _encode_into(self, obj: Any, buffer: bytearray) -> None:
        """Append the encoding of ``obj`` to ``buffer``."""
        ...

    def read_from_stream(self, emit: Callable[[Any], object]) -> None:
        """Perform one partial read and emit every object it completes.

        Values left over from a pass that failed midway are emitted without
        reading the channel.

        Raises:
            EndOfStreamError: If the channel is exhausted.
            OverflowError: If unconsumed input exceeds ``max_buffer``.
        """
        if not self._adapter.ready:
            chunk = self._channel.read_partial(self.chunk_size)
            if not chunk:
                if self._adapter.buffered:
                    logger.warning('stream ended mid-object', residual_bytes=self._adapter.buffered)
                raise EndOfStream().to_exception()
            self._adapter.feed(chunk)

        for obj in self._adapter.extract():
            emit(obj)

    def write_to_stream(self, obj: Any) -> Self:
        self.write_to_buffer(obj)
        return self.flush_buffer()

    def write_to_buffer(self, obj: Any) -> Self:
        start = len(self._write_buffer)
        try:
            self._encode_into(obj, self._write_buffer)
        except Exception:
            # Never leave a partial encoding behind for the next flush.
            del self._write_buffer[start:]
            raise
        return self

    def flush_buffer(self) -> Self:
        if self._write_buffer:
            self._channel.write(bytes(self._write_buffer))
            self._write_buffer.clear()
        return self
