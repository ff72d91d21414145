"""MessagePack incremental codec.

Encoding uses msgspec's MessagePack encoder, writing straight into the
codec's write buffer with ``encode_into``. Decoding feeds each chunk to a
``msgpack.Unpacker``, which keeps the partial-parse buffer; the unconsumed
size is the number of bytes fed minus ``Unpacker.tell()``.

Type fidelity: maps, arrays, strings, bytes, ints, floats, bools and None
round-trip; integer map keys are kept; tuples and sets come back as lists.
Use ``Stream.expect`` to rebuild application types.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import msgpack
import msgspec

from object_stream.codecs.adapter import IncrementalParseAdapter
from object_stream.codecs.base import IncrementalCodec
from object_stream.codecs.convert import encode_hook

if TYPE_CHECKING:
    from collections.abc import Iterator

    from object_stream.channel import ByteChannel

__all__ = ['MsgpackAdapter', 'MsgpackCodec']

_UNPACKER_DEFAULTS: dict[str, Any] = {
    'raw': False,
    'strict_map_key': False,
    # The adapter enforces its own limit; 0 lifts msgpack's 100 MiB default.
    'max_buffer_size': 0,
}


class MsgpackAdapter(IncrementalParseAdapter):
    """Parse adapter backed by a streaming ``msgpack.Unpacker``."""

    __slots__ = ('_fed', '_unpacker')

    def __init__(self, max_buffer: int | None = None, **unpack_options: Any) -> None:
        super().__init__(max_buffer)
        self._unpacker = msgpack.Unpacker(**{**_UNPACKER_DEFAULTS, **unpack_options})
        self._fed = 0

    @property
    def buffered(self) -> int:
        return self._fed - self._unpacker.tell()

    def _append(self, data: bytes) -> None:
        self._unpacker.feed(data)
        self._fed += len(data)

    def _drain(self) -> Iterator[Any]:
        yield from self._unpacker


class MsgpackCodec(IncrementalCodec):
    """Incremental MessagePack codec (msgspec encoder, msgpack unpacker)."""

    DEFAULT_MAX_BUFFER: ClassVar[int | None] = 4000

    def __init__(
        self,
        channel: ByteChannel,
        *,
        chunk_size: int = IncrementalCodec.DEFAULT_CHUNK_SIZE,
        max_buffer: int | None = DEFAULT_MAX_BUFFER,
        **unpack_options: Any,
    ) -> None:
        """Bind a MessagePack codec to a channel.

        Args:
            channel: The channel to read from and write to.
            chunk_size: Max bytes per partial read.
            max_buffer: Overflow threshold in bytes (None = unbounded).
            **unpack_options: Passed through to ``msgpack.Unpacker``.
        """
        super().__init__(
            channel,
            chunk_size=chunk_size,
            adapter=MsgpackAdapter(max_buffer, **unpack_options),
        )
        self._encoder = msgspec.msgpack.Encoder(enc_hook=encode_hook)

    def _encode_into(self, obj: Any, buffer: bytearray) -> None:
        self._encoder.encode_into(obj, buffer, -1)
