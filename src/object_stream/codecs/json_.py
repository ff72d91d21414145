"""Streaming JSON incremental codec.

Values are written one per line with msgspec's JSON encoder. On the read
side ``JsonAdapter`` scans the buffer for complete top-level values and
decodes each span with msgspec. The scanner keeps its state between chunks,
so a large value arriving in many pieces is scanned once.

A top-level value is complete when:

- an object or array closes its outermost bracket;
- a string reaches its closing quote;
- a bare scalar (number, true, false, null) is followed by whitespace or a
  structural character. The trailing newline written after every value
  guarantees this.

A value that fails to decode is dropped on its own. Values scanned after it
stay queued in the adapter and come out on the next pass.

Type fidelity: plain JSON only. Non-string map keys come back as strings
and tuples as lists. Use ``Stream.expect`` to rebuild application types.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

import msgspec

from object_stream.codecs.adapter import IncrementalParseAdapter
from object_stream.codecs.base import IncrementalCodec
from object_stream.codecs.convert import encode_hook

if TYPE_CHECKING:
    from collections.abc import Iterator

    from object_stream.channel import ByteChannel

__all__ = ['JsonAdapter', 'JsonCodec']

_QUOTE = ord('"')
_BACKSLASH = ord('\\')
_WHITESPACE = frozenset(b' \t\r\n')
_OPENERS = frozenset(b'[{')
_CLOSERS = frozenset(b']}')
_SCALAR_END = _WHITESPACE | _OPENERS | _CLOSERS | frozenset(b',:"')


class JsonAdapter(IncrementalParseAdapter):
    """Parse adapter that splits a byte buffer into top-level JSON values."""

    __slots__ = ('_buffer', '_decoder', '_depth', '_escape', '_in_string', '_pos', '_ready', '_scalar', '_start')

    def __init__(self, max_buffer: int | None = None) -> None:
        super().__init__(max_buffer)
        self._buffer = bytearray()
        self._decoder = msgspec.json.Decoder()
        self._pos = 0
        self._ready: deque[tuple[int, int]] = deque()
        self._reset()

    def _reset(self) -> None:
        self._start = -1
        self._depth = 0
        self._in_string = False
        self._escape = False
        self._scalar = False

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def ready(self) -> bool:
        return bool(self._ready)

    def _append(self, data: bytes) -> None:
        self._buffer += data

    def _scan(self) -> list[tuple[int, int]]:
        """Advance the scanner; return (start, end) of each completed value."""
        buf = self._buffer
        end = len(buf)
        spans: list[tuple[int, int]] = []
        i = self._pos
        while i < end:
            c = buf[i]
            if self._start < 0:
                if c not in _WHITESPACE:
                    self._start = i
                    if c in _OPENERS:
                        self._depth = 1
                    elif c == _QUOTE:
                        self._in_string = True
                    else:
                        self._scalar = True
                i += 1
            elif self._scalar:
                if c in _SCALAR_END:
                    spans.append((self._start, i))
                    self._reset()
                    continue  # re-examine the delimiter at top level
                i += 1
            elif self._in_string:
                if self._escape:
                    self._escape = False
                elif c == _BACKSLASH:
                    self._escape = True
                elif c == _QUOTE:
                    self._in_string = False
                    if self._depth == 0:
                        spans.append((self._start, i + 1))
                        self._reset()
                i += 1
            else:
                if c == _QUOTE:
                    self._in_string = True
                elif c in _OPENERS:
                    self._depth += 1
                elif c in _CLOSERS:
                    self._depth -= 1
                    if self._depth == 0:
                        spans.append((self._start, i + 1))
                        self._reset()
                i += 1
        self._pos = i
        return spans

    def _discard(self, count: int) -> None:
        """Drop ``count`` bytes from the head and shift scanner offsets."""
        if count <= 0:
            return
        del self._buffer[:count]
        self._pos -= count
        if self._start >= 0:
            self._start -= count
        if self._ready:
            self._ready = deque((start - count, end - count) for start, end in self._ready)

    def _release(self, end: int) -> None:
        """Drop a handled value's bytes, and leading whitespace once none is queued."""
        self._discard(end)
        if not self._ready:
            self._discard(self._pos if self._start < 0 else self._start)

    def _drain(self) -> Iterator[Any]:
        self._ready.extend(self._scan())
        consumed = 0
        try:
            while self._ready:
                start, end = self._ready.popleft()
                # An undecodable span is dropped as well.
                consumed = end
                yield self._decoder.decode(self._buffer[start:end])
        finally:
            self._release(consumed)


class JsonCodec(IncrementalCodec):
    """Incremental JSON codec (msgspec encoder and decoder, newline separated)."""

    def __init__(
        self,
        channel: ByteChannel,
        *,
        chunk_size: int = IncrementalCodec.DEFAULT_CHUNK_SIZE,
        max_buffer: int | None = IncrementalCodec.DEFAULT_MAX_BUFFER,
    ) -> None:
        """Bind a JSON codec to a channel.

        Args:
            channel: The channel to read from and write to.
            chunk_size: Max bytes per partial read.
            max_buffer: Overflow threshold in bytes (None = unbounded).
        """
        super().__init__(channel, chunk_size=chunk_size, adapter=JsonAdapter(max_buffer))
        self._encoder = msgspec.json.Encoder(enc_hook=encode_hook)

    def _encode_into(self, obj: Any, buffer: bytearray) -> None:
        self._encoder.encode_into(obj, buffer, -1)
        buffer += b'\n'
