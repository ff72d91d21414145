"""Byte channel adapter over sockets and binary file objects.

A ``ByteChannel`` gives codecs one small, uniform surface regardless of what
the application handed to ``Stream``:

- ``read_partial(n)``: at most one underlying read, returns whatever is there
  (``b''`` only at end of input). This is what incremental codecs use.
- ``read(n)`` / ``readline()`` / ``readinto(b)``: blocking, file-like reads for
  whole-object codecs (``pickle.load`` reads straight from the channel).
- ``at_eof()``: blocks until a byte is available or the peer has finished.
  Bytes read while probing are kept in a pending buffer that every later
  read serves first.

Sockets are read with ``recv`` and written with ``sendall``. File objects are
read with ``read1`` when available (a single raw read) and ``read`` otherwise.
For select-driven loops use sockets or unbuffered files (``buffering=0``):
a buffered reader may hold bytes the readiness check cannot see.
"""

from __future__ import annotations

import errno
import io
import socket
from typing import TYPE_CHECKING, Any

from object_stream.errors import AlreadyWrapped

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ['DEFAULT_READ_SIZE', 'ByteChannel']

DEFAULT_READ_SIZE = 4096


class ByteChannel:
    """Duplex byte channel with partial reads, EOF probing and pending bytes."""

    __slots__ = (
        '_claimed',
        '_pending',
        '_raw',
        '_read_raw',
        '_write_raw',
        'bytes_read',
        'bytes_written',
        'read_size',
    )

    def __init__(self, raw: Any, *, read_size: int = DEFAULT_READ_SIZE) -> None:
        """Wrap a socket or binary file object.

        Args:
            raw: ``socket.socket`` or a binary file-like object.
            read_size: Bytes requested per underlying read when the caller
                does not ask for a specific amount.

        Raises:
            TypeError: If ``raw`` is a text-mode file object.
        """
        if isinstance(raw, io.TextIOBase):
            msg = f'Text-mode file objects are not supported, open in binary mode: {raw!r}'
            raise TypeError(msg)

        self._raw = raw
        self._pending = bytearray()
        self._claimed = False
        self.read_size = read_size
        self.bytes_read = 0
        self.bytes_written = 0

        self._read_raw: Callable[[int], bytes | None]
        self._write_raw: Callable[[bytes], None]
        if isinstance(raw, socket.socket):
            self._read_raw = raw.recv
            self._write_raw = raw.sendall
        else:
            self._read_raw = getattr(raw, 'read1', None) or raw.read
            self._write_raw = self._write_file

    def __repr__(self) -> str:
        return f'<ByteChannel raw={self._raw!r} pending={len(self._pending)}>'

    @property
    def raw(self) -> Any:
        """The wrapped socket or file object."""
        return self._raw

    @property
    def pending(self) -> int:
        """Number of bytes read from the channel but not yet handed out."""
        return len(self._pending)

    def claim(self) -> None:
        """Mark this channel as owned by a stream.

        Raises:
            AlreadyWrappedError: If another stream already owns the channel.
        """
        if self._claimed:
            raise AlreadyWrapped(repr(self._raw)).to_exception()
        self._claimed = True

    # --- Reading ---

    def _fill(self, size: int) -> bytes:
        data = self._read_raw(size)
        if data is None:
            # Non-blocking file object with nothing available.
            raise BlockingIOError(errno.EAGAIN, 'Channel has no data available')
        self.bytes_read += len(data)
        return bytes(data)

    def _take(self, size: int) -> bytes:
        data = bytes(self._pending[:size])
        del self._pending[:size]
        return data

    def read_partial(self, size: int | None = None) -> bytes:
        """Return up to ``size`` bytes using at most one underlying read.

        Pending bytes are served first and without touching the channel.
        Returns ``b''`` only when the channel is exhausted.
        """
        size = size or self.read_size
        if self._pending:
            return self._take(size)
        return self._fill(size)

    def read(self, size: int = -1) -> bytes:
        """Read exactly ``size`` bytes, or fewer only at end of input.

        A negative ``size`` reads until end of input.
        """
        if size is not None and size >= 0 and len(self._pending) >= size:
            return self._take(size)

        chunks = [self._take(len(self._pending))]
        have = len(chunks[0])
        while size is None or size < 0 or have < size:
            want = self.read_size if size is None or size < 0 else size - have
            data = self._fill(want)
            if not data:
                break
            chunks.append(data)
            have += len(data)
        return b''.join(chunks)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Fill ``buffer`` from the channel; returns the number of bytes copied."""
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def readline(self) -> bytes:
        """Read through the next ``\\n`` (inclusive), or to end of input."""
        start = 0
        while True:
            index = self._pending.find(b'\n', start)
            if index >= 0:
                return self._take(index + 1)
            start = len(self._pending)
            data = self._fill(self.read_size)
            if not data:
                return self._take(len(self._pending))
            self._pending += data

    def at_eof(self) -> bool:
        """Report whether the channel is exhausted.

        Blocks until at least one byte is available or the peer finished.
        Bytes read here stay pending for the next read.
        """
        if self._pending:
            return False
        data = self._fill(self.read_size)
        if not data:
            return True
        self._pending += data
        return False

    # --- Writing ---

    def _write_file(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = self._raw.write(view)
            if written is None:
                raise BlockingIOError(errno.EAGAIN, 'Channel is not ready for writing')
            view = view[written:]
        self.flush()

    def write(self, data: bytes) -> int:
        """Write all of ``data`` and push it to the underlying channel."""
        self._write_raw(data)
        self.bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        """Flush the wrapped file object, if it buffers."""
        flush = getattr(self._raw, 'flush', None)
        if flush is not None:
            flush()

    # --- Lifecycle ---

    def fileno(self) -> int:
        """File descriptor of the wrapped object, for ``select``."""
        return self._raw.fileno()

    @property
    def closed(self) -> bool:
        """Whether the wrapped object has been closed."""
        if isinstance(self._raw, socket.socket):
            return self._raw.fileno() == -1
        return bool(getattr(self._raw, 'closed', False))

    def close(self) -> None:
        """Close the wrapped object."""
        self._raw.close()
