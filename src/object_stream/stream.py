"""Stream: a sequence of objects over a duplex byte channel.

A ``Stream`` wraps one socket or binary file object and one codec. It adds
the object-level bookkeeping the codecs know nothing about:

- the inbox, holding objects a decode pass produced beyond what the current
  read delivered;
- the outbox, holding writes that are queued but not yet encoded;
- the consume queue, one-shot callbacks that take the next incoming objects
  out of the normal read path (handshakes, acknowledgements);
- the expect slot, the type that formats without type fidelity (JSON,
  MessagePack) should rebuild incoming values as.

Three reading styles share the same dispatch rule:

    ```python
    for obj in stream:          # iteration, stops silently at end of stream
        ...

    obj = stream.read_one()     # blocking, raises EndOfStreamError at the end

    stream.read(handle)         # one pass, for select loops: delivers 0..n objects
    ```

Every decoded object is dispatched exactly once, when it is handed on: to
the oldest pending ``consume`` callback if there is one, otherwise through
the expect hook to the caller. Objects not yet handed on wait in the inbox,
so ``consume`` and ``expect`` always apply to the next object the caller has
not seen, whichever reading style is used.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Self

from object_stream._config import get_config
from object_stream._logging import get_logger
from object_stream.channel import ByteChannel
from object_stream.codecs.convert import reconstruct
from object_stream.codecs.registry import codec_class_for
from object_stream.errors import (
    AlreadyWrapped,
    ConversionError,
    EndOfStream,
    EndOfStreamError,
    MalformedStream,
    StreamError,
)
from object_stream.queues import ConsumeQueue, Inbox, Outbox
from object_stream.stats import StreamStats

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    from object_stream.codecs.protocols import Codec

__all__ = ['Stream']

logger = get_logger(__name__)

# Errors a codec may raise that keep their identity. Everything else a decode
# pass raises is reported as MalformedStreamError.
_PASSTHROUGH: tuple[type[BaseException], ...] = (StreamError, OSError)

_NOTHING: Any = object()


class Stream:
    """Object stream over a socket or binary file object.

    Attributes:
        max_outbox: Outbox size above which ``write_to_outbox`` flushes.
        peer_name: Application-defined label for the other end, used in
            ``repr`` and log events.

    Example:
        ```python
        a, b = socket.socketpair()
        with Stream(a, 'msgpack') as left, Stream(b, 'msgpack') as right:
            left.write({'op': 'ping'}, {'op': 'pong'})
            right.read_one()  # {'op': 'ping'}
        ```
    """

    __slots__ = (
        '_channel',
        '_codec',
        '_consumers',
        '_created_at',
        '_expected',
        '_format',
        '_inbox',
        '_objects_consumed',
        '_objects_delivered',
        '_objects_read',
        '_objects_written',
        '_outbox',
        'max_outbox',
        'peer_name',
    )

    def __init__(
        self,
        io: Any,
        format: str | None = None,  # noqa: A002
        *,
        max_outbox: int | None = None,
        **codec_options: Any,
    ) -> None:
        """Wrap ``io`` in a stream using the given format.

        Args:
            io: A ``socket.socket``, a binary file object, or a
                ``ByteChannel`` built by the caller.
            format: Registered format id. Defaults to the configured format.
            max_outbox: Outbox threshold. Defaults to the configured value.
            **codec_options: Passed to the codec, over any configured
                options for this format (``chunk_size``, ``max_buffer``...).

        Raises:
            AlreadyWrappedError: If ``io`` is a Stream, or a ByteChannel
                another stream already owns.
            UnknownFormatError: If ``format`` is not registered.
            TypeError: If ``io`` is a text-mode file object.
        """
        if isinstance(io, Stream):
            raise AlreadyWrapped(repr(io)).to_exception()

        config = get_config()
        resolved_format = str(format) if format is not None else str(config.format)
        codec_class = codec_class_for(resolved_format)

        channel = io if isinstance(io, ByteChannel) else ByteChannel(io)
        codec = codec_class(channel, **{**config.options_for(resolved_format), **codec_options})
        channel.claim()

        self._channel = channel
        self._codec: Codec = codec
        self._format = resolved_format
        self._inbox = Inbox()
        self._outbox = Outbox()
        self._consumers = ConsumeQueue()
        self._expected: Any = None
        self._created_at = datetime.now(UTC)
        self._objects_read = 0
        self._objects_delivered = 0
        self._objects_consumed = 0
        self._objects_written = 0
        self.max_outbox = config.max_outbox if max_outbox is None else max_outbox
        self.peer_name = 'unknown'

    def __repr__(self) -> str:
        return f'<Stream {self._format} to {self.peer_name}, io={self._channel.raw!r}>'

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def format(self) -> str:
        """Format id of the active codec."""
        return self._format

    @property
    def codec(self) -> Codec:
        """The codec bound to this stream's channel."""
        return self._codec

    @property
    def channel(self) -> ByteChannel:
        """The channel this stream owns."""
        return self._channel

    @property
    def io(self) -> Any:
        """The wrapped socket or file object."""
        return self._channel.raw

    @property
    def expected(self) -> Any:
        """Type incoming values are rebuilt as, or None."""
        return self._expected

    # -------------------------------------------------------------------------
    # Expect / Consume
    # -------------------------------------------------------------------------

    def expect(self, cls: Any) -> Self:
        """Rebuild subsequent incoming values as instances of ``cls``.

        Applies to every object handed to the caller until ``unexpect()``.
        A no-op for formats that keep application types (pickle, yaml).
        See ``object_stream.codecs.convert.reconstruct`` for how values are
        rebuilt.
        """
        self._expected = cls
        return self

    def unexpect(self) -> Self:
        """Hand incoming values over as decoded."""
        self._expected = None
        return self

    def consume[F: Callable[[Any], Any]](self, callback: F) -> F:
        """Divert the next incoming object to ``callback``.

        Callbacks queue up: with K of them pending, the next K objects go to
        them in order and never reach ``read`` or iteration. Returns the
        callback, so it can be used as a decorator.

        Example:
            ```python
            @stream.consume
            def handshake(hello):
                stream.peer_name = hello['name']
            ```
        """
        self._consumers.push(callback)
        return callback

    def _resolve(self, obj: Any) -> Any:
        if self._expected is None or self._codec.preserves_types:
            return obj
        return reconstruct(obj, self._expected)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _fill_inbox(self) -> None:
        """Run one decode pass and queue what it produced."""
        batch: list[Any] = []
        try:
            self._codec.read_from_stream(batch.append)
        except EndOfStreamError:
            raise EndOfStream(self.peer_name).to_exception() from None
        except _PASSTHROUGH:
            raise
        except Exception as exc:
            failure = MalformedStream(self._format, f'{type(exc).__name__}: {exc}')
            logger.warning('malformed stream', format=failure.format, peer=self.peer_name, reason=failure.reason)
            raise failure.to_exception() from exc
        finally:
            # Objects decoded before a failure stay readable.
            self._objects_read += len(batch)
            self._inbox.extend(batch)

    def _next_value(self) -> Any:
        """Dispatch queued objects until one is for the caller.

        Returns the resolved value, or ``_NOTHING`` once the inbox is empty.
        A value that fails conversion goes back to the head of the inbox.
        """
        while self._inbox:
            obj = self._inbox.popleft()
            if self._consumers.offer(obj):
                self._objects_consumed += 1
                continue
            try:
                value = self._resolve(obj)
            except ConversionError:
                self._inbox.restore((obj,))
                raise
            self._objects_delivered += 1
            return value
        return _NOTHING

    def _deliver_queued(self, callback: Callable[[Any], Any]) -> None:
        while (value := self._next_value()) is not _NOTHING:
            callback(value)

    def read(self, callback: Callable[[Any], Any] | None = None) -> Any:
        """Read objects, one pass at a time when given a callback.

        Without a callback this is ``read_one()``.

        With a callback, delivers everything already in the inbox, then makes
        exactly one attempt to decode more and delivers what it produced. For
        incremental formats that is a single partial read of the channel,
        which may complete no object at all; use it after a readiness check
        (``select``) to avoid blocking on a slow sender. Whole-object formats
        block until one object has arrived.

        If ``callback`` raises, objects not yet delivered stay in the inbox.

        Raises:
            EndOfStreamError: If the channel is exhausted.
            OverflowError: If the partial-parse buffer exceeds its limit.
            MalformedStreamError: If the incoming bytes cannot be decoded.
            ConversionError: If a value doesn't fit the expected type.
        """
        if callback is None:
            return self.read_one()
        self._deliver_queued(callback)
        self._fill_inbox()
        self._deliver_queued(callback)
        return None

    def read_one(self) -> Any:
        """Return the next object, blocking until one is available.

        Raises:
            EndOfStreamError: If the channel is exhausted and nothing is queued.
        """
        while (value := self._next_value()) is _NOTHING:
            self._fill_inbox()
        return value

    def each(self, callback: Callable[[Any], Any]) -> None:
        """Call ``callback`` with every remaining object until end of stream.

        End of stream ends the loop silently. To stop early, iterate over the
        stream instead and ``break``.
        """
        with contextlib.suppress(EndOfStreamError):
            while not self.eof():
                self.read(callback)

    def __iter__(self) -> Iterator[Any]:
        """Yield objects until end of stream.

        Objects decoded but not yet yielded stay queued when the loop is left
        early, and the next read returns them.
        """
        while True:
            try:
                obj = self.read_one()
            except EndOfStreamError:
                return
            yield obj

    def eof(self) -> bool:
        """True when nothing is queued and the channel is exhausted.

        Blocks until the channel has a byte or its peer has finished.
        """
        return not self._inbox and not self._codec.ready and self._channel.at_eof()

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def write(self, *objects: Any) -> Self:
        """Flush the outbox, then encode and transmit ``objects`` in order.

        Raises:
            ChannelError: If the channel write fails.
        """
        self.flush_outbox()
        try:
            for obj in objects:
                self._codec.write_to_buffer(obj)
                self._objects_written += 1
        finally:
            self._codec.flush_buffer()
        return self

    __lshift__ = write

    def write_to_outbox(self, obj: Any) -> Self:
        """Queue ``obj`` without encoding it.

        Wrap a zero-argument callable in ``Deferred`` to compute the value at
        flush time. The outbox is flushed once it holds more than
        ``max_outbox`` entries, and before any other write.
        """
        self._outbox.push(obj)
        if len(self._outbox) > self.max_outbox:
            self.flush_outbox()
        return self

    def flush_outbox(self) -> Self:
        """Encode and transmit every queued entry, oldest first."""
        if not self._outbox:
            return self
        count = 0
        try:
            for value in self._outbox.drain():
                self._codec.write_to_buffer(value)
                count += 1
        finally:
            self._objects_written += count
            self._codec.flush_buffer()
        logger.debug('outbox flushed', peer=self.peer_name, count=count)
        return self

    def write_to_buffer(self, obj: Any) -> Self:
        """Flush the outbox, then encode ``obj`` without transmitting it.

        Incremental formats keep the bytes until ``flush_buffer()``, ``write``
        or ``close``; whole-object formats transmit immediately.
        """
        self.flush_outbox()
        self._codec.write_to_buffer(obj)
        self._objects_written += 1
        return self

    def flush_buffer(self) -> Self:
        """Transmit everything encoded by ``write_to_buffer``."""
        self._codec.flush_buffer()
        return self

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def fileno(self) -> int:
        """File descriptor of the channel, so a stream can go into ``select``."""
        return self._channel.fileno()

    @property
    def closed(self) -> bool:
        """Whether the channel has been closed."""
        return self._channel.closed

    def close(self) -> None:
        """Flush pending writes, then close the channel.

        Closing twice is an error of the caller.
        """
        try:
            self.flush_outbox()
            self._codec.flush_buffer()
        finally:
            self._channel.close()
        logger.debug(
            'stream closed',
            peer=self.peer_name,
            objects_read=self._objects_read,
            objects_written=self._objects_written,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self.closed:
            self.close()

    def stats(self) -> StreamStats:
        """Snapshot of this stream's counters and queue sizes."""
        return StreamStats(
            format=self._format,
            peer_name=self.peer_name,
            objects_read=self._objects_read,
            objects_delivered=self._objects_delivered,
            objects_consumed=self._objects_consumed,
            objects_written=self._objects_written,
            inbox_size=len(self._inbox),
            outbox_size=len(self._outbox),
            pending_consumers=len(self._consumers),
            buffered_bytes=self._codec.buffered,
            bytes_read=self._channel.bytes_read,
            bytes_written=self._channel.bytes_written,
            created_at=self._created_at,
        )
