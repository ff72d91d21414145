"""Stream error types: dual struct+exception for structured handling and raise-based code.

Every error with data comes as a pair: a frozen msgspec Struct that can be
logged or inspected, and an exception that is raised. Convert between them
with ``to_exception()`` / ``to_struct()``.

Channel failures are not wrapped: they surface as the ``OSError`` raised by
the underlying socket or file (``ChannelError`` is an alias).
"""

from __future__ import annotations

import msgspec

__all__ = [
    'AlreadyWrapped',
    'AlreadyWrappedError',
    'ChannelError',
    'ConversionError',
    'ConversionFailed',
    'EndOfStream',
    'EndOfStreamError',
    'MalformedStream',
    'MalformedStreamError',
    'Overflow',
    'OverflowError',
    'StreamError',
    'UnknownFormat',
    'UnknownFormatError',
]

ChannelError = OSError
"""Transport failures (broken pipe, reset connection, closed file) propagate unchanged."""


class StreamError(Exception):
    """Base class for every error raised by object_stream itself."""


# --- Read-side Errors ---


class EndOfStream(msgspec.Struct, frozen=True, gc=False):
    """Channel exhausted with nothing buffered - struct variant."""

    peer: str | None = None

    def to_exception(self) -> EndOfStreamError:
        """Convert to exception for raise-based code."""
        return EndOfStreamError(self.peer)


class EndOfStreamError(StreamError, EOFError):
    """Channel exhausted with nothing buffered - exception variant.

    Iteration treats this as normal termination; a direct ``read()`` raises it.
    """

    def __init__(self, peer: str | None = None) -> None:
        self.peer = peer
        msg = 'End of stream'
        if peer:
            msg = f'{msg} from {peer}'
        super().__init__(msg)

    def to_struct(self) -> EndOfStream:
        """Convert to struct for structured handling."""
        return EndOfStream(self.peer)


class Overflow(msgspec.Struct, frozen=True, gc=False):
    """Unconsumed parse buffer grew past its limit - struct variant."""

    limit: int
    buffered: int

    @property
    def excess(self) -> int:
        """Number of bytes by which the limit was exceeded."""
        return self.buffered - self.limit

    def to_exception(self) -> OverflowError:
        """Convert to exception for raise-based code."""
        return OverflowError(self.limit, self.buffered)


class OverflowError(StreamError):  # noqa: A001 - intentionally shadows builtin
    """Unconsumed parse buffer grew past its limit - exception variant."""

    def __init__(self, limit: int, buffered: int) -> None:
        self.limit = limit
        self.buffered = buffered
        super().__init__(f'Exceeded buffer limit by {self.excess} bytes.')

    @property
    def excess(self) -> int:
        """Number of bytes by which the limit was exceeded."""
        return self.buffered - self.limit

    def to_struct(self) -> Overflow:
        """Convert to struct for structured handling."""
        return Overflow(self.limit, self.buffered)


class MalformedStream(msgspec.Struct, frozen=True, gc=False):
    """Incoming bytes could not be decoded - struct variant."""

    format: str
    reason: str

    def to_exception(self) -> MalformedStreamError:
        """Convert to exception for raise-based code."""
        return MalformedStreamError(self.format, self.reason)


class MalformedStreamError(StreamError):
    """Incoming bytes could not be decoded - exception variant.

    Always chained to the codec exception that caused it.
    """

    def __init__(self, format: str, reason: str) -> None:  # noqa: A002
        self.format = format
        self.reason = reason
        super().__init__(f'Malformed {format} stream: {reason}')

    def to_struct(self) -> MalformedStream:
        """Convert to struct for structured handling."""
        return MalformedStream(self.format, self.reason)


class ConversionFailed(msgspec.Struct, frozen=True, gc=False):
    """Decoded value does not fit the expected type - struct variant."""

    type_name: str
    reason: str

    def to_exception(self) -> ConversionError:
        """Convert to exception for raise-based code."""
        return ConversionError(self.type_name, self.reason)


class ConversionError(StreamError):
    """Decoded value does not fit the expected type - exception variant."""

    def __init__(self, type_name: str, reason: str) -> None:
        self.type_name = type_name
        self.reason = reason
        super().__init__(f'Cannot convert to {type_name}: {reason}')

    def to_struct(self) -> ConversionFailed:
        """Convert to struct for structured handling."""
        return ConversionFailed(self.type_name, self.reason)


# --- Construction Errors ---


class AlreadyWrapped(msgspec.Struct, frozen=True, gc=False):
    """Channel is already owned by a stream - struct variant."""

    target: str

    def to_exception(self) -> AlreadyWrappedError:
        """Convert to exception for raise-based code."""
        return AlreadyWrappedError(self.target)


class AlreadyWrappedError(StreamError, TypeError):
    """Channel is already owned by a stream - exception variant."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f'Given io is already wrapped by a stream: {target}')

    def to_struct(self) -> AlreadyWrapped:
        """Convert to struct for structured handling."""
        return AlreadyWrapped(self.target)


class UnknownFormat(msgspec.Struct, frozen=True, gc=False):
    """No codec registered for a format id - struct variant."""

    format: str

    def to_exception(self) -> UnknownFormatError:
        """Convert to exception for raise-based code."""
        return UnknownFormatError(self.format)


class UnknownFormatError(StreamError, ValueError):
    """No codec registered for a format id - exception variant."""

    def __init__(self, format: str) -> None:  # noqa: A002
        self.format = format
        super().__init__(f'Unknown format: {format!r}')

    def to_struct(self) -> UnknownFormat:
        """Convert to struct for structured handling."""
        return UnknownFormat(self.format)
