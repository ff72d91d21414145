"""
object_stream: streams of objects over sockets, pipes and files.

Wraps a duplex byte channel and turns it into a sequence of objects using a
pluggable format (pickle, YAML, JSON or MessagePack). JSON and MessagePack
decode incrementally, so a stream can sit in a ``select`` loop and read
whatever has arrived without blocking on a slow sender.
"""

from object_stream._config import StreamConfig, get_config, init, reset_config
from object_stream._logging import (
    add_log_hook,
    bind_stream_context,
    clear_log_hooks,
    clear_stream_context,
    configure_logging,
    get_logger,
    remove_log_hook,
)
from object_stream.channel import ByteChannel
from object_stream.codecs import Format, codec_class_for, reconstruct, register, registered_formats
from object_stream.errors import (
    AlreadyWrapped,
    AlreadyWrappedError,
    ChannelError,
    ConversionError,
    ConversionFailed,
    EndOfStream,
    EndOfStreamError,
    MalformedStream,
    MalformedStreamError,
    Overflow,
    OverflowError,
    StreamError,
    UnknownFormat,
    UnknownFormatError,
)
from object_stream.queues import Deferred, Immediate
from object_stream.stats import StreamStats
from object_stream.stream import Stream

__version__ = '0.1.0'

__all__ = [
    # Errors - struct variants
    'AlreadyWrapped',
    # Errors - exception variants
    'AlreadyWrappedError',
    # Channel
    'ByteChannel',
    'ChannelError',
    'ConversionError',
    'ConversionFailed',
    # Outbox entries
    'Deferred',
    'EndOfStream',
    'EndOfStreamError',
    # Formats
    'Format',
    'Immediate',
    'MalformedStream',
    'MalformedStreamError',
    'Overflow',
    'OverflowError',
    # Stream
    'Stream',
    # Config
    'StreamConfig',
    'StreamError',
    'StreamStats',
    'UnknownFormat',
    'UnknownFormatError',
    # Logging
    'add_log_hook',
    'bind_stream_context',
    'clear_log_hooks',
    'clear_stream_context',
    'codec_class_for',
    'configure_logging',
    'get_config',
    'get_logger',
    'init',
    'reconstruct',
    'register',
    'registered_formats',
    'remove_log_hook',
    'reset_config',
]
