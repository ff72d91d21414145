"""Format registry: format id to codec class, resolved lazily and once.

Factories are registered up front but only called on first use of their
format, so a program that never touches YAML never imports PyYAML. Lookups
of already-resolved formats read the mapping without locking; the first
lookup of a format takes the lock and re-checks before calling the factory.
Concurrent first use therefore runs each factory exactly once.
"""

from __future__ import annotations

import threading
from enum import StrEnum
from typing import TYPE_CHECKING

from object_stream._logging import get_logger
from object_stream.errors import UnknownFormat

if TYPE_CHECKING:
    from collections.abc import Callable

    from object_stream.codecs.protocols import Codec

__all__ = ['CodecFactory', 'Format', 'codec_class_for', 'is_registered', 'register', 'registered_formats']

logger = get_logger(__name__)

type CodecFactory = Callable[[], type[Codec]]


class Format(StrEnum):
    """Built-in wire formats."""

    PICKLE = 'pickle'
    YAML = 'yaml'
    JSON = 'json'
    MSGPACK = 'msgpack'


# -----------------------------------------------------------------------------
# Built-in Factories
# -----------------------------------------------------------------------------


def _pickle_codec() -> type[Codec]:
    from object_stream.codecs.pickle_ import PickleCodec

    return PickleCodec


def _yaml_codec() -> type[Codec]:
    from object_stream.codecs.yaml_ import YamlCodec

    return YamlCodec


def _json_codec() -> type[Codec]:
    from object_stream.codecs.json_ import JsonCodec

    return JsonCodec


def _msgpack_codec() -> type[Codec]:
    from object_stream.codecs.msgpack_ import MsgpackCodec

    return MsgpackCodec


# -----------------------------------------------------------------------------
# Registry State
# -----------------------------------------------------------------------------

_factories: dict[str, CodecFactory] = {
    Format.PICKLE: _pickle_codec,
    Format.YAML: _yaml_codec,
    Format.JSON: _json_codec,
    Format.MSGPACK: _msgpack_codec,
}
_classes: dict[str, type[Codec]] = {}
_registry_lock = threading.Lock()


def register(format: str, factory: CodecFactory) -> None:  # noqa: A002
    """Register (or replace) the codec factory for a format id.

    The factory is not called here. It runs on the first ``codec_class_for``
    lookup of the format, at most once.

    Example:
        ```python
        def _cbor_codec():
            from myapp.cbor import CborCodec

            return CborCodec


        register('cbor', _cbor_codec)
        stream = Stream(sock, 'cbor')
        ```
    """
    key = str(format)
    with _registry_lock:
        _factories[key] = factory
        _classes.pop(key, None)


def is_registered(format: str) -> bool:  # noqa: A002
    """Whether a factory exists for the format id."""
    return str(format) in _factories


def registered_formats() -> tuple[str, ...]:
    """All registered format ids, in registration order."""
    return tuple(_factories)


def codec_class_for(format: str) -> type[Codec]:  # noqa: A002
    """Resolve a format id to its codec class, initializing it on first use.

    Raises:
        UnknownFormatError: If no factory is registered for ``format``.
    """
    key = str(format)
    codec_class = _classes.get(key)
    if codec_class is None:
        with _registry_lock:
            codec_class = _classes.get(key)
            if codec_class is None:
                factory = _factories.get(key)
                if factory is None:
                    raise UnknownFormat(key).to_exception()
                codec_class = factory()
                _classes[key] = codec_class
                logger.debug('codec initialized', format=key, codec=codec_class.__name__)
    return codec_class
