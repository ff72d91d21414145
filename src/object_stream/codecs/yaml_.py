"""YAML whole-object codec backed by PyYAML.

Every object is written as one document with explicit start and end
markers::

    --- {a: 1, b: 2}
    ...

The reader collects lines up to the next ``...`` line and parses them. A
blocking single-object read therefore works the same as with pickle. Input
produced elsewhere without end markers is read to end of input, and every
document in it is emitted in order.

With ``safe=True`` (the default) only plain YAML data is accepted in either
direction. ``safe=False`` uses the full Dumper/UnsafeLoader pair and
round-trips arbitrary Python objects. Only use it between trusted peers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import yaml

from object_stream.codecs.base import WholeObjectCodec
from object_stream.errors import EndOfStream

if TYPE_CHECKING:
    from collections.abc import Callable

    from object_stream.channel import ByteChannel

__all__ = ['YamlCodec']

_DOCUMENT_END = b'...'


class YamlCodec(WholeObjectCodec):
    """Whole-object codec writing one explicit YAML document per object."""

    def __init__(self, channel: ByteChannel, *, safe: bool = True) -> None:
        super().__init__(channel)
        self.safe = safe
        self._dumper = yaml.SafeDumper if safe else yaml.Dumper
        self._loader = yaml.SafeLoader if safe else yaml.UnsafeLoader

    def _read_document(self) -> bytes:
        lines: list[bytes] = []
        while True:
            line = self._channel.readline()
            if not line:
                break
            lines.append(line)
            if line.rstrip(b'\r\n') == _DOCUMENT_END:
                break
        return b''.join(lines)

    def _load(self, emit: Callable[[Any], object]) -> None:
        text = self._read_document()
        if not text.strip():
            raise EndOfStream().to_exception()
        for document in yaml.load_all(text, Loader=self._loader):
            emit(document)

    def _dump(self, obj: Any) -> bytes:
        text = yaml.dump(
            obj,
            Dumper=self._dumper,
            explicit_start=True,
            explicit_end=True,
            allow_unicode=True,
            sort_keys=False,
        )
        return text.encode('utf-8')
