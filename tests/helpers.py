"""Helpers shared by the stream tests."""

from __future__ import annotations

import io
from typing import Any

from object_stream import Stream

ALL_FORMATS = ['pickle', 'yaml', 'json', 'msgpack']
WHOLE_OBJECT_FORMATS = ['pickle', 'yaml']
INCREMENTAL_FORMATS = ['json', 'msgpack']


def encode(format: str, *objects: Any, **options: Any) -> bytes:  # noqa: A002
    """Bytes a stream of ``format`` writes for ``objects``."""
    buffer = io.BytesIO()
    Stream(buffer, format, **options).write(*objects)
    return buffer.getvalue()


def reader(format: str, data: bytes, **options: Any) -> Stream:  # noqa: A002
    """A stream reading ``data`` in ``format``."""
    return Stream(io.BytesIO(data), format, **options)
