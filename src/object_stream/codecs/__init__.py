"""Codecs: byte-level encoders/decoders bound to one channel each.

Exports:
    Codec: Capability protocol every codec satisfies.
    WholeObjectCodec, IncrementalCodec: The two codec variants.
    IncrementalParseAdapter: Partial-input buffer with overflow policy.
    Format, register, codec_class_for: Format registry.
    encode_hook, reconstruct: Hooks for formats without type fidelity.

The concrete codecs (``PickleCodec``, ``YamlCodec``, ``JsonCodec``,
``MsgpackCodec``) live in their own modules and are imported by the
registry on first use.
"""

from __future__ import annotations

from object_stream.codecs.adapter import IncrementalParseAdapter
from object_stream.codecs.base import IncrementalCodec, WholeObjectCodec
from object_stream.codecs.convert import encode_hook, reconstruct
from object_stream.codecs.protocols import Codec
from object_stream.codecs.registry import (
    CodecFactory,
    Format,
    codec_class_for,
    is_registered,
    register,
    registered_formats,
)

__all__ = [
    'Codec',
    'CodecFactory',
    'Format',
    'IncrementalCodec',
    'IncrementalParseAdapter',
    'WholeObjectCodec',
    'codec_class_for',
    'encode_hook',
    'is_registered',
    'reconstruct',
    'register',
    'registered_formats',
]
