"""Tests for the encode and reconstruction hooks."""

from __future__ import annotations

import dataclasses
from typing import Any, Self

import msgspec
import pytest
from object_stream.codecs.convert import encode_hook, reconstruct
from object_stream.errors import ConversionError


class Point(msgspec.Struct, array_like=True):
    x: int
    y: int


@dataclasses.dataclass
class Label:
    text: str
    weight: float = 1.0


class Vector:
    """Application class taking part through the serialization methods."""

    def __init__(self, *components: float) -> None:
        self.components = components

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Vector) and self.components == other.components

    def __hash__(self) -> int:
        return hash(self.components)

    def to_serialized(self) -> Any:
        return list(self.components)

    @classmethod
    def from_serialized(cls, raw: Any) -> Self:
        return cls(*raw)


class TestEncodeHook:
    def test_uses_to_serialized(self) -> None:
        assert encode_hook(Vector(1, 2)) == [1, 2]

    def test_unsupported(self) -> None:
        with pytest.raises(NotImplementedError, match='object'):
            encode_hook(object())

    def test_msgspec_reports_unsupported_type(self) -> None:
        encoder = msgspec.json.Encoder(enc_hook=encode_hook)
        assert encoder.encode(Vector(3, 4)) == b'[3,4]'
        with pytest.raises((NotImplementedError, TypeError)):
            encoder.encode(object())


class TestReconstruct:
    def test_struct(self) -> None:
        assert reconstruct([1, 2], Point) == Point(1, 2)

    def test_dataclass(self) -> None:
        assert reconstruct({'text': 'hi'}, Label) == Label('hi', 1.0)

    def test_from_serialized(self) -> None:
        assert reconstruct([1.5, 2.5], Vector) == Vector(1.5, 2.5)

    def test_instance_passes_through(self) -> None:
        point = Point(1, 2)
        assert reconstruct(point, Point) is point

    def test_typed_container(self) -> None:
        assert reconstruct([[1, 2], [3, 4]], list[Point]) == [Point(1, 2), Point(3, 4)]

    def test_shape_mismatch_raises_conversion_error(self) -> None:
        with pytest.raises(ConversionError) as info:
            reconstruct({'x': 'one'}, Point)
        assert info.value.type_name == 'Point'
        assert isinstance(info.value.__cause__, msgspec.ValidationError)

    def test_from_serialized_failure_is_wrapped(self) -> None:
        class Strict:
            @classmethod
            def from_serialized(cls, raw: Any) -> Strict:
                raise ValueError(f'bad value {raw!r}')

        with pytest.raises(ConversionError, match='bad value'):
            reconstruct(3, Strict)
