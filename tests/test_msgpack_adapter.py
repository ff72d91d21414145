"""Tests for the MessagePack parse adapter and its overflow policy."""

from __future__ import annotations

from typing import Any

import msgspec
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from object_stream.codecs.msgpack_ import MsgpackAdapter
from object_stream.errors import OverflowError

from tests.strategies import chunked, value_sequences


def packed(*values: Any) -> bytes:
    return b''.join(msgspec.msgpack.encode(value) for value in values)


class TestExtraction:
    @given(values=value_sequences, data=st.data())
    @settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_any_chunking_yields_same_values(self, values: list[Any], data: st.DataObject) -> None:
        adapter = MsgpackAdapter()
        received: list[Any] = []
        for chunk in data.draw(chunked(packed(*values))):
            adapter.feed(chunk)
            received.extend(adapter.extract())

        assert received == values
        assert adapter.buffered == 0

    def test_buffered_counts_partial_object(self) -> None:
        data = packed('x' * 50)
        adapter = MsgpackAdapter()
        adapter.feed(data[:30])
        assert list(adapter.extract()) == []
        assert adapter.buffered == 30
        adapter.feed(data[30:])
        assert list(adapter.extract()) == ['x' * 50]
        assert adapter.buffered == 0

    def test_integer_keys_and_bytes(self) -> None:
        adapter = MsgpackAdapter()
        adapter.feed(packed({1: b'\x00\x01'}))
        assert list(adapter.extract()) == [{1: b'\x00\x01'}]


class TestOverflow:
    def test_exceeding_limit_raises_with_excess(self) -> None:
        adapter = MsgpackAdapter(max_buffer=20)
        with pytest.raises(OverflowError, match='Exceeded buffer limit by 53 bytes.'):
            adapter.feed(packed('a' * 71))

    def test_one_byte_over(self) -> None:
        adapter = MsgpackAdapter(max_buffer=20)
        with pytest.raises(OverflowError) as info:
            adapter.feed(packed('a' * 20))
        assert info.value.excess == 1
        assert info.value.to_struct().limit == 20

    def test_check_precedes_extraction(self) -> None:
        """A stalled object is caught as soon as it crosses the limit."""
        data = packed('b' * 100)
        adapter = MsgpackAdapter(max_buffer=40)
        adapter.feed(data[:40])
        assert list(adapter.extract()) == []
        with pytest.raises(OverflowError) as info:
            adapter.feed(data[40:41])
        assert info.value.buffered == 41

    def test_unbounded(self) -> None:
        adapter = MsgpackAdapter(max_buffer=None)
        adapter.feed(packed('c' * 10_000))
        assert list(adapter.extract()) == ['c' * 10_000]

    def test_limit_can_change(self) -> None:
        adapter = MsgpackAdapter(max_buffer=10)
        adapter.max_buffer = 100
        adapter.feed(packed('d' * 50))
        assert list(adapter.extract()) == ['d' * 50]
