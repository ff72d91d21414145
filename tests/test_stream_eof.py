"""End-of-stream semantics and decode error handling."""

from __future__ import annotations

import io
import pickle
import socket
from typing import Any

import msgspec
import pytest
from object_stream import EndOfStreamError, MalformedStreamError, OverflowError, Stream

from tests.helpers import encode, reader


class TestEndOfStream:
    def test_eof_false_while_inbox_holds_objects(self, incremental_fmt: str) -> None:
        """The channel is drained in one pass; queued objects still count."""
        stream = reader(incremental_fmt, encode(incremental_fmt, 1, 2, 3))
        assert stream.read_one() == 1
        assert stream.channel.at_eof()
        assert not stream.eof()
        assert stream.read_one() == 2
        assert stream.read_one() == 3
        assert stream.eof()

    def test_iteration_over_empty_stream(self, fmt: str) -> None:
        assert list(reader(fmt, b'')) == []

    def test_each_over_empty_stream(self, fmt: str) -> None:
        calls: list[Any] = []
        reader(fmt, b'').each(calls.append)
        assert calls == []

    def test_read_one_on_empty_stream_raises(self, fmt: str) -> None:
        stream = reader(fmt, b'')
        stream.peer_name = 'upstream'
        with pytest.raises(EndOfStreamError, match='upstream'):
            stream.read_one()

    def test_read_one_after_last_object_raises(self, fmt: str) -> None:
        stream = reader(fmt, encode(fmt, 'only'))
        assert stream.read_one() == 'only'
        with pytest.raises(EOFError):
            stream.read_one()

    def test_callback_read_at_end_raises(self, fmt: str) -> None:
        stream = reader(fmt, b'')
        with pytest.raises(EndOfStreamError):
            stream.read(lambda _: None)

    def test_truncated_object(self, incremental_fmt: str) -> None:
        data = encode(incremental_fmt, {'key': 'a value long enough to split'})
        stream = reader(incremental_fmt, data[: len(data) // 2])
        with pytest.raises(EndOfStreamError):
            stream.read_one()
        assert stream.stats().buffered_bytes == len(data) // 2

    def test_yaml_without_end_markers(self) -> None:
        """Documents written elsewhere without '...' are read to end of input."""
        stream = reader('yaml', b'--- 1\n--- 2\n--- [3, 4]\n')
        assert list(stream) == [1, 2, [3, 4]]


class TestMalformed:
    def test_json_garbage(self) -> None:
        stream = reader('json', b'{"a": 1}\n]\n[2]\n')
        with pytest.raises(MalformedStreamError) as info:
            stream.read_one()
        assert info.value.format == 'json'
        assert isinstance(info.value.__cause__, msgspec.DecodeError)

    def test_objects_before_failure_stay_readable(self) -> None:
        stream = reader('json', b'{"a": 1}\n]\n')
        with pytest.raises(MalformedStreamError):
            stream.read_one()
        assert stream.read_one() == {'a': 1}

    def test_objects_after_failure_stay_readable(self) -> None:
        """A bad JSON value costs only itself; the values behind it still arrive."""
        stream = reader('json', b'{"a": 1}\n]\n[2]\n')
        with pytest.raises(MalformedStreamError):
            stream.read_one()
        assert stream.channel.at_eof()
        assert not stream.eof()
        assert stream.read_one() == {'a': 1}
        assert stream.read_one() == [2]
        assert stream.eof()

    def test_each_after_failure_delivers_the_rest(self) -> None:
        stream = reader('json', b'[1]\n]\n[2]\n[3]\n')
        with pytest.raises(MalformedStreamError):
            stream.read_one()
        received: list[Any] = []
        stream.each(received.append)
        assert received == [[1], [2], [3]]

    def test_pickle_garbage(self) -> None:
        stream = reader('pickle', b'\xff\xff not a pickle')
        with pytest.raises(MalformedStreamError) as info:
            stream.read_one()
        assert isinstance(info.value.__cause__, pickle.UnpicklingError)

    def test_truncated_pickle_is_malformed(self) -> None:
        data = encode('pickle', list(range(100)))
        with pytest.raises(MalformedStreamError):
            reader('pickle', data[:-5]).read_one()

    def test_yaml_garbage(self) -> None:
        stream = reader('yaml', b'--- [unclosed\n...\n')
        with pytest.raises(MalformedStreamError):
            stream.read_one()

    def test_msgpack_reserved_byte(self) -> None:
        stream = reader('msgpack', b'\xc1')
        with pytest.raises(MalformedStreamError):
            stream.read_one()


class TestPassthrough:
    """Transport and overflow errors keep their identity."""

    def test_overflow_not_wrapped(self) -> None:
        stream = reader('msgpack', encode('msgpack', 'a' * 20), max_buffer=20)
        with pytest.raises(OverflowError, match='by 1 bytes'):
            list(stream)

    def test_channel_error_not_wrapped(self, incremental_fmt: str) -> None:
        class ResetOnRead(io.RawIOBase):
            def readable(self) -> bool:
                return True

            def readinto(self, b: Any) -> int:
                raise ConnectionResetError('peer reset')

        stream = Stream(ResetOnRead(), incremental_fmt)
        with pytest.raises(ConnectionResetError):
            stream.read_one()

    def test_channel_error_on_write(self, socket_pair: tuple[socket.socket, socket.socket]) -> None:
        left, right = socket_pair
        right.close()
        stream = Stream(left, 'json')
        with pytest.raises(BrokenPipeError):
            stream.write(1)
