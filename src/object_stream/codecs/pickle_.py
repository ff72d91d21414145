"""Native whole-object codec backed by :mod:`pickle`.

Pickle preserves application types, so ``Stream.expect`` does nothing here.
The opcode stream is self-delimiting, so ``pickle.load`` reads exactly one
object's bytes from the channel and blocks until they have all arrived.

Unpickling runs arbitrary code: only use this format between trusted peers.
"""

from __future__ import annotations

import pickle
from typing import TYPE_CHECKING, Any

from object_stream.codecs.base import WholeObjectCodec

if TYPE_CHECKING:
    from collections.abc import Callable

    from object_stream.channel import ByteChannel

__all__ = ['PickleCodec']


class PickleCodec(WholeObjectCodec):
    """Whole-object codec using the pickle protocol."""

    def __init__(self, channel: ByteChannel, *, protocol: int = pickle.DEFAULT_PROTOCOL) -> None:
        super().__init__(channel)
        self.protocol = protocol

    def _load(self, emit: Callable[[Any], object]) -> None:
        emit(pickle.load(self._channel))

    def _dump(self, obj: Any) -> bytes:
        return pickle.dumps(obj, protocol=self.protocol)
