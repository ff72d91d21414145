"""Hooks for formats that cannot carry application types.

MessagePack and JSON only know maps, arrays and scalars. On the way out,
``encode_hook`` lets an object say how it should be serialized; on the way
in, ``reconstruct`` rebuilds the type the reader said it expects.

An application class takes part by defining either or both of::

    def to_serialized(self) -> Any: ...          # used when encoding

    @classmethod
    def from_serialized(cls, raw: Any) -> Self: ...  # used by Stream.expect

Types msgspec already understands (Structs, dataclasses, attrs classes,
enums, typed containers) need neither: they encode natively and are rebuilt
with ``msgspec.convert``.
"""

from __future__ import annotations

from typing import Any

import msgspec

from object_stream.errors import ConversionFailed

__all__ = ['encode_hook', 'reconstruct']


def encode_hook(obj: Any) -> Any:
    """msgspec ``enc_hook``: serialize objects through ``to_serialized()``.

    Raises:
        NotImplementedError: If the object has no ``to_serialized`` method,
            which msgspec reports as an unsupported type.
    """
    to_serialized = getattr(obj, 'to_serialized', None)
    if to_serialized is None:
        msg = f'Objects of type {type(obj).__name__} are not supported'
        raise NotImplementedError(msg)
    return to_serialized()


def _type_name(cls: Any) -> str:
    return getattr(cls, '__qualname__', None) or repr(cls)


def _is_instance(obj: Any, cls: Any) -> bool:
    try:
        return isinstance(obj, cls)
    except TypeError:
        # Parameterized generics (list[int], dict[str, Foo]) can't be checked.
        return False


def reconstruct[T](raw: Any, cls: type[T]) -> T:
    """Build one instance of ``cls`` from a decoded raw value.

    Args:
        raw: A value as the codec decoded it (dict, list, scalar).
        cls: The expected type.

    Returns:
        ``raw`` itself if it already is a ``cls``; otherwise the result of
        ``cls.from_serialized(raw)`` if defined, else ``msgspec.convert``.

    Raises:
        ConversionError: If the value's shape doesn't fit ``cls``.

    Example:
        >>> class Point(msgspec.Struct, array_like=True):
        ...     x: int
        ...     y: int
        >>> reconstruct([1, 2], Point)
        Point(x=1, y=2)
    """
    if _is_instance(raw, cls):
        return raw

    from_serialized = getattr(cls, 'from_serialized', None)
    try:
        if from_serialized is not None:
            return from_serialized(raw)
        return msgspec.convert(raw, cls)
    except Exception as exc:
        failure = ConversionFailed(_type_name(cls), f'{type(exc).__name__}: {exc}')
        raise failure.to_exception() from exc
