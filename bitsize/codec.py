"""Bit-level layout of field types: sizes, masks, packing, unpacking and defaults.

A field type is one of:

* ``bool`` (one bit),
* a fixed-width integer type made by :func:`bitsize.uint.uint`,
* an enum made by :func:`bitsize.enums.bitenum`,
* any other class with an integer ``BITS`` attribute whose instances convert
  with ``int()`` and which offers ``try_from_bits`` or ``from_bits``,
* a tuple of field types, packed element after element,
* an :class:`Array` of a field type.

The first element of a tuple or array sits in the least significant bits.
"""

from __future__ import annotations

import enum
import operator
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bitsize.enums import FallbackValue, enum_to_bits, enum_try_from_bits
from bitsize.uint import BitsError, UInt, uint

__all__ = [
    "Array",
    "bitsize_of",
    "decode",
    "default_of",
    "encode",
    "is_valid",
    "mask_of",
]


@dataclass(frozen=True)
class Array:
    """A fixed number of elements of one field type, packed back to back."""

    element: Any
    length: int

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise TypeError("array length must be an integer")
        if self.length < 0:
            raise ValueError("array length must not be negative")
        bitsize_of(self.element)

    def __repr__(self) -> str:
        return f"[{_type_name(self.element)}; {self.length}]"


def _type_name(ty: Any) -> str:
    if isinstance(ty, tuple):
        return "(" + ", ".join(_type_name(t) for t in ty) + ")"
    if isinstance(ty, Array):
        return repr(ty)
    return getattr(ty, "__name__", repr(ty))


def _is_bitenum(ty: Any) -> bool:
    return isinstance(ty, enum.EnumMeta) and hasattr(ty, "__bitenum__")


def _is_uint(ty: Any) -> bool:
    return isinstance(ty, type) and issubclass(ty, UInt)


def bitsize_of(ty: Any) -> int:
    """Return the number of bits a field of type ``ty`` occupies."""
    if isinstance(ty, tuple):
        return sum(bitsize_of(elem) for elem in ty)
    if isinstance(ty, Array):
        return bitsize_of(ty.element) * ty.length
    if ty is bool:
        return 1
    if isinstance(ty, type):
        bits = getattr(ty, "BITS", None)
        if isinstance(bits, int) and not isinstance(bits, bool):
            return bits
    raise TypeError(f"field type {ty!r} is not supported")


def mask_of(ty: Any) -> int:
    """Return a mask with every bit of a ``ty`` field set, starting at bit zero."""
    return (1 << bitsize_of(ty)) - 1


def _raw_int(ty: Any, raw: Any) -> int:
    number = int(raw) if isinstance(raw, UInt) else operator.index(raw)
    if not 0 <= number <= mask_of(ty):
        raise ValueError(f"raw value {number} does not fit in {bitsize_of(ty)} bits")
    return number


def _elements(ty: Any, value: Any, count: int) -> list[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeError(f"expected a sequence for {_type_name(ty)}, got {type(value).__name__}")
    items = list(value)
    if len(items) != count:
        raise ValueError(f"{_type_name(ty)} needs {count} elements, got {len(items)}")
    return items


def encode(ty: Any, value: Any) -> int:
    """Pack ``value`` of field type ``ty`` into an integer, first element lowest."""
    if isinstance(ty, tuple):
        items = _elements(ty, value, len(ty))
        packed = 0
        offset = 0
        for elem_ty, item in zip(ty, items):
            packed |= encode(elem_ty, item) << offset
            offset += bitsize_of(elem_ty)
        return packed
    if isinstance(ty, Array):
        items = _elements(ty, value, ty.length)
        size = bitsize_of(ty.element)
        packed = 0
        for index, item in enumerate(items):
            packed |= encode(ty.element, item) << (index * size)
        return packed
    if ty is bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected bool, got {type(value).__name__}")
        return int(value)
    if _is_uint(ty):
        if isinstance(value, UInt):
            if type(value).BITS != ty.BITS:
                raise TypeError(
                    f"expected a {ty.BITS}-bit integer, got a {type(value).BITS}-bit one"
                )
            return int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected {ty.__name__}, got {type(value).__name__}")
        return int(ty(value))
    if _is_bitenum(ty):
        member_cls = type(value.variant) if isinstance(value, FallbackValue) else type(value)
        if member_cls is not ty:
            raise TypeError(f"expected a member of {ty.__name__}, got {value!r}")
        return int(enum_to_bits(value))
    bitsize_of(ty)
    if not isinstance(value, ty):
        raise TypeError(f"expected {ty.__name__}, got {type(value).__name__}")
    number = int(value)
    if not 0 <= number <= mask_of(ty):
        raise ValueError(f"{value!r} does not fit in {bitsize_of(ty)} bits")
    return number


def _decode(ty: Any, number: int) -> Any:
    if isinstance(ty, tuple):
        values = []
        for elem_ty in ty:
            size = bitsize_of(elem_ty)
            values.append(_decode(elem_ty, number & ((1 << size) - 1)))
            number >>= size
        return tuple(values)
    if isinstance(ty, Array):
        size = bitsize_of(ty.element)
        elem_mask = (1 << size) - 1
        return [
            _decode(ty.element, (number >> (index * size)) & elem_mask)
            for index in range(ty.length)
        ]
    if ty is bool:
        return bool(number)
    if _is_uint(ty):
        return ty(number)
    if _is_bitenum(ty):
        return enum_try_from_bits(ty, number)
    bits = bitsize_of(ty)
    converter = getattr(ty, "try_from_bits", None) or getattr(ty, "from_bits", None)
    if converter is None:
        raise TypeError(f"{ty.__name__} cannot be built from bits")
    return converter(uint(bits)(number))


def decode(ty: Any, raw: Any) -> Any:
    """Unpack ``raw`` bits into a value of field type ``ty``.

    Tuples come back as tuples and arrays as lists.  Raises :class:`BitsError`
    when a nested enum or struct rejects its bits.
    """
    return _decode(ty, _raw_int(ty, raw))


def is_valid(ty: Any, raw: Any) -> bool:
    """Tell whether ``raw`` bits describe a valid value of field type ``ty``."""
    number = _raw_int(ty, raw)
    try:
        _decode(ty, number)
    except BitsError:
        return False
    return True


def default_of(ty: Any) -> Any:
    """Return the default value of field type ``ty``.

    Integers default to zero and ``bool`` to ``False``.  An enum needs a
    ``__bitdefault__`` member set on its class; other types need a
    ``default()`` class method.
    """
    if isinstance(ty, tuple):
        return tuple(default_of(elem) for elem in ty)
    if isinstance(ty, Array):
        return [default_of(ty.element) for _ in range(ty.length)]
    if ty is bool:
        return False
    if _is_uint(ty):
        return ty(0)
    if _is_bitenum(ty):
        member = getattr(ty, "__bitdefault__", None)
        if member is None:
            raise TypeError(f"{ty.__name__} has no default variant; set __bitdefault__")
        return member
    bitsize_of(ty)
    factory = getattr(ty, "default", None)
    if not callable(factory):
        raise TypeError(f"{ty.__name__} has no default")
    return factory()