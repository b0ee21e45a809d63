"""Fixed-width unsigned integers and bit-size validation helpers."""

from __future__ import annotations

import operator
from functools import lru_cache
from typing import Any, ClassVar

__all__ = [
    "MAX_ENUM_BIT_SIZE",
    "MAX_STRUCT_BIT_SIZE",
    "BitsError",
    "UInt",
    "enum_fills_bitsize",
    "uint",
    "validate_bitsize",
]

MAX_STRUCT_BIT_SIZE = 128
"""Largest bit size a bitfield struct may declare."""

MAX_ENUM_BIT_SIZE = 64
"""Largest bit size a bitfield enum may declare."""


class BitsError(ValueError):
    """Raised when a bit pattern does not describe a valid value."""

    def __init__(self, message: str = "unable to parse bit pattern") -> None:
        super().__init__(message)


class UInt:
    """An unsigned integer restricted to ``BITS`` bits.

    Concrete widths are created with :func:`uint`; the base class itself
    has no width and cannot be instantiated.
    """

    __slots__ = ("_value",)

    BITS: ClassVar[int]
    MAX: ClassVar[int]

    def __init__(self, value: Any) -> None:
        bits = getattr(type(self), "BITS", None)
        if bits is None:
            raise TypeError("UInt has no width; create a concrete type with uint(bits)")
        number = operator.index(value)
        if not 0 <= number <= type(self).MAX:
            raise ValueError(f"value {number} does not fit in {bits} bits")
        object.__setattr__(self, "_value", number)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UInt):
            return type(other).BITS == type(self).BITS and other._value == self._value
        if isinstance(other, int):
            return other == self._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return str(self._value)

    __str__ = __repr__

    def __format__(self, spec: str) -> str:
        return format(self._value, spec)


def validate_bitsize(bits: Any, limit: int = MAX_STRUCT_BIT_SIZE) -> int:
    """Check that ``bits`` is a whole number from 1 to ``limit`` and return it."""
    if isinstance(bits, bool) or not isinstance(bits, int):
        raise TypeError("bit size is not a number; define the size like this: 32")
    if bits == 0 or bits < 0 or bits > limit:
        raise ValueError(
            f"bit size {bits} is not a valid number; numbers from 1 to {limit} are allowed"
        )
    return bits


@lru_cache(maxsize=None)
def uint(bits: int) -> type[UInt]:
    """Return the unsigned integer type that is ``bits`` wide (1 to 128)."""
    validate_bitsize(bits, MAX_STRUCT_BIT_SIZE)
    namespace = {
        "__slots__": (),
        "__doc__": f"Unsigned integer of {bits} bits.",
        "BITS": bits,
        "MAX": (1 << bits) - 1,
    }
    return type(f"u{bits}", (UInt,), namespace)


def enum_fills_bitsize(bits: int, variant_count: int) -> bool:
    """Tell whether ``variant_count`` variants cover every ``bits``-bit pattern.

    Raises ``ValueError`` when there are more variants than patterns.
    """
    max_variants = 1 << bits
    if variant_count > max_variants:
        raise ValueError(
            f"enum overflows its bitsize; there should only be at most "
            f"{max_variants} variants defined"
        )
    return variant_count == max_variants