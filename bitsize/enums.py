"""Enums stored in a fixed number of bits, with checked conversions to and from integers."""

from __future__ import annotations

import enum
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from bitsize.uint import (
    MAX_ENUM_BIT_SIZE,
    BitsError,
    UInt,
    enum_fills_bitsize,
    uint,
    validate_bitsize,
)

__all__ = [
    "Conversion",
    "FallbackValue",
    "bitenum",
    "enum_binary",
    "enum_from_bits",
    "enum_to_bits",
    "enum_try_from_bits",
]


class Conversion(enum.Enum):
    """How raw bits are turned into enum members."""

    FROM_BITS = "from_bits"
    """Every bit pattern maps to a member (possibly through a fallback)."""

    TRY_FROM_BITS = "try_from_bits"
    """Patterns without a member are rejected with :class:`BitsError`."""


@dataclass(frozen=True)
class _EnumSpec:
    bits: int
    mode: Conversion
    fallback: Optional[enum.Enum]
    fallback_value: bool

    @property
    def arb(self) -> type[UInt]:
        return uint(self.bits)


def _spec_of(enum_cls: Any) -> _EnumSpec:
    spec = getattr(enum_cls, "__bitenum__", None)
    if not isinstance(spec, _EnumSpec):
        raise TypeError(f"{enum_cls!r} is not a bit enum; decorate it with bitenum()")
    return spec


def _coerce(spec: _EnumSpec, raw: Any) -> int:
    if isinstance(raw, UInt):
        if type(raw).BITS != spec.bits:
            raise TypeError(
                f"expected a {spec.bits}-bit integer, got a {type(raw).BITS}-bit one"
            )
        return int(raw)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TypeError(f"expected an integer, got {type(raw).__name__}")
    return int(spec.arb(raw))


@dataclass(frozen=True)
class FallbackValue:
    """A value-carrying fallback variant together with the bits it holds."""

    variant: enum.Enum
    value: UInt

    def __post_init__(self) -> None:
        spec = _spec_of(type(self.variant))
        if not spec.fallback_value or self.variant is not spec.fallback:
            raise ValueError(f"{self.variant!r} is not a fallback variant that carries a value")
        object.__setattr__(self, "value", spec.arb(_coerce(spec, self.value)))

    def __int__(self) -> int:
        return int(self.value)

    def __repr__(self) -> str:
        return f"{type(self.variant).__name__}.{self.variant.name}({int(self.value)})"


EnumValue = Union[enum.Enum, FallbackValue]


def _collect_variants(cls: type) -> list[tuple[str, Any]]:
    if isinstance(cls, enum.EnumMeta):
        variants = []
        for name, member in cls.__members__.items():
            if member.name != name:
                raise ValueError(f"discriminant value of `{name}` is assigned more than once")
            variants.append((name, member.value))
        return variants
    return [
        (name, None if isinstance(value, enum.auto) else value)
        for name, value in vars(cls).items()
        if not name.startswith("_")
    ]


def _assign_discriminants(variants: list[tuple[str, Any]], bits: int) -> list[tuple[str, int]]:
    max_value = (1 << bits) - 1
    next_expected = 0
    assigned: list[tuple[str, int]] = []
    seen: dict[int, str] = {}
    for name, value in variants:
        if value is None:
            value = next_expected
        elif isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"variant `{name}` is not a number; only integers are supported")
        if value < 0 or value > max_value:
            raise ValueError(f"value of variant `{name}` exceeds the given number of bits")
        if value in seen:
            raise ValueError(f"discriminant value {value} is assigned more than once")
        seen[value] = name
        assigned.append((name, value))
        next_expected = value + 1
    return assigned


def bitenum(
    bits: int,
    *,
    mode: Conversion = Conversion.FROM_BITS,
    fallback: Optional[str] = None,
    fallback_value: bool = False,
) -> Callable[[type], type[enum.Enum]]:
    """Turn a class of variants into an enum that occupies ``bits`` bits.

    Variants are the public class attributes, in order; each is an explicit
    integer discriminant or ``enum.auto()`` for "previous plus one, starting at
    zero".  An existing ``enum.Enum`` subclass may be decorated too.
    ``fallback`` names the variant that receives unmatched patterns; with
    ``fallback_value`` it must be the last variant and keeps the raw bits.
    """
    validate_bitsize(bits, MAX_ENUM_BIT_SIZE)
    mode = Conversion(mode)

    def decorate(cls: type) -> type[enum.Enum]:
        variants = _collect_variants(cls)
        if not variants:
            raise ValueError("empty enums are not supported")
        names = [name for name, _ in variants]

        if fallback_value and fallback is None:
            raise ValueError("fallback_value needs a fallback variant")
        if fallback is not None:
            if mode is Conversion.TRY_FROM_BITS:
                raise ValueError("fallback is not allowed with TRY_FROM_BITS; use FROM_BITS")
            if fallback not in names:
                raise ValueError(f"fallback variant `{fallback}` is not defined")
            if fallback_value and names[-1] != fallback:
                raise ValueError(
                    "value fallback is not the last variant; a fallback variant with "
                    "value must be the last variant of the enum"
                )

        filled = enum_fills_bitsize(bits, len(variants))
        if mode is Conversion.FROM_BITS:
            if not filled and fallback is None:
                raise ValueError(
                    "enum doesn't fill its bitsize; use TRY_FROM_BITS instead, "
                    "or specify one of the variants as fallback"
                )
            if filled and fallback is not None:
                raise ValueError(
                    f"enum already has {len(variants)} variants; remove the fallback"
                )
        elif filled:
            warnings.warn(
                "enum fills its bitsize; FROM_BITS can be used instead",
                UserWarning,
                stacklevel=2,
            )

        assigned = _assign_discriminants(variants, bits)
        if isinstance(cls, enum.EnumMeta):
            result = cls
        else:
            result = enum.Enum(
                cls.__name__, assigned, module=cls.__module__, qualname=cls.__qualname__
            )
            result.__doc__ = cls.__doc__
        fallback_member = result[fallback] if fallback is not None else None
        result.__bitenum__ = _EnumSpec(bits, mode, fallback_member, fallback_value)
        result.BITS = bits
        result.MAX = (1 << bits) - 1
        return result

    return decorate


def _lookup(enum_cls: type[enum.Enum], spec: _EnumSpec, number: int) -> Optional[EnumValue]:
    try:
        member = enum_cls(number)
    except ValueError:
        member = None
    if member is not None and member is not spec.fallback:
        return member
    if spec.fallback is None:
        return None
    if spec.fallback_value:
        return FallbackValue(spec.fallback, number)
    return spec.fallback


def enum_from_bits(enum_cls: type[enum.Enum], raw: Any) -> EnumValue:
    """Convert raw bits to a member of a FROM_BITS enum; never fails for in-range input."""
    spec = _spec_of(enum_cls)
    if spec.mode is not Conversion.FROM_BITS:
        raise TypeError(
            f"{enum_cls.__name__} does not fill its bitsize; use enum_try_from_bits"
        )
    number = _coerce(spec, raw)
    result = _lookup(enum_cls, spec, number)
    if result is None:
        raise BitsError()
    return result


def enum_try_from_bits(enum_cls: type[enum.Enum], raw: Any) -> EnumValue:
    """Convert raw bits to a member, raising :class:`BitsError` when none matches."""
    spec = _spec_of(enum_cls)
    number = _coerce(spec, raw)
    result = _lookup(enum_cls, spec, number)
    if result is None:
        raise BitsError()
    return result


def enum_to_bits(member: EnumValue) -> UInt:
    """Return the bits that represent ``member``."""
    if isinstance(member, FallbackValue):
        return member.value
    if not isinstance(member, enum.Enum):
        raise TypeError(f"expected a bit enum member, got {type(member).__name__}")
    spec = _spec_of(type(member))
    if spec.fallback_value and member is spec.fallback:
        raise TypeError(
            f"{member!r} carries a value; wrap it as FallbackValue({member!r}, value)"
        )
    return spec.arb(member.value)


def enum_binary(member: EnumValue) -> str:
    """Format ``member`` as binary digits, zero-padded to the enum's bit size."""
    bits = enum_to_bits(member)
    return format(int(bits), f"0{type(bits).BITS}b")