"""Structs packed into a fixed number of bits, with typed field access."""

from __future__ import annotations

import enum
import operator
import re
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Iterator, Optional

from bitsize.codec import Array, bitsize_of, decode, default_of, encode, is_valid
from bitsize.enums import Conversion
from bitsize.uint import MAX_STRUCT_BIT_SIZE, BitsError, UInt, uint, validate_bitsize

__all__ = ["BitStruct", "bitfield", "tuple_bitfield"]

_SPECIAL_NAME = re.compile(r"_?(reserved|padding)\d*")
_SKIPPED_ATTRIBUTES = {"__dict__", "__weakref__", "__annotations__", "__slots__"}


@dataclass(frozen=True)
class _Field:
    name: str
    ty: Any
    offset: int
    size: int
    reserved: bool

    @property
    def mask(self) -> int:
        return (1 << self.size) - 1

    def extract(self, number: int) -> int:
        return (number >> self.offset) & self.mask


@dataclass(frozen=True)
class _Layout:
    bits: int
    mode: Conversion
    fields: tuple[_Field, ...]
    is_tuple: bool

    @property
    def settable(self) -> tuple[_Field, ...]:
        return tuple(field for field in self.fields if not field.reserved)


def _rename_special(names: Iterable[str]) -> Iterator[str]:
    """Number repeated ``reserved``/``padding`` fields as ``reserved_i``, ``reserved_ii``..."""
    counters = {"reserved": 0, "padding": 0}
    for name in names:
        match = _SPECIAL_NAME.fullmatch(name)
        if match is None:
            yield name
            continue
        kind = match.group(1)
        counters[kind] += 1
        yield f"{kind}_{'i' * counters[kind]}"


def _is_reserved(name: str) -> bool:
    return "reserved_" in name or "padding_" in name


def _is_filled(ty: Any) -> bool:
    """Tell whether every bit pattern of ``ty`` is a valid value."""
    if isinstance(ty, tuple):
        return all(_is_filled(elem) for elem in ty)
    if isinstance(ty, Array):
        return _is_filled(ty.element)
    if ty is bool:
        return True
    if isinstance(ty, type) and issubclass(ty, UInt):
        return True
    if isinstance(ty, enum.EnumMeta) and hasattr(ty, "__bitenum__"):
        return ty.__bitenum__.mode is Conversion.FROM_BITS
    if isinstance(ty, type) and issubclass(ty, BitStruct):
        return ty.__bitstruct__.mode is Conversion.FROM_BITS
    return hasattr(ty, "from_bits")


def _show(value: Any) -> str:
    if isinstance(value, enum.Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, list):
        return "[" + ", ".join(_show(item) for item in value) + "]"
    if isinstance(value, tuple):
        inner = ", ".join(_show(item) for item in value)
        return f"({inner},)" if len(value) == 1 else f"({inner})"
    return repr(value)


class BitStruct:
    """Base of every bit struct; the whole struct is stored as one integer.

    Concrete structs are made with :func:`bitfield` or :func:`tuple_bitfield`.
    Fields are exposed as properties; reserved and padding fields are read-only
    and left out of the constructor, which takes the other fields in order.
    """

    __slots__ = ("_value",)

    BITS: ClassVar[int]
    MAX: ClassVar[int]
    __bitstruct__: ClassVar[_Layout]

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        settable = self._layout().settable
        names = [field.name for field in settable]
        if len(args) > len(names):
            raise TypeError(
                f"{type(self).__name__} takes {len(names)} field values, got {len(args)}"
            )
        values = dict(zip(names, args))
        for key, item in kwargs.items():
            if key not in names:
                raise TypeError(f"{type(self).__name__} has no settable field {key!r}")
            if key in values:
                raise TypeError(f"got multiple values for field {key!r}")
            values[key] = item
        missing = [name for name in names if name not in values]
        if missing:
            raise TypeError(f"missing field values: {', '.join(missing)}")
        number = 0
        for field in settable:
            number |= encode(field.ty, values[field.name]) << field.offset
        self._value = number

    @classmethod
    def _layout(cls) -> _Layout:
        layout = getattr(cls, "__bitstruct__", None)
        if not isinstance(layout, _Layout):
            raise TypeError(f"{cls.__name__} has no layout; create it with bitfield()")
        return layout

    @classmethod
    def _from_raw(cls, number: int) -> "BitStruct":
        obj = cls.__new__(cls)
        obj._value = number
        return obj

    @classmethod
    def _coerce(cls, value: Any) -> int:
        bits = cls._layout().bits
        if isinstance(value, UInt):
            if type(value).BITS != bits:
                raise TypeError(
                    f"expected a {bits}-bit integer, got a {type(value).BITS}-bit one"
                )
            return int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an integer, got {type(value).__name__}")
        return int(uint(bits)(value))

    @classmethod
    def from_bits(cls, value: Any) -> "BitStruct":
        """Build the struct from raw bits; every pattern is valid for FROM_BITS structs."""
        layout = cls._layout()
        if layout.mode is not Conversion.FROM_BITS:
            raise TypeError(f"{cls.__name__} does not fill its bitsize; use try_from_bits")
        return cls._from_raw(cls._coerce(value))

    @classmethod
    def try_from_bits(cls, value: Any) -> "BitStruct":
        """Build the struct from raw bits, raising :class:`BitsError` for invalid fields."""
        number = cls._coerce(value)
        for field in cls._layout().fields:
            if not is_valid(field.ty, field.extract(number)):
                raise BitsError()
        return cls._from_raw(number)

    @classmethod
    def default(cls) -> "BitStruct":
        """Build the struct with every field set to its type's default."""
        number = 0
        for field in cls._layout().fields:
            number |= encode(field.ty, default_of(field.ty)) << field.offset
        return cls._from_raw(number)

    @property
    def value(self) -> UInt:
        """The whole struct as an unsigned integer of the struct's width."""
        return uint(self._layout().bits)(self._value)

    def _field(self, name: str) -> _Field:
        for field in self._layout().fields:
            if field.name == name:
                return field
        raise AttributeError(f"{type(self).__name__} has no field {name!r}")

    def _element(self, name: str, index: Any) -> tuple[_Field, Array, int, int]:
        field = self._field(name)
        if not isinstance(field.ty, Array):
            raise TypeError(f"field {name!r} is not an array")
        position = operator.index(index)
        if not 0 <= position < field.ty.length:
            raise IndexError(
                f"index {position} out of range for {name!r} of length {field.ty.length}"
            )
        size = bitsize_of(field.ty.element)
        return field, field.ty, field.offset + size * position, size

    def _splice(self, offset: int, size: int, bits: int) -> None:
        mask = ((1 << size) - 1) << offset
        self._value = (self._value & ~mask) | (bits << offset)

    def at(self, name: str, index: Any) -> Any:
        """Return one element of the array field ``name``."""
        _, array, offset, size = self._element(name, index)
        return decode(array.element, (self._value >> offset) & ((1 << size) - 1))

    def set_at(self, name: str, index: Any, item: Any) -> None:
        """Replace one element of the array field ``name``."""
        field, array, offset, size = self._element(name, index)
        if field.reserved:
            raise AttributeError(f"field {name!r} is reserved and cannot be set")
        self._splice(offset, size, encode(array.element, item))

    def __int__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if type(other) is type(self):
            return other._value == self._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self), self._value))

    def __repr__(self) -> str:
        layout = self._layout()
        if layout.is_tuple:
            inner = ", ".join(_show(getattr(self, f.name)) for f in layout.fields)
        else:
            inner = ", ".join(f"{f.name}={_show(getattr(self, f.name))}" for f in layout.fields)
        return f"{type(self).__name__}({inner})"

    def __format__(self, spec: str) -> str:
        if spec == "b":
            return "_".join(
                format(field.extract(self._value), f"0{field.size}b")
                for field in reversed(self._layout().fields)
            )
        if not spec:
            return repr(self)
        return format(self._value, spec)


def _make_property(field: _Field) -> property:
    def getter(self: BitStruct) -> Any:
        return decode(field.ty, field.extract(self._value))

    def setter(self: BitStruct, item: Any) -> None:
        self._splice(field.offset, field.size, encode(field.ty, item))

    return property(getter, None if field.reserved else setter, doc=f"Field `{field.name}`.")


def _build(
    name: str,
    items: list[tuple[str, Any]],
    bits: int,
    mode: Conversion,
    is_tuple: bool,
    namespace: dict[str, Any],
    bases: tuple[type, ...],
    module: str,
    qualname: Optional[str] = None,
) -> type[BitStruct]:
    if not items:
        raise ValueError("structs without fields are not supported")
    for field_name, ty in items:
        if isinstance(ty, str):
            raise TypeError(f"field `{field_name}` has a string annotation; use the type itself")

    names = list(_rename_special(field_name for field_name, _ in items))
    if len(set(names)) != len(names):
        raise ValueError("field names must be unique")
    forbidden = {"value"} | set(dir(BitStruct))
    for field_name in names:
        if field_name in forbidden:
            raise ValueError(f"field name `{field_name}` is not allowed")

    fields = []
    offset = 0
    for field_name, (_, ty) in zip(names, items):
        size = bitsize_of(ty)
        fields.append(_Field(field_name, ty, offset, size, _is_reserved(field_name)))
        offset += size
    if offset != bits:
        raise ValueError(f"struct size and declared bit size differ: {offset} != {bits}")

    if mode is Conversion.FROM_BITS:
        for field in fields:
            if not _is_filled(field.ty):
                raise TypeError(
                    f"field `{field.name}` does not fill its bitsize; "
                    "use Conversion.TRY_FROM_BITS"
                )

    layout = _Layout(bits, mode, tuple(fields), is_tuple)
    namespace = dict(namespace)
    namespace.update(
        __slots__=(),
        __module__=module,
        __qualname__=qualname or name,
        BITS=bits,
        MAX=(1 << bits) - 1,
        __bitstruct__=layout,
    )
    for field in fields:
        namespace[field.name] = _make_property(field)
    return type(name, bases, namespace)


def bitfield(bits: int, *, mode: Conversion = Conversion.FROM_BITS):
    """Turn a class whose annotations list field types into a ``bits``-wide struct.

    The first field occupies the least significant bits.  Fields named
    ``reserved`` or ``padding`` (optionally with a leading underscore and a
    number, to keep names distinct) become ``reserved_i``, ``reserved_ii``...
    """
    declared = validate_bitsize(bits, MAX_STRUCT_BIT_SIZE)
    conversion = Conversion(mode)

    def decorate(cls: type) -> type[BitStruct]:
        annotations = cls.__dict__.get("__annotations__", {})
        namespace = {
            key: item
            for key, item in cls.__dict__.items()
            if key not in _SKIPPED_ATTRIBUTES and key not in annotations
        }
        if issubclass(cls, BitStruct):
            bases = cls.__bases__
        else:
            bases = (BitStruct,) + tuple(b for b in cls.__bases__ if b is not object)
        return _build(
            cls.__name__,
            list(annotations.items()),
            declared,
            conversion,
            False,
            namespace,
            bases,
            cls.__module__,
            cls.__qualname__,
        )

    return decorate


def tuple_bitfield(
    name: str, bits: int, *args: Any, mode: Conversion = Conversion.FROM_BITS
) -> type[BitStruct]:
    """Create a struct with unnamed fields of types ``args``, accessed as ``val_0``, ``val_1``..."""
    declared = validate_bitsize(bits, MAX_STRUCT_BIT_SIZE)
    items = [(f"val_{index}", ty) for index, ty in enumerate(args)]
    namespace = {"__doc__": f"Bit struct of {declared} bits with unnamed fields."}
    return _build(name, items, declared, Conversion(mode), True, namespace, (BitStruct,), __name__)