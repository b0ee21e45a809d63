"""Turning bit structs into plain data (dicts, lists, ints) and back.

Named structs become dicts keyed by field name; reserved and padding fields
are left out.  Structs with unnamed fields become lists.  Nested values follow
their field type: integers become ``int``, ``bool`` stays ``bool``, tuples
and arrays become lists, enum members become their variant name and a
value-carrying fallback becomes ``{name: value}``.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Any

from bitsize.codec import Array, bitsize_of, decode
from bitsize.enums import FallbackValue
from bitsize.structs import BitStruct
from bitsize.uint import UInt

__all__ = ["DeserializeError", "deserialize", "serialize"]


class DeserializeError(ValueError):
    """Raised when plain data does not describe a valid bit struct."""


def _layout_of(cls: Any) -> Any:
    if not (isinstance(cls, type) and issubclass(cls, BitStruct)):
        raise TypeError(f"{cls!r} is not a bit struct")
    return cls._layout()


def _visible_fields(layout: Any) -> tuple[Any, ...]:
    if layout.is_tuple:
        return layout.fields
    return tuple(field for field in layout.fields if not field.reserved)


def _is_bitenum(ty: Any) -> bool:
    return isinstance(ty, enum.EnumMeta) and hasattr(ty, "__bitenum__")


def _is_sequence(data: Any) -> bool:
    return isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray))


def _describe(data: Any) -> str:
    if isinstance(data, bool):
        return f"boolean `{str(data).lower()}`"
    if isinstance(data, int):
        return f"integer `{data}`"
    if isinstance(data, float):
        return f"floating point `{data}`"
    if isinstance(data, str):
        return f'string "{data}"'
    if isinstance(data, (bytes, bytearray)):
        return "byte array"
    if data is None:
        return "null"
    if isinstance(data, Mapping):
        return "map"
    if _is_sequence(data):
        return "sequence"
    return type(data).__name__


def _one_of(names: Sequence[str], kind: str) -> str:
    quoted = [f"`{name}`" for name in names]
    if not quoted:
        return f"there are no {kind}"
    if len(quoted) == 1:
        return f"expected {quoted[0]}"
    if len(quoted) == 2:
        return f"expected {quoted[0]} or {quoted[1]}"
    return "expected one of " + ", ".join(quoted)


def _invalid_type(data: Any, expected: str) -> DeserializeError:
    return DeserializeError(f"invalid type: {_describe(data)}, expected {expected}")


def _struct_expecting(cls: type, layout: Any) -> str:
    kind = "tuple struct" if layout.is_tuple else "struct"
    return f"{kind} {cls.__name__}"


def _serialize_value(ty: Any, value: Any) -> Any:
    if isinstance(ty, tuple):
        return [_serialize_value(elem_ty, item) for elem_ty, item in zip(ty, value)]
    if isinstance(ty, Array):
        return [_serialize_value(ty.element, item) for item in value]
    if ty is bool:
        return bool(value)
    if isinstance(value, FallbackValue):
        return {value.variant.name: int(value.value)}
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, BitStruct):
        return serialize(value)
    return int(value)


def serialize(obj: BitStruct) -> Any:
    """Return ``obj`` as plain data: a dict for named structs, a list otherwise."""
    if not isinstance(obj, BitStruct):
        raise TypeError(f"expected a bit struct, got {type(obj).__name__}")
    layout = _layout_of(type(obj))
    fields = _visible_fields(layout)
    if layout.is_tuple:
        return [_serialize_value(field.ty, getattr(obj, field.name)) for field in fields]
    return {field.name: _serialize_value(field.ty, getattr(obj, field.name)) for field in fields}


def _deserialize_items(ty_list: Sequence[Any], data: Any, expected: str) -> list[Any]:
    if not _is_sequence(data):
        raise _invalid_type(data, expected)
    items = list(data)
    if len(items) != len(ty_list):
        raise DeserializeError(f"invalid length {len(items)}, expected {expected}")
    return [_deserialize_value(elem_ty, item) for elem_ty, item in zip(ty_list, items)]


def _deserialize_enum(ty: Any, data: Any) -> Any:
    spec = ty.__bitenum__
    names = list(ty.__members__)
    expected = f"variant of {ty.__name__}"
    if isinstance(data, str):
        if data not in ty.__members__:
            raise DeserializeError(f"unknown variant `{data}`, {_one_of(names, 'variants')}")
        member = ty.__members__[data]
        if spec.fallback_value and member is spec.fallback:
            raise _invalid_type(data, f"a value for variant `{data}`")
        return member
    if isinstance(data, Mapping) and len(data) == 1:
        ((name, payload),) = data.items()
        if not isinstance(name, str):
            raise _invalid_type(name, expected)
        if name not in ty.__members__:
            raise DeserializeError(f"unknown variant `{name}`, {_one_of(names, 'variants')}")
        member = ty.__members__[name]
        if not (spec.fallback_value and member is spec.fallback):
            raise _invalid_type(data, f"unit variant {ty.__name__}::{name}")
        number = _deserialize_int(payload, spec.bits, f"u{spec.bits}")
        return FallbackValue(member, number)
    raise _invalid_type(data, expected)


def _deserialize_int(data: Any, bits: int, expected: str) -> int:
    if isinstance(data, bool) or not isinstance(data, int):
        raise _invalid_type(data, expected)
    if not 0 <= data < (1 << bits):
        raise DeserializeError(f"invalid value: integer `{data}`, expected {expected}")
    return data


def _deserialize_value(ty: Any, data: Any) -> Any:
    if isinstance(ty, tuple):
        return tuple(_deserialize_items(ty, data, f"a tuple of size {len(ty)}"))
    if isinstance(ty, Array):
        return _deserialize_items(
            [ty.element] * ty.length, data, f"an array of length {ty.length}"
        )
    if ty is bool:
        if not isinstance(data, bool):
            raise _invalid_type(data, "a boolean")
        return data
    if isinstance(ty, type) and issubclass(ty, UInt):
        return ty(_deserialize_int(data, ty.BITS, ty.__name__))
    if _is_bitenum(ty):
        return _deserialize_enum(ty, data)
    if isinstance(ty, type) and issubclass(ty, BitStruct):
        return deserialize(ty, data)
    bits = bitsize_of(ty)
    return decode(ty, _deserialize_int(data, bits, ty.__name__))


def _visit_seq(fields: Sequence[Any], data: Any, expecting: str) -> list[Any]:
    items = list(data)
    values = []
    for index, field in enumerate(fields):
        if index >= len(items):
            raise DeserializeError(f"invalid length {index}, expected {expecting}")
        values.append(_deserialize_value(field.ty, items[index]))
    if len(items) > len(fields):
        raise DeserializeError(
            f"invalid length {len(items)}, expected fewer elements in sequence"
        )
    return values


def _visit_map(fields: Sequence[Any], data: Mapping[Any, Any]) -> dict[str, Any]:
    by_name = {field.name: field for field in fields}
    names = list(by_name)
    values: dict[str, Any] = {}
    for key, item in data.items():
        if not isinstance(key, str):
            raise _invalid_type(key, "field identifier")
        if key not in by_name:
            raise DeserializeError(f"unknown field `{key}`, {_one_of(names, 'fields')}")
        values[key] = _deserialize_value(by_name[key].ty, item)
    for name in names:
        if name not in values:
            raise DeserializeError(f"missing field `{name}`")
    return values


def deserialize(cls: type[BitStruct], data: Any) -> BitStruct:
    """Build a ``cls`` struct from plain data produced by :func:`serialize`.

    Named structs accept a mapping or a sequence in field order; structs with
    unnamed fields accept a sequence only.
    """
    layout = _layout_of(cls)
    fields = _visible_fields(layout)
    expecting = _struct_expecting(cls, layout)
    if isinstance(data, Mapping):
        if layout.is_tuple:
            raise _invalid_type(data, expecting)
        return cls(**_visit_map(fields, data))
    if _is_sequence(data):
        values = _visit_seq(fields, data, expecting)
        return cls(*values)
    raise _invalid_type(data, expecting)