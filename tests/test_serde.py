import enum
import re

import pytest

from bitsize.codec import Array
from bitsize.enums import FallbackValue, bitenum
from bitsize.serde import DeserializeError, deserialize, serialize
from bitsize.structs import bitfield, tuple_bitfield
from bitsize.uint import uint


@bitfield(17)
class BitsStruct:
    field1: uint(8)
    field2: uint(8)
    padding: uint(1)


BitsTupleStruct = tuple_bitfield("BitsTupleStruct", 16, uint(8), uint(8))


@bitenum(3, fallback="Other", fallback_value=True)
class Kind:
    A = enum.auto()
    B = enum.auto()
    Other = enum.auto()


@bitenum(2)
class Color:
    Red = enum.auto()
    Green = enum.auto()
    Blue = enum.auto()
    Black = enum.auto()


@bitfield(6)
class Packet:
    kind: Kind
    flag: bool
    reserved: uint(2)


@bitfield(8)
class Mixed:
    pair: (uint(2), bool)
    arr: Array(bool, 5)


@bitfield(8)
class Outer:
    color: Color
    inner: Packet


def test_serde_struct():
    bits = BitsStruct.from_bits(uint(17)(0b0_0000_0001_0010_0011))
    assert serialize(bits) == {"field1": 0b0010_0011, "field2": 0b0000_0001}
    assert deserialize(BitsStruct, {"field1": 0b0010_0011, "field2": 1}) == bits


def test_serde_struct_missing_field():
    with pytest.raises(DeserializeError, match=re.escape("missing field `field2`")):
        deserialize(BitsStruct, {"field1": 0b0010_0011})


def test_serde_struct_extra_field():
    data = {"field1": 0b0010_0011, "field2": 1, "field3": 0}
    with pytest.raises(
        DeserializeError,
        match=re.escape("unknown field `field3`, expected `field1` or `field2`"),
    ):
        deserialize(BitsStruct, data)


def test_padding_is_not_accepted_as_field():
    with pytest.raises(DeserializeError, match="unknown field `padding_i`"):
        deserialize(BitsStruct, {"field1": 1, "field2": 1, "padding_i": 0})


def test_serde_tuple_struct():
    bits = BitsTupleStruct.from_bits(0b0000_0001_0010_0011)
    assert serialize(bits) == [0b0010_0011, 0b0000_0001]
    assert deserialize(BitsTupleStruct, [0b0010_0011, 1]) == bits


def test_serde_tuple_struct_map():
    with pytest.raises(
        DeserializeError, match=re.escape('invalid type: string "val_0", expected u8')
    ):
        deserialize(BitsTupleStruct, ["val_0"])


def test_tuple_struct_rejects_mapping():
    with pytest.raises(
        DeserializeError, match=re.escape("invalid type: map, expected tuple struct BitsTupleStruct")
    ):
        deserialize(BitsTupleStruct, {"val_0": 1, "val_1": 2})


def test_named_struct_from_sequence():
    assert deserialize(BitsStruct, [3, 4]) == BitsStruct(uint(8)(3), uint(8)(4))


def test_sequence_too_short():
    with pytest.raises(
        DeserializeError, match=re.escape("invalid length 1, expected struct BitsStruct")
    ):
        deserialize(BitsStruct, [3])


def test_sequence_too_long():
    with pytest.raises(DeserializeError, match="expected fewer elements in sequence"):
        deserialize(BitsTupleStruct, [1, 2, 3])


def test_value_out_of_range():
    with pytest.raises(
        DeserializeError, match=re.escape("invalid value: integer `300`, expected u8")
    ):
        deserialize(BitsStruct, {"field1": 300, "field2": 0})


def test_enum_and_fallback_round_trip():
    packet = Packet(Kind.B, True)
    assert serialize(packet) == {"kind": "B", "flag": True}
    assert deserialize(Packet, serialize(packet)) == packet

    raw = Packet.from_bits(0b00_1_101)
    assert serialize(raw) == {"kind": {"Other": 5}, "flag": True}
    restored = deserialize(Packet, {"kind": {"Other": 5}, "flag": True})
    assert restored == raw
    assert restored.kind == FallbackValue(Kind.Other, 5)


def test_unknown_enum_variant():
    with pytest.raises(
        DeserializeError, match=re.escape("unknown variant `Z`, expected one of `A`, `B`, `Other`")
    ):
        deserialize(Packet, {"kind": "Z", "flag": False})


def test_tuple_and_array_fields():
    mixed = Mixed((uint(2)(2), True), [True, False, False, True, False])
    data = serialize(mixed)
    assert data == {"pair": [2, True], "arr": [True, False, False, True, False]}
    assert deserialize(Mixed, data) == mixed


def test_array_wrong_length():
    with pytest.raises(DeserializeError, match="invalid length 2, expected an array of length 5"):
        deserialize(Mixed, {"pair": [0, False], "arr": [True, False]})


def test_bool_type_checked():
    with pytest.raises(
        DeserializeError, match=re.escape("invalid type: integer `1`, expected a boolean")
    ):
        deserialize(Packet, {"kind": "A", "flag": 1})


def test_nested_struct_round_trip():
    outer = Outer(Color.Blue, Packet(Kind.A, True))
    data = serialize(outer)
    assert data == {"color": "Blue", "inner": {"kind": "A", "flag": True}}
    assert deserialize(Outer, data) == outer


def test_serialize_rejects_non_struct():
    with pytest.raises(TypeError):
        serialize(42)


def test_deserialize_rejects_scalar():
    with pytest.raises(DeserializeError, match="expected struct BitsStruct"):
        deserialize(BitsStruct, 5)