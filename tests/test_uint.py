import pytest

from bitsize.uint import (
    MAX_ENUM_BIT_SIZE,
    MAX_STRUCT_BIT_SIZE,
    BitsError,
    UInt,
    enum_fills_bitsize,
    uint,
    validate_bitsize,
)


def test_bits_error_message():
    assert str(BitsError()) == "unable to parse bit pattern"
    with pytest.raises(ValueError):
        raise BitsError()


def test_uint_type_is_cached_and_named():
    assert uint(4) is uint(4)
    assert uint(4).__name__ == "u4"
    assert uint(4).BITS == 4


@pytest.mark.parametrize("bits", [1, 2, 7, 11, 32, 64, 127, 128])
def test_max_round_trips(bits):
    cls = uint(bits)
    assert int(cls(cls.MAX)) == cls.MAX
    assert int(cls(0)) == 0
    with pytest.raises(ValueError):
        cls(cls.MAX + 1)


@pytest.mark.parametrize("bits", [1, 5, 16, 128])
def test_max_has_all_bits_set(bits):
    cls = uint(bits)
    assert cls.MAX.bit_length() == bits
    assert (cls.MAX + 1).bit_count() == 1


def test_u1_max_is_one():
    assert uint(1).MAX == 1


def test_negative_rejected():
    with pytest.raises(ValueError):
        uint(8)(-1)


def test_non_integer_rejected():
    with pytest.raises(TypeError):
        uint(8)(1.5)


def test_base_class_cannot_be_instantiated():
    with pytest.raises(TypeError):
        UInt(0)


def test_equality_same_width():
    u2 = uint(2)
    assert u2(1) == u2(1)
    assert not (u2(1) == u2(2))
    assert uint(1)(0) == uint(1)(0)


def test_equality_different_width_is_false():
    assert not (uint(1)(1) == uint(2)(1))


def test_equality_with_int_and_hash():
    value = uint(8)(200)
    assert value == 200
    assert hash(value) == hash(200)
    assert len({uint(8)(3), uint(8)(3)}) == 1


def test_index_usable_in_slicing_and_bin():
    value = uint(3)(2)
    assert [10, 20, 30][value] == 30
    assert bin(value) == bin(2)


def test_construct_from_other_uint():
    assert uint(8)(uint(4)(9)) == uint(8)(9)


def test_immutable():
    value = uint(4)(3)
    with pytest.raises(AttributeError):
        value.anything = 1
    assert int(value) == 3
    assert not hasattr(value, "anything")


def test_repr_is_plain_number():
    assert repr(uint(2)(3)) == "3"
    assert str(uint(16)(32904)) == "32904"


def test_binary_format():
    assert format(uint(10)(0b1100110011), "b") == "1100110011"
    assert format(uint(2)(0), "02b") == "00"


def test_validate_bitsize_limits():
    assert validate_bitsize(1, MAX_STRUCT_BIT_SIZE) == 1
    assert validate_bitsize(128, MAX_STRUCT_BIT_SIZE) == 128
    with pytest.raises(ValueError):
        validate_bitsize(0, MAX_STRUCT_BIT_SIZE)
    with pytest.raises(ValueError):
        validate_bitsize(-1, MAX_STRUCT_BIT_SIZE)
    with pytest.raises(ValueError):
        validate_bitsize(129, MAX_STRUCT_BIT_SIZE)


def test_validate_bitsize_enum_limit():
    assert validate_bitsize(64, MAX_ENUM_BIT_SIZE) == 64
    with pytest.raises(ValueError):
        validate_bitsize(65, MAX_ENUM_BIT_SIZE)


@pytest.mark.parametrize("bad", ["12", 1.0, None, True])
def test_validate_bitsize_not_a_number(bad):
    with pytest.raises(TypeError):
        validate_bitsize(bad, MAX_STRUCT_BIT_SIZE)


def test_uint_rejects_invalid_widths():
    with pytest.raises(ValueError):
        uint(0)
    with pytest.raises(ValueError):
        uint(129)


def test_enum_fills_bitsize():
    assert enum_fills_bitsize(1, 2) is True
    assert enum_fills_bitsize(2, 4) is True
    assert enum_fills_bitsize(2, 3) is False
    assert enum_fills_bitsize(32, 1) is False


def test_enum_overflowing_bitsize():
    with pytest.raises(ValueError):
        enum_fills_bitsize(1, 3)
    with pytest.raises(ValueError):
        enum_fills_bitsize(2, 5)