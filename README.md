# bitsize

Bit-sized integers, enums and packed bitfield structs for Python.

`bitsize` lets you describe a hardware register, a wire-format header or any
other packed value field by field, and then read and write it as a single
integer. Fields are laid out starting at the least significant bit, so the
first declared field occupies the lowest bits.

It has no dependencies outside the standard library.

## Modules

- `bitsize.uint`
  - `uint(bits)` returns the unsigned integer type that is exactly `bits`
    wide (1 to 128), named `u<bits>`; `UInt` is their common base. A value
    outside the range raises `ValueError` instead of being truncated.
    Instances support `int()`, indexing, equality with other integers of the
    same width and with plain `int`, hashing and `format()`.
  - `BitsError` (a `ValueError`) is raised when a bit pattern does not
    describe a valid value.
  - `validate_bitsize(bits, limit)` and `enum_fills_bitsize(bits, count)`
    are the size checks used by the rest of the package.
- `bitsize.enums`
  - `bitenum(bits, *, mode=Conversion.FROM_BITS, fallback=None,
    fallback_value=False)` turns a class of variants into an `enum.Enum`
    that occupies `bits` bits (1 to 64). Variants are the public class
    attributes in order: an explicit integer, or `enum.auto()` for "previous
    plus one, starting at zero". An existing `enum.Enum` may be decorated too.
  - `Conversion.FROM_BITS` requires every bit pattern to map to a variant,
    either because the variants fill the width or through a `fallback`
    variant. `Conversion.TRY_FROM_BITS` is for enums with gaps; a fallback is
    not allowed there, and a warning is issued if the variants fill the width.
  - With `fallback_value=True` the fallback must be the last variant and keeps
    the raw bits: conversions return a `FallbackValue(variant, value)`.
  - `enum_from_bits(cls, raw)`, `enum_try_from_bits(cls, raw)`,
    `enum_to_bits(member)` and `enum_binary(member)` convert between members
    and bits; `enum_try_from_bits` raises `BitsError` when no variant matches.
- `bitsize.codec` describes field types and packs them: `bool`, `uint`
  types, bit enums, bit structs, tuples of field types and `Array(element,
  length)`. `bitsize_of`, `mask_of`, `encode`, `decode`, `is_valid` and
  `default_of` work on any of these. Tuples decode to tuples, arrays to
  lists. An enum's default is the member set as `__bitdefault__` on its class.
- `bitsize.structs`
  - `bitfield(bits, *, mode=Conversion.FROM_BITS)` turns an annotated class
    into a `BitStruct` of exactly `bits` bits (1 to 128); the field sizes must
    add up to `bits`. `tuple_bitfield(name, bits, *types, mode=...)` builds
    one with unnamed fields `val_0`, `val_1`, ...
  - Fields are properties: read `reg.header`, assign `reg.header = ...`.
    The whole value is `reg.value` (a `uint` of the struct's width) or
    `int(reg)`.
  - `BitStruct.from_bits(raw)` accepts any pattern and is only available for
    `FROM_BITS` structs, which may only hold fields whose every pattern is
    valid. `BitStruct.try_from_bits(raw)` checks every field and raises
    `BitsError` for an invalid one. `BitStruct.default()` sets every field to
    its type's default.
  - `at(name, index)` and `set_at(name, index, item)` read and write one
    element of an array field; an index outside the array raises
    `IndexError`.
  - `format(reg, "b")` prints the fields from most to least significant,
    zero-padded and separated by `_`; other format specs apply to the packed
    integer.
- `bitsize.serde`: `serialize(obj)` gives a dict (named fields) or a list
  (unnamed fields) of plain data; enum members become their variant name and
  a value-carrying fallback `{name: value}`. `deserialize(cls, data)` builds
  the struct back and raises `DeserializeError` for missing, unknown or
  mistyped fields.

## Example

```python
import enum

from bitsize.enums import bitenum, enum_from_bits, enum_to_bits
from bitsize.structs import bitfield
from bitsize.uint import uint

u4 = uint(4)
u7 = uint(7)


@bitenum(2, fallback="Reserved")
class Code:
    Success = enum.auto()
    Error = enum.auto()
    Reserved = enum.auto()


@bitfield(14)
class Register:
    header: u4
    body: u7
    last: bool
    code: Code


reg = Register(u4(0b1010), u7(0b0101010), True, Code.Error)
print(int(reg))            # the packed value
print(format(reg, "b"))    # 01_1_0101010_1010
print(reg)                 # Register(header=10, body=42, last=True, code=Code.Error)

reg.code = enum_from_bits(Code, 3)    # unmatched pattern -> Code.Reserved
print(enum_to_bits(reg.code))         # 2
```

Annotations must be the types themselves, so do not use
`from __future__ import annotations` in a module that declares bit structs.

Fields named `reserved` or `padding` (optionally with a leading underscore or
a trailing number) may appear more than once; they are renamed `reserved_i`,
`reserved_ii`, ..., are read-only, are left out of the constructor and start
at zero.

## Limits

Struct widths range from 1 to 128 bits, enum widths from 1 to 64 bits. An
enum may not declare more variants than its width can hold, and every
discriminant must fit the width and be unique. The package works on integers
in memory only; it does not read or write files, devices or memory-mapped
registers.