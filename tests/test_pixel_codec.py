"""Tests for value validation, field descriptors and packing helpers."""

import numpy as np
import pytest

from place_server.pixel_codec import (
    FieldDescriptor,
    encode_field_descriptor,
    max_value,
    pack_fields,
    read_field,
    unpack_fields,
    validate_value,
    value_violations,
    write_field,
    write_fields,
)
from place_server.validation import ConfigValidationError, InvalidValueError


@pytest.mark.parametrize("bit_depth", [1, 4, 8])
def test_validate_value_accepts_exactly_the_bit_range(bit_depth):
    limit = (1 << bit_depth) - 1
    for v in range(-2, limit + 3):
        if 0 <= v <= limit:
            validate_value(v, bit_depth)
        else:
            with pytest.raises(InvalidValueError):
                validate_value(v, bit_depth)


def test_value_violations_message():
    assert value_violations(15, 4) == []
    errors = value_violations(20, 4)
    assert errors == ["value must be between 0 and 15, got 20"]


def test_unsupported_bit_depth():
    with pytest.raises(ConfigValidationError):
        max_value(0)
    with pytest.raises(ConfigValidationError):
        encode_field_descriptor(33, 0)


def test_field_descriptor():
    descriptor = encode_field_descriptor(4, 3)
    assert descriptor == FieldDescriptor(bit_depth=4, slot=3)
    assert descriptor.type_code == "u4"
    assert descriptor.bit_offset == 12
    assert descriptor.slot_offset == "#3"

    with pytest.raises(ValueError):
        encode_field_descriptor(4, -1)


def test_write_field_uses_big_endian_bit_order():
    buffer = bytearray()
    # Slot 0 is the high nibble of byte 0
    write_field(buffer, encode_field_descriptor(4, 0), 0xA)
    assert bytes(buffer) == b"\xa0"

    write_field(buffer, encode_field_descriptor(4, 1), 0x5)
    assert bytes(buffer) == b"\xa5"

    # Writing past the end grows the buffer with zero bytes
    write_field(buffer, encode_field_descriptor(4, 5), 0xF)
    assert bytes(buffer) == b"\xa5\x00\x0f"

    # Overwrite clears the old bits
    write_field(buffer, encode_field_descriptor(4, 0), 0x1)
    assert bytes(buffer) == b"\x15\x00\x0f"


def test_write_field_unaligned_width():
    buffer = bytearray()
    write_field(buffer, encode_field_descriptor(3, 1), 0b101)
    # bits 3..5 of the buffer -> 0b000_101_00
    assert bytes(buffer) == bytes([0b00010100])
    assert read_field(buffer, encode_field_descriptor(3, 1)) == 0b101
    assert read_field(buffer, encode_field_descriptor(3, 0)) == 0


def test_write_field_rejects_invalid_value():
    buffer = bytearray(b"\x00")
    with pytest.raises(InvalidValueError):
        write_field(buffer, encode_field_descriptor(4, 0), 16)
    assert bytes(buffer) == b"\x00"


def test_read_field_past_end_is_zero():
    assert read_field(b"", encode_field_descriptor(4, 10)) == 0


def test_pack_and_unpack_fields():
    packed = pack_fields([1, 2, 3, 15, 0], 4)
    assert packed == b"\x12\x3f\x00"

    values = unpack_fields(packed, 4, 5)
    assert values.tolist() == [1, 2, 3, 15, 0]

    # Short data is zero-filled
    assert unpack_fields(b"\x9f", 4, 4).tolist() == [9, 15, 0, 0]
    assert unpack_fields(b"", 4, 0).size == 0


def test_pack_fields_matches_write_field():
    rng = np.random.default_rng(0)
    values = rng.integers(0, 32, size=37)
    buffer = bytearray()
    for slot, v in enumerate(values):
        write_field(buffer, encode_field_descriptor(5, slot), int(v))
    assert pack_fields(values, 5) == bytes(buffer)


def test_pack_fields_rejects_out_of_range():
    with pytest.raises(InvalidValueError):
        pack_fields([0, 16], 4)
    with pytest.raises(InvalidValueError):
        pack_fields([-1], 4)


def test_write_fields_matches_write_field():
    rng = np.random.default_rng(1)
    slots = rng.permutation(40)[:25]
    values = rng.integers(0, 8, size=25)

    expected = bytearray(b"\x5a" * 3)
    for slot, v in zip(slots, values):
        write_field(expected, encode_field_descriptor(3, int(slot)), int(v))

    actual = bytearray(b"\x5a" * 3)
    write_fields(actual, 3, slots, values)
    assert bytes(actual) == bytes(expected)


def test_write_fields_only_touches_its_span():
    buffer = bytearray(b"\xff\xff\xff\xff")
    # Slots 2 and 3 share byte 1
    write_fields(buffer, 4, [2, 3], [0x1, 0x2])
    assert bytes(buffer) == b"\xff\x12\xff\xff"

    # Past the end grows the buffer with zero bytes
    write_fields(buffer, 4, [11], [0x7])
    assert bytes(buffer) == b"\xff\x12\xff\xff\x00\x07"

    write_fields(buffer, 4, [], [])
    assert len(buffer) == 6


def test_write_fields_rejects_bad_input():
    buffer = bytearray(b"\x00")
    with pytest.raises(InvalidValueError):
        write_fields(buffer, 4, [0, 1], [3, 16])
    with pytest.raises(ValueError):
        write_fields(buffer, 4, [0, 1], [3])
    with pytest.raises(ValueError):
        write_fields(buffer, 4, [-1], [3])
    assert bytes(buffer) == b"\x00"
