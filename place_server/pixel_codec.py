"""
Pure Pixel Encoding Logic

Keeps pixel values and field widths consistent before any mutation reaches
the store, and provides the packing helpers used to build and decode packed
buffers locally.

Bit order is big-endian within the buffer: bit 0 of the buffer is the most
significant bit of byte 0, and a field's most significant bit comes first.
This matches the Redis BITFIELD command.
"""

from typing import Iterable, List, NamedTuple, Sequence

import numpy as np

from .bit_address import bit_position
from .validation import InvalidValueError, validate_bit_depth


class FieldDescriptor(NamedTuple):
    """An unsigned ``bit_depth``-bit field at the ``slot``-th field slot."""

    bit_depth: int
    slot: int

    @property
    def type_code(self) -> str:
        """Field type in BITFIELD notation, e.g. ``u4``."""
        return f"u{self.bit_depth}"

    @property
    def bit_offset(self) -> int:
        return bit_position(self.slot, self.bit_depth)

    @property
    def slot_offset(self) -> str:
        """Offset in BITFIELD ``#N`` form, multiplied by the width server-side."""
        return f"#{self.slot}"


def max_value(bit_depth: int) -> int:
    validate_bit_depth(bit_depth)
    return (1 << bit_depth) - 1


def value_violations(value: int, bit_depth: int) -> List[str]:
    limit = max_value(bit_depth)
    if value < 0 or value > limit:
        return [f"value must be between 0 and {limit}, got {value}"]
    return []


def validate_value(value: int, bit_depth: int) -> None:
    """
    Check that a value fits in an unsigned field of ``bit_depth`` bits.

    Raises:
        InvalidValueError: If value < 0 or value > 2**bit_depth - 1
    """
    errors = value_violations(value, bit_depth)
    if errors:
        raise InvalidValueError(errors=errors)


def encode_field_descriptor(bit_depth: int, slot: int) -> FieldDescriptor:
    validate_bit_depth(bit_depth)
    if slot < 0:
        raise ValueError(f"Field slot must be non-negative, got {slot}")
    return FieldDescriptor(bit_depth=bit_depth, slot=slot)


def write_field(buffer: bytearray, descriptor: FieldDescriptor, value: int) -> None:
    """
    Write a field into a local packed buffer, in place.

    The buffer grows with zero bytes when the field lies past its end, the
    same way a store creates and extends a key on write.
    """
    validate_value(value, descriptor.bit_depth)

    start = descriptor.bit_offset
    width = descriptor.bit_depth
    needed = (start + width + 7) // 8
    if len(buffer) < needed:
        buffer.extend(b"\x00" * (needed - len(buffer)))

    for i in range(width):
        pos = start + i
        mask = 0x80 >> (pos % 8)
        if (value >> (width - 1 - i)) & 1:
            buffer[pos // 8] |= mask
        else:
            buffer[pos // 8] &= ~mask & 0xFF


def write_fields(
    buffer: bytearray, bit_depth: int, slots: Sequence[int], values: Sequence[int]
) -> None:
    """
    Write many fields of one width into a local packed buffer, in place.

    Only the byte span covering the written slots is unpacked and repacked.
    The buffer grows with zero bytes like write_field.

    Raises:
        InvalidValueError: If any value does not fit in bit_depth bits
    """
    limit = max_value(bit_depth)
    slot_arr = np.asarray(slots, dtype=np.int64)
    value_arr = np.asarray(values, dtype=np.int64)
    if slot_arr.size == 0:
        return
    if slot_arr.shape != value_arr.shape:
        raise ValueError(
            f"Got {slot_arr.size} slots but {value_arr.size} values"
        )
    if slot_arr.min() < 0:
        raise ValueError(f"Field slot must be non-negative, got {int(slot_arr.min())}")
    if value_arr.min() < 0 or value_arr.max() > limit:
        raise InvalidValueError(
            f"values must be between 0 and {limit}, got range "
            f"[{int(value_arr.min())}, {int(value_arr.max())}]"
        )

    start_byte = int(slot_arr.min()) * bit_depth // 8
    end_byte = ((int(slot_arr.max()) + 1) * bit_depth + 7) // 8
    if len(buffer) < end_byte:
        buffer.extend(b"\x00" * (end_byte - len(buffer)))

    bits = np.unpackbits(
        np.frombuffer(bytes(buffer[start_byte:end_byte]), dtype=np.uint8), bitorder="big"
    )
    shifts = np.arange(bit_depth - 1, -1, -1, dtype=np.uint64)
    field_bits = (value_arr.astype(np.uint64)[:, None] >> shifts) & np.uint64(1)
    positions = (
        slot_arr[:, None] * bit_depth + np.arange(bit_depth, dtype=np.int64)
    ) - start_byte * 8
    bits[positions.ravel()] = field_bits.astype(np.uint8).ravel()

    buffer[start_byte:end_byte] = np.packbits(bits, bitorder="big").tobytes()


def read_field(buffer: bytes, descriptor: FieldDescriptor) -> int:
    """Read a field from a local packed buffer; bits past the end read as 0."""
    start = descriptor.bit_offset
    value = 0
    for i in range(descriptor.bit_depth):
        pos = start + i
        bit = 0
        if pos // 8 < len(buffer):
            bit = (buffer[pos // 8] >> (7 - pos % 8)) & 1
        value = (value << 1) | bit
    return value


def _field_weights(bit_depth: int) -> np.ndarray:
    return np.left_shift(
        np.uint64(1), np.arange(bit_depth - 1, -1, -1, dtype=np.uint64)
    )


def pack_fields(values: Iterable[int], bit_depth: int) -> bytes:
    """
    Pack a sequence of field values into a buffer.

    Args:
        values: Field values in slot order
        bit_depth: Width of each field in bits

    Returns:
        bytes: ceil(len(values) * bit_depth / 8) bytes, trailing bits zero

    Raises:
        InvalidValueError: If any value does not fit in bit_depth bits
    """
    limit = max_value(bit_depth)
    arr = np.asarray(list(values), dtype=np.int64)
    if arr.size and (arr.min() < 0 or arr.max() > limit):
        raise InvalidValueError(
            f"values must be between 0 and {limit}, got range "
            f"[{int(arr.min())}, {int(arr.max())}]"
        )

    shifts = np.arange(bit_depth - 1, -1, -1, dtype=np.uint64)
    bits = (arr.astype(np.uint64)[:, None] >> shifts) & np.uint64(1)
    return np.packbits(bits.astype(np.uint8).ravel(), bitorder="big").tobytes()


def unpack_fields(data: bytes, bit_depth: int, count: int) -> np.ndarray:
    """
    Decode the first ``count`` fields of a packed buffer.

    Short buffers are zero-filled, so fields never written read as 0.

    Returns:
        np.ndarray: int64 array of length ``count``
    """
    validate_bit_depth(bit_depth)
    needed = count * bit_depth
    bits = np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8), bitorder="big")
    if bits.size < needed:
        bits = np.concatenate([bits, np.zeros(needed - bits.size, dtype=np.uint8)])

    fields = bits[:needed].reshape(count, bit_depth).astype(np.uint64)
    return (fields * _field_weights(bit_depth)).sum(axis=1).astype(np.int64)
