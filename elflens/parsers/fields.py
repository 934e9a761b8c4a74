"""
Bounds-Checked Field Readers
=============================

Fixed-width integer readers over an immutable byte buffer.  Each reader
checks that the whole field lies inside the buffer before unpacking with
:func:`struct.unpack_from`, so a malformed offset surfaces as a
:class:`~elflens.core.errors.FieldReadError` instead of a short read.

Byte order is passed explicitly as a :class:`~elflens.core.models.ByteOrder`.
"""

from __future__ import annotations

import struct
from typing import Union

from elflens.core.errors import FieldReadError
from elflens.core.models import ByteOrder

Buffer = Union[bytes, bytearray, memoryview]

_PREFIX: dict[ByteOrder, str] = {
    ByteOrder.LITTLE: "<",
    ByteOrder.BIG: ">",
}


def _check(data: Buffer, offset: int, width: int) -> None:
    if offset < 0 or offset + width > len(data):
        raise FieldReadError(offset, width, len(data))


def read_u8(data: Buffer, offset: int) -> int:
    """Read an unsigned byte at *offset*."""
    _check(data, offset, 1)
    return data[offset]


def read_u16(data: Buffer, offset: int, order: ByteOrder = ByteOrder.LITTLE) -> int:
    """Read an unsigned 16-bit integer at *offset*."""
    _check(data, offset, 2)
    return struct.unpack_from(f"{_PREFIX[order]}H", data, offset)[0]


def read_u32(data: Buffer, offset: int, order: ByteOrder = ByteOrder.LITTLE) -> int:
    """Read an unsigned 32-bit integer at *offset*."""
    _check(data, offset, 4)
    return struct.unpack_from(f"{_PREFIX[order]}I", data, offset)[0]


def read_u64(data: Buffer, offset: int, order: ByteOrder = ByteOrder.LITTLE) -> int:
    """Read an unsigned 64-bit integer at *offset*."""
    _check(data, offset, 8)
    return struct.unpack_from(f"{_PREFIX[order]}Q", data, offset)[0]


def read_fields(
    data: Buffer,
    offset: int,
    fmt: str,
    order: ByteOrder = ByteOrder.LITTLE,
) -> tuple[int, ...]:
    """Unpack a packed record described by the struct format *fmt*.

    Args:
        data: Source buffer.
        offset: Start of the record.
        fmt: :mod:`struct` format characters without a byte-order prefix.
        order: Byte order of the multi-byte fields.

    Returns:
        The unpacked field values in declaration order.
    """
    full = f"{_PREFIX[order]}{fmt}"
    _check(data, offset, struct.calcsize(full))
    return struct.unpack_from(full, data, offset)
