"""Tests for the bounds-checked field readers."""

import pytest

from elflens.core.errors import FieldReadError
from elflens.core.models import ByteOrder
from elflens.parsers.fields import read_fields, read_u8, read_u16, read_u32, read_u64


DATA = bytes(range(1, 17))


class TestScalarReaders:
    def test_u8(self):
        assert read_u8(DATA, 0) == 0x01
        assert read_u8(DATA, 15) == 0x10

    def test_u16_little_endian(self):
        assert read_u16(DATA, 0) == 0x0201

    def test_u16_big_endian(self):
        assert read_u16(DATA, 0, ByteOrder.BIG) == 0x0102

    def test_u32(self):
        assert read_u32(DATA, 4) == 0x08070605

    def test_u64(self):
        assert read_u64(DATA, 8) == 0x100F0E0D0C0B0A09

    def test_accepts_memoryview(self):
        assert read_u32(memoryview(DATA)[4:], 0) == 0x08070605

    def test_field_ending_at_buffer_end(self):
        assert read_u16(DATA, 14) == 0x100F


class TestBounds:
    @pytest.mark.parametrize("reader,offset", [
        (read_u16, 15),
        (read_u32, 13),
        (read_u64, 9),
    ])
    def test_read_past_end_raises(self, reader, offset):
        with pytest.raises(FieldReadError) as info:
            reader(DATA, offset)
        assert info.value.available == len(DATA)
        assert info.value.code == "field_out_of_bounds"

    def test_u8_past_end(self):
        with pytest.raises(FieldReadError):
            read_u8(DATA, 16)

    def test_negative_offset(self):
        with pytest.raises(FieldReadError):
            read_u32(DATA, -1)


class TestReadFields:
    def test_unpacks_record(self):
        assert read_fields(DATA, 0, "HBB") == (0x0201, 0x03, 0x04)

    def test_record_too_long(self):
        with pytest.raises(FieldReadError) as info:
            read_fields(DATA, 8, "QQ")
        assert info.value.width == 16
