"""Tests for the ELF file header interpreter."""

import pytest
from pydantic import ValidationError

from elf_factory import build_elf

from elflens.core.errors import (
    BadMagicError,
    HeaderError,
    TooShortError,
    UnknownClassError,
    UnsupportedByteOrderError,
)
from elflens.core.models import ByteOrder, FileClass
from elflens.parsers.elf_header import header_size, is_elf, parse_header


class TestValidHeaders:
    def test_elf64(self):
        image = build_elf(entry=0x401000)
        header = parse_header(image)
        assert header.file_class is FileClass.ELF64
        assert header.bits == 64
        assert header.byte_order is ByteOrder.LITTLE
        assert header.entry_address == 0x401000
        assert header.machine == 62
        assert header.machine_name == "x86_64"
        assert header.type_name.startswith("EXEC")
        assert header.section_entry_size == 64
        assert header.section_count == 3
        assert header.section_string_table_index == 2
        assert header.ident[:4] == (0x7F, ord("E"), ord("L"), ord("F"))

    def test_elf32(self):
        image = build_elf(bits=32, entry=0x8048000)
        header = parse_header(image)
        assert header.file_class is FileClass.ELF32
        assert header.entry_address == 0x8048000
        assert header.machine_name == "x86"
        assert header.section_entry_size == 40
        assert header.header_size == 52

    def test_header_is_immutable(self):
        header = parse_header(build_elf())
        with pytest.raises(ValidationError):
            header.entry_address = 0

    def test_unknown_machine_name(self):
        image = bytearray(build_elf())
        image[18:20] = (0x1234).to_bytes(2, "little")
        assert parse_header(bytes(image)).machine_name == "unknown(4660)"

    def test_header_sizes(self):
        assert header_size(FileClass.ELF32) == 52
        assert header_size(FileClass.ELF64) == 64


class TestRejectedHeaders:
    def test_empty_image(self):
        with pytest.raises(TooShortError):
            parse_header(b"")

    def test_shorter_than_magic(self):
        with pytest.raises(TooShortError) as info:
            parse_header(b"\x7fEL")
        assert info.value.required == 4

    def test_magic_only(self):
        with pytest.raises(TooShortError) as info:
            parse_header(b"\x7fELF")
        assert info.value.required == 5

    def test_bad_magic(self):
        with pytest.raises(BadMagicError) as info:
            parse_header(b"MZ\x90\x00" + b"\x00" * 60)
        assert info.value.code == "bad_magic"
        assert info.value.stage == "header"

    def test_unknown_class(self):
        with pytest.raises(UnknownClassError) as info:
            parse_header(build_elf(elf_class=3))
        assert info.value.value == 3

    def test_truncated_elf64_header(self):
        with pytest.raises(TooShortError) as info:
            parse_header(build_elf()[:40])
        assert info.value.required == 64

    def test_truncated_elf32_header(self):
        with pytest.raises(TooShortError) as info:
            parse_header(build_elf(bits=32)[:51])
        assert info.value.required == 52

    def test_big_endian_rejected(self):
        with pytest.raises(UnsupportedByteOrderError) as info:
            parse_header(build_elf(data_encoding=2))
        assert "big endian" in info.value.message

    def test_invalid_encoding_rejected(self):
        with pytest.raises(UnsupportedByteOrderError):
            parse_header(build_elf(data_encoding=0))

    def test_all_header_errors_share_base(self):
        with pytest.raises(HeaderError):
            parse_header(b"garbage!")


class TestIsElf:
    def test_detects_magic(self):
        assert is_elf(build_elf())

    def test_rejects_other(self):
        assert not is_elf(b"\x7fEL")
        assert not is_elf(b"PK\x03\x04")
