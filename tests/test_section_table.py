"""Tests for the section table walker, name lookup and extraction."""

import pytest

from elf_factory import FakeSection, build_elf

from elflens.core.errors import (
    BadEntrySizeError,
    BadStringTableError,
    BadStringTableIndexError,
    NoSectionTableError,
    NotFoundError,
    SectionError,
    SectionOutOfBoundsError,
    TableOutOfBoundsError,
)
from elflens.parsers.elf_header import parse_header
from elflens.parsers.section_table import (
    descriptor_size,
    extract_section,
    find_section_by_name,
    list_sections,
    read_name,
)


def _find(image, name=".text"):
    return find_section_by_name(image, parse_header(image), name)


# ─── Lookup ─────────────────────

class TestFindSection:
    def test_finds_text_elf64(self):
        image = build_elf([FakeSection(".text", b"\x90\x90", address=0x401000)])
        section = _find(image)
        assert section.name == ".text"
        assert section.index == 1
        assert section.file_offset == 0x40
        assert section.size == 2
        assert section.address == 0x401000

    def test_finds_text_elf32(self):
        image = build_elf([FakeSection(".text", b"\xc3", address=0x8048000)], bits=32)
        section = _find(image)
        assert section.file_offset == 52
        assert section.size == 1
        assert section.address == 0x8048000

    def test_finds_other_names(self):
        image = build_elf([
            FakeSection(".init", b"\x90"),
            FakeSection(".text", b"\xb8\x00\x00\x00\x00"),
        ])
        assert _find(image, ".init").index == 1
        assert _find(image, ".text").index == 2

    def test_first_match_wins(self):
        image = build_elf([
            FakeSection(".text", b"\x90", address=0x1000),
            FakeSection(".text", b"\xc3\xc3", address=0x2000),
        ])
        section = _find(image)
        assert section.index == 1
        assert section.address == 0x1000
        assert section.size == 1

    def test_prefix_is_not_a_match(self):
        image = build_elf([FakeSection(".text.startup", b"\x90")])
        with pytest.raises(NotFoundError):
            _find(image)

    def test_shorter_name_is_not_a_match(self):
        image = build_elf([FakeSection(".text", b"\x90")])
        with pytest.raises(NotFoundError):
            _find(image, ".tex")

    def test_non_ascii_name_is_not_found(self):
        image = build_elf([FakeSection(".text", b"\x90")])
        with pytest.raises(NotFoundError) as info:
            _find(image, ".t\u00ebxt")
        assert info.value.name == ".t\u00ebxt"

    def test_non_ascii_name_still_validates_table(self):
        with pytest.raises(NoSectionTableError):
            _find(build_elf(shoff=0), ".t\u00ebxt")

    def test_not_found_message(self):
        image = build_elf([FakeSection(".data", b"\x00")])
        with pytest.raises(NotFoundError) as info:
            _find(image)
        assert info.value.message == "No .text section found"
        assert info.value.code == "not_found"
        assert info.value.stage == "section"


# ─── Table validation ─────────────────────

class TestTableValidation:
    def test_no_section_table_offset(self):
        with pytest.raises(NoSectionTableError):
            _find(build_elf(shoff=0))

    def test_no_section_entries(self):
        with pytest.raises(NoSectionTableError):
            _find(build_elf(shnum=0))

    def test_string_table_index_out_of_range(self):
        with pytest.raises(BadStringTableIndexError) as info:
            _find(build_elf(shstrndx=3))
        assert info.value.count == 3

    def test_entry_size_too_small(self):
        with pytest.raises(BadEntrySizeError) as info:
            _find(build_elf(shentsize=32))
        assert info.value.required == 64

    def test_table_runs_past_end(self):
        image = build_elf()
        with pytest.raises(TableOutOfBoundsError):
            _find(image[:-1])

    def test_table_count_too_large(self):
        with pytest.raises(TableOutOfBoundsError):
            _find(build_elf(shnum=100, shstrndx=2))

    def test_name_offset_outside_string_table(self):
        image = build_elf([FakeSection(".text", b"\x90", name_offset=0x1000)])
        with pytest.raises(BadStringTableError):
            _find(image)

    def test_string_table_outside_image(self):
        image = build_elf(
            [FakeSection(".text", b"\x90"), FakeSection(".big", size=0x10000)],
            shstrndx=2,
        )
        with pytest.raises(BadStringTableError):
            _find(image)

    def test_errors_share_base(self):
        with pytest.raises(SectionError):
            _find(build_elf(shoff=0))


class TestReadName:
    def test_reads_name(self):
        assert read_name(b"\x00.text\x00.data\x00", 1) == b".text"
        assert read_name(b"\x00.text\x00.data\x00", 7) == b".data"

    def test_empty_name(self):
        assert read_name(b"\x00.text\x00", 0) == b""

    def test_unterminated(self):
        with pytest.raises(BadStringTableError):
            read_name(b"\x00.text", 1)

    def test_offset_past_end(self):
        with pytest.raises(BadStringTableError):
            read_name(b"\x00.text\x00", 7)


# ─── Listing ─────────────────────

class TestListSections:
    def test_lists_all_in_order(self):
        image = build_elf([FakeSection(".text", b"\x90"), FakeSection(".data", b"\x00", flags=0x3)])
        sections = list_sections(image, parse_header(image))
        assert [s.name for s in sections] == ["", ".text", ".data", ".shstrtab"]
        assert [s.index for s in sections] == [0, 1, 2, 3]

    def test_type_and_flags(self):
        image = build_elf([FakeSection(".text", b"\x90"), FakeSection(".data", b"\x00", flags=0x3)])
        null, text, data, strtab = list_sections(image, parse_header(image))
        assert null.type_name == "NULL"
        assert null.flags_text == "-"
        assert text.type_name == "PROGBITS"
        assert text.flags_text == "AX"
        assert data.flags_text == "WA"
        assert strtab.type_name == "STRTAB"

    def test_descriptor_sizes(self):
        assert descriptor_size(parse_header(build_elf()).file_class) == 64
        assert descriptor_size(parse_header(build_elf(bits=32)).file_class) == 40


# ─── Extraction ─────────────────────

class TestExtractSection:
    def test_extracts_bytes(self):
        code = b"\xb8\x2f\x00\x00\x00\x90"
        image = build_elf([FakeSection(".text", code)])
        view = extract_section(image, _find(image))
        assert bytes(view) == code

    def test_view_is_read_only(self):
        image = bytearray(build_elf([FakeSection(".text", b"\x90")]))
        view = extract_section(image, _find(image))
        assert view.readonly

    def test_empty_section(self):
        image = build_elf([FakeSection(".text", b"")])
        assert len(extract_section(image, _find(image))) == 0

    def test_size_past_end(self):
        image = build_elf([FakeSection(".text", b"\x90", size=0x1000)])
        with pytest.raises(SectionOutOfBoundsError) as info:
            extract_section(image, _find(image))
        assert info.value.size == 0x1000

    def test_offset_past_end(self):
        image = build_elf([FakeSection(".text", b"", offset=0x10000)])
        with pytest.raises(SectionOutOfBoundsError):
            extract_section(image, _find(image))

    def test_offset_plus_size_beyond_u64(self):
        image = build_elf([FakeSection(".text", b"\x90", offset=0xFFFFFFFFFFFFFFF0, size=0x20)])
        with pytest.raises(SectionOutOfBoundsError):
            extract_section(image, _find(image))
