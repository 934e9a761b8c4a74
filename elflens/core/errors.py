"""
ElfLens Error Taxonomy
=======================

Every failure the pipeline can report is an :class:`ElfLensError`
subclass carrying a stable machine-readable ``code`` and the pipeline
``stage`` that raised it.  All of them are recoverable: the engine
catches them per input, records them on the result, and moves on.

Hierarchy::

    ElfLensError
      HeaderError            -- stage "header"
      SectionError           -- stage "section"
      DecodeError            -- stage "decode"
      FieldReadError         -- stage "read"
"""

from __future__ import annotations


class ElfLensError(Exception):
    """Base class for all ElfLens pipeline failures."""

    code: str = "error"
    stage: str = "pipeline"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

class FieldReadError(ElfLensError):
    """A fixed-width field read would run past the end of the buffer."""

    code = "field_out_of_bounds"
    stage = "read"

    def __init__(self, offset: int, width: int, available: int) -> None:
        super().__init__(
            f"Cannot read {width} byte(s) at offset 0x{offset:x}: "
            f"buffer holds {available} byte(s)"
        )
        self.offset = offset
        self.width = width
        self.available = available


# ---------------------------------------------------------------------------
# Header Interpreter
# ---------------------------------------------------------------------------

class HeaderError(ElfLensError):
    """The ELF file header could not be interpreted."""

    stage = "header"


class TooShortError(HeaderError):
    code = "too_short"

    def __init__(self, length: int, required: int) -> None:
        super().__init__(
            f"Image is {length} byte(s) long, at least {required} required"
        )
        self.length = length
        self.required = required


class BadMagicError(HeaderError):
    code = "bad_magic"

    def __init__(self, found: bytes) -> None:
        super().__init__(f"Not an ELF file (magic {found.hex(' ')})")
        self.found = found


class UnknownClassError(HeaderError):
    code = "unknown_class"

    def __init__(self, value: int) -> None:
        super().__init__(f"Unknown ELF class: {value}")
        self.value = value


class UnsupportedByteOrderError(HeaderError):
    code = "unsupported_byte_order"

    def __init__(self, value: int) -> None:
        encoding = {2: "big endian"}.get(value, f"invalid encoding {value}")
        super().__init__(
            f"Unsupported data encoding ({encoding}); "
            "only little-endian images are decoded"
        )
        self.value = value


# ---------------------------------------------------------------------------
# Section Table Walker / Section Extractor
# ---------------------------------------------------------------------------

class SectionError(ElfLensError):
    """The section header table or a section could not be used."""

    stage = "section"


class NoSectionTableError(SectionError):
    code = "no_section_table"

    def __init__(self) -> None:
        super().__init__("No section header table found")


class BadStringTableIndexError(SectionError):
    code = "bad_string_table_index"

    def __init__(self, index: int, count: int) -> None:
        super().__init__(
            f"Invalid section string table index {index} "
            f"(table has {count} entries)"
        )
        self.index = index
        self.count = count


class BadEntrySizeError(SectionError):
    code = "bad_entry_size"

    def __init__(self, entry_size: int, required: int) -> None:
        super().__init__(
            f"Section header entry size {entry_size} is smaller than "
            f"the {required}-byte descriptor layout"
        )
        self.entry_size = entry_size
        self.required = required


class TableOutOfBoundsError(SectionError):
    code = "table_out_of_bounds"

    def __init__(self, table_offset: int, table_size: int, length: int) -> None:
        super().__init__(
            f"Section header table at 0x{table_offset:x} "
            f"(0x{table_size:x} bytes) exceeds image size 0x{length:x}"
        )
        self.table_offset = table_offset
        self.table_size = table_size
        self.length = length


class BadStringTableError(SectionError):
    code = "bad_string_table"


class NotFoundError(SectionError):
    code = "not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"No {name} section found")
        self.name = name


class SectionOutOfBoundsError(SectionError):
    code = "section_out_of_bounds"

    def __init__(self, name: str, file_offset: int, size: int, length: int) -> None:
        label = name or "<unnamed>"
        super().__init__(
            f"{label} section (offset 0x{file_offset:x}, size 0x{size:x}) "
            f"exceeds file size 0x{length:x}"
        )
        self.name = name
        self.file_offset = file_offset
        self.size = size
        self.length = length


# ---------------------------------------------------------------------------
# Instruction Decoder
# ---------------------------------------------------------------------------

class DecodeError(ElfLensError):
    """The code slice could not be decoded to the end."""

    stage = "decode"


class TruncatedInstructionError(DecodeError):
    code = "truncated_instruction"

    def __init__(self, offset: int, opcode: int, needed: int, available: int) -> None:
        super().__init__(
            f"Unexpected end of code at offset 0x{offset:x}: opcode "
            f"0x{opcode:02x} needs {needed} byte(s), {available} left"
        )
        self.offset = offset
        self.opcode = opcode
        self.needed = needed
        self.available = available
