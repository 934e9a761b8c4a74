"""
Section Table Walker
=====================

Walks the ELF section header table, resolves section names through the
section name string table (``e_shstrndx``), locates a section by name,
and extracts a section's bytes as a bounded view into the image.

Every offset taken from the file is checked against the image before it
is used.  A malformed entry anywhere on the walk stops the walk; nothing
is skipped or guessed.

Section header layouts::

    Elf32_Shdr (40 bytes): name type flags addr offset size link info addralign entsize
                           all u32
    Elf64_Shdr (64 bytes): name type (u32), flags addr offset size (u64),
                           link info (u32), addralign entsize (u64)

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2, "Sections".
    - System V Application Binary Interface, Edition 4.1, chapter 4.
"""

from __future__ import annotations

from typing import Iterator, Optional

from elflens.core.errors import (
    BadEntrySizeError,
    BadStringTableError,
    BadStringTableIndexError,
    NoSectionTableError,
    NotFoundError,
    SectionOutOfBoundsError,
    TableOutOfBoundsError,
)
from elflens.core.models import FileClass, FileHeader, SectionDescriptor
from elflens.parsers.fields import Buffer, read_fields


ELF32_SECTION_SIZE: int = 40
ELF64_SECTION_SIZE: int = 64

_ELF32_SECTION_FORMAT: str = "IIIIIIIIII"
_ELF64_SECTION_FORMAT: str = "IIQQQQIIQQ"


def descriptor_size(file_class: FileClass) -> int:
    """Size in bytes of one section header for *file_class*."""
    return ELF64_SECTION_SIZE if file_class is FileClass.ELF64 else ELF32_SECTION_SIZE


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _validate_table(image: Buffer, header: FileHeader) -> None:
    """Check the table geometry before any descriptor is read."""
    count = header.section_count
    if header.section_table_offset == 0 or count == 0:
        raise NoSectionTableError()
    if header.section_string_table_index >= count:
        raise BadStringTableIndexError(header.section_string_table_index, count)

    required = descriptor_size(header.file_class)
    if header.section_entry_size < required:
        raise BadEntrySizeError(header.section_entry_size, required)

    table_size = count * header.section_entry_size
    if header.section_table_offset + table_size > len(image):
        raise TableOutOfBoundsError(
            header.section_table_offset, table_size, len(image)
        )


def _read_descriptor(
    image: Buffer,
    header: FileHeader,
    index: int,
    name: str = "",
) -> SectionDescriptor:
    """Read the raw descriptor at table position *index*."""
    offset = header.section_table_offset + index * header.section_entry_size
    fmt = (
        _ELF64_SECTION_FORMAT
        if header.file_class is FileClass.ELF64
        else _ELF32_SECTION_FORMAT
    )
    (
        sh_name, sh_type, sh_flags, sh_addr,
        sh_offset, sh_size, sh_link, sh_info,
        sh_addralign, sh_entsize,
    ) = read_fields(image, offset, fmt, header.byte_order)

    return SectionDescriptor(
        index=index,
        name=name,
        name_offset=sh_name,
        type=sh_type,
        flags=sh_flags,
        address=sh_addr,
        file_offset=sh_offset,
        size=sh_size,
        link=sh_link,
        info=sh_info,
        alignment=sh_addralign,
        entry_size=sh_entsize,
    )


def _string_table(image: Buffer, header: FileHeader) -> bytes:
    """Return the section name string table region."""
    strtab = _read_descriptor(image, header, header.section_string_table_index)
    end = strtab.file_offset + strtab.size
    if end > len(image):
        raise BadStringTableError(
            f"Section name string table (offset 0x{strtab.file_offset:x}, "
            f"size 0x{strtab.size:x}) exceeds image size 0x{len(image):x}"
        )
    return bytes(image[strtab.file_offset:end])


def read_name(strtab: bytes, offset: int) -> bytes:
    """Read the NUL-terminated name starting at *offset* in *strtab*.

    Raises:
        BadStringTableError: *offset* lies outside the table or the name
            runs to the end of the table without a terminating NUL.
    """
    if offset >= len(strtab):
        raise BadStringTableError(
            f"Name offset 0x{offset:x} outside string table "
            f"of 0x{len(strtab):x} bytes"
        )
    end = strtab.find(b"\x00", offset)
    if end == -1:
        raise BadStringTableError(
            f"Unterminated name at string table offset 0x{offset:x}"
        )
    return strtab[offset:end]


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------

def iter_sections(image: Buffer, header: FileHeader) -> Iterator[SectionDescriptor]:
    """Yield every section descriptor, with its name resolved, in table order.

    The table geometry and the string table are validated before the
    first descriptor is yielded.

    Raises:
        NoSectionTableError, BadStringTableIndexError, BadEntrySizeError,
        TableOutOfBoundsError, BadStringTableError
    """
    _validate_table(image, header)
    strtab = _string_table(image, header)

    for index in range(header.section_count):
        descriptor = _read_descriptor(image, header, index)
        name = read_name(strtab, descriptor.name_offset)
        yield descriptor.model_copy(
            update={"name": name.decode("ascii", errors="replace")}
        )


def list_sections(image: Buffer, header: FileHeader) -> list[SectionDescriptor]:
    """Return all section descriptors in table order."""
    return list(iter_sections(image, header))


def find_section_by_name(
    image: Buffer,
    header: FileHeader,
    name: str,
) -> SectionDescriptor:
    """Locate the first section whose name equals *name* exactly.

    Names are compared byte for byte up to the terminating NUL.  The
    table is scanned in index order and the scan stops at the first
    match, so a later section with the same name is never returned.

    Args:
        image: The whole file contents.
        header: Header parsed from *image*.
        name: Section name, e.g. ``".text"``.

    Raises:
        NotFoundError: No section carries *name*.
        SectionError: Any table validation failure from :func:`iter_sections`.
    """
    try:
        wanted: Optional[bytes] = name.encode("ascii")
    except UnicodeEncodeError:
        # no ASCII byte run can equal it; the table is still validated
        wanted = None

    _validate_table(image, header)
    strtab = _string_table(image, header)

    for index in range(header.section_count):
        descriptor = _read_descriptor(image, header, index)
        if read_name(strtab, descriptor.name_offset) == wanted:
            return descriptor.model_copy(update={"name": name})

    raise NotFoundError(name)


def extract_section(image: Buffer, section: SectionDescriptor) -> memoryview:
    """Return the bytes of *section* as a read-only view into *image*.

    Raises:
        SectionOutOfBoundsError: ``file_offset + size`` exceeds the image.
    """
    end = section.file_offset + section.size
    if end > len(image):
        raise SectionOutOfBoundsError(
            section.name, section.file_offset, section.size, len(image)
        )
    return memoryview(image).toreadonly()[section.file_offset:end]
