"""
ELF Header Interpreter
=======================

Validates the ELF identification bytes and reads the file header fields
at the fixed offsets defined by the System V ABI for the detected class.

ELF32 header (52 bytes) and ELF64 header (64 bytes) share the same field
order; addresses and offsets are 4 bytes wide in ELF32 and 8 bytes wide
in ELF64::

    0x00  e_ident[16]   magic, class, data, version, OS/ABI, ABI version
    0x10  e_type        u16
    0x12  e_machine     u16
    0x14  e_version     u32
    0x18  e_entry       u32 | u64
          e_phoff       u32 | u64
          e_shoff       u32 | u64
          e_flags       u32
          e_ehsize, e_phentsize, e_phnum, e_shentsize, e_shnum, e_shstrndx  u16

Only little-endian images are interpreted; big-endian input is rejected
rather than misread.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - Linux man page: elf(5).
"""

from __future__ import annotations

from elflens.core.errors import (
    BadMagicError,
    TooShortError,
    UnknownClassError,
    UnsupportedByteOrderError,
)
from elflens.core.models import (
    ELF_MAGIC,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ByteOrder,
    FileClass,
    FileHeader,
)
from elflens.parsers.fields import Buffer, read_fields


# e_ident indices
EI_CLASS: int = 4
EI_DATA: int = 5
EI_VERSION: int = 6
EI_OSABI: int = 7
EI_ABIVERSION: int = 8
EI_NIDENT: int = 16

ELF32_HEADER_SIZE: int = 52
ELF64_HEADER_SIZE: int = 64

# Field layout after e_ident, without byte-order prefix
_ELF32_FORMAT: str = "HHIIIIIHHHHHH"
_ELF64_FORMAT: str = "HHIQQQIHHHHHH"

_CLASSES: dict[int, FileClass] = {
    ELFCLASS32: FileClass.ELF32,
    ELFCLASS64: FileClass.ELF64,
}


def header_size(file_class: FileClass) -> int:
    """Size in bytes of the file header for *file_class*."""
    return ELF64_HEADER_SIZE if file_class is FileClass.ELF64 else ELF32_HEADER_SIZE


def is_elf(image: Buffer) -> bool:
    """Return ``True`` if *image* starts with the ELF magic number."""
    return len(image) >= 4 and bytes(image[:4]) == ELF_MAGIC


def parse_header(image: Buffer) -> FileHeader:
    """Interpret the ELF file header at the start of *image*.

    Args:
        image: The whole file contents.

    Returns:
        An immutable :class:`FileHeader`.

    Raises:
        TooShortError: The image cannot hold the magic number, the class
            byte, or the full header for its class.
        BadMagicError: The first four bytes are not ``7F 'E' 'L' 'F'``.
        UnknownClassError: ``e_ident[EI_CLASS]`` is neither ELF32 nor ELF64.
        UnsupportedByteOrderError: ``e_ident[EI_DATA]`` is not little-endian.
    """
    length = len(image)
    if length < 4:
        raise TooShortError(length, 4)
    if not is_elf(image):
        raise BadMagicError(bytes(image[:4]))
    if length <= EI_CLASS:
        raise TooShortError(length, EI_CLASS + 1)

    class_value = image[EI_CLASS]
    file_class = _CLASSES.get(class_value)
    if file_class is None:
        raise UnknownClassError(class_value)

    required = header_size(file_class)
    if length < required:
        raise TooShortError(length, required)

    data_value = image[EI_DATA]
    if data_value != ELFDATA2LSB:
        raise UnsupportedByteOrderError(data_value)
    order = ByteOrder.LITTLE

    fmt = _ELF64_FORMAT if file_class is FileClass.ELF64 else _ELF32_FORMAT
    (
        e_type, e_machine, e_version, e_entry,
        e_phoff, e_shoff, e_flags, e_ehsize,
        e_phentsize, e_phnum, e_shentsize, e_shnum,
        e_shstrndx,
    ) = read_fields(image, EI_NIDENT, fmt, order)

    return FileHeader(
        file_class=file_class,
        byte_order=order,
        version=image[EI_VERSION],
        os_abi=image[EI_OSABI],
        abi_version=image[EI_ABIVERSION],
        ident=tuple(image[:EI_NIDENT]),
        object_type=e_type,
        machine=e_machine,
        elf_version=e_version,
        entry_address=e_entry,
        program_table_offset=e_phoff,
        section_table_offset=e_shoff,
        flags=e_flags,
        header_size=e_ehsize,
        program_entry_size=e_phentsize,
        program_count=e_phnum,
        section_entry_size=e_shentsize,
        section_count=e_shnum,
        section_string_table_index=e_shstrndx,
    )
