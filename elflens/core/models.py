"""
ElfLens Data Models
====================

Pydantic-based, immutable data models for the ELF header view, section
descriptors, decode profiles, decoded instructions, and the aggregate
disassembly result produced by the ElfLens engine.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - Intel 64 and IA-32 Architectures Software Developer's Manual,
      Volume 2 (MOV r32, imm32 / NOP / RET encodings).
"""

from __future__ import annotations

import abc
import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from shared.models import ErrorInfo


# ---------------------------------------------------------------------------
# ELF constants
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

_ET_NAMES: dict[int, str] = {
    0: "NONE",
    1: "REL (Relocatable)",
    2: "EXEC (Executable)",
    3: "DYN (Shared object)",
    4: "CORE (Core dump)",
}

_EM_NAMES: dict[int, str] = {
    0: "None",
    2: "SPARC",
    3: "x86",
    8: "MIPS",
    20: "PowerPC",
    21: "PowerPC64",
    40: "ARM",
    62: "x86_64",
    183: "AArch64",
    243: "RISC-V",
}

_SHT_NAMES: dict[int, str] = {
    0: "NULL",
    1: "PROGBITS",
    2: "SYMTAB",
    3: "STRTAB",
    4: "RELA",
    5: "HASH",
    6: "DYNAMIC",
    7: "NOTE",
    8: "NOBITS",
    9: "REL",
    11: "DYNSYM",
    14: "INIT_ARRAY",
    15: "FINI_ARRAY",
}

SHF_WRITE: int = 0x1
SHF_ALLOC: int = 0x2
SHF_EXECINSTR: int = 0x4


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FileClass(str, enum.Enum):
    """ELF file class (address width)."""
    ELF32 = "ELF32"
    ELF64 = "ELF64"

    @property
    def bits(self) -> int:
        return 64 if self is FileClass.ELF64 else 32


class ByteOrder(str, enum.Enum):
    """Data encoding of multi-byte fields."""
    LITTLE = "little"
    BIG = "big"


class RegisterNaming(str, enum.Enum):
    """Register naming convention used when rendering register operands."""
    QWORD = "qword"  # rax, rcx, ...
    DWORD = "dword"  # eax, ecx, ...


# ---------------------------------------------------------------------------
# Header / section views
# ---------------------------------------------------------------------------

class FileHeader(BaseModel):
    """Typed view over the ELF file header.

    Addresses and offsets are widened to 64 bits for ELF32 images so
    both classes share one model.

    Attributes:
        file_class: ELF32 or ELF64.
        byte_order: Data encoding declared in ``e_ident[EI_DATA]``.
        version: ``e_ident[EI_VERSION]``.
        os_abi: ``e_ident[EI_OSABI]``.
        abi_version: ``e_ident[EI_ABIVERSION]``.
        ident: The 16 identification bytes.
        object_type: ``e_type`` (REL, EXEC, DYN, CORE, ...).
        machine: ``e_machine`` architecture code.
        entry_address: Virtual address of the entry point.
        section_table_offset: File offset of the section header table.
        section_entry_size: Size of one section header entry.
        section_count: Number of section header entries.
        section_string_table_index: Index of the section name string table.
    """
    model_config = ConfigDict(frozen=True)

    file_class: FileClass
    byte_order: ByteOrder
    version: int = Field(ge=0, le=0xFF)
    os_abi: int = Field(ge=0, le=0xFF)
    abi_version: int = Field(default=0, ge=0, le=0xFF)
    ident: tuple[int, ...] = ()
    object_type: int = Field(ge=0, le=0xFFFF)
    machine: int = Field(ge=0, le=0xFFFF)
    elf_version: int = 0
    entry_address: int = Field(ge=0)
    program_table_offset: int = 0
    section_table_offset: int = Field(ge=0)
    flags: int = 0
    header_size: int = 0
    program_entry_size: int = 0
    program_count: int = 0
    section_entry_size: int = Field(ge=0, le=0xFFFF)
    section_count: int = Field(ge=0, le=0xFFFF)
    section_string_table_index: int = Field(ge=0, le=0xFFFF)

    @property
    def bits(self) -> int:
        return self.file_class.bits

    @property
    def type_name(self) -> str:
        return _ET_NAMES.get(self.object_type, f"unknown({self.object_type})")

    @property
    def machine_name(self) -> str:
        return _EM_NAMES.get(self.machine, f"unknown({self.machine})")


class SectionDescriptor(BaseModel):
    """One entry of the section header table.

    Attributes:
        index: Position in the section header table.
        name: Name resolved through the section name string table.
        name_offset: ``sh_name`` offset into the string table.
        type: ``sh_type``.
        flags: ``sh_flags``.
        address: Virtual address when loaded.
        file_offset: File offset of the section contents.
        size: Size of the section contents in bytes.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(default=0, ge=0)
    name: str = ""
    name_offset: int = Field(ge=0)
    type: int = 0
    flags: int = 0
    address: int = 0
    file_offset: int = Field(ge=0)
    size: int = Field(ge=0)
    link: int = 0
    info: int = 0
    alignment: int = 0
    entry_size: int = 0

    @property
    def type_name(self) -> str:
        return _SHT_NAMES.get(self.type, f"0x{self.type:x}")

    @property
    def flags_text(self) -> str:
        """Flags as ``W``/``A``/``X`` letters, or ``-`` when none are set."""
        parts: list[str] = []
        if self.flags & SHF_WRITE:
            parts.append("W")
        if self.flags & SHF_ALLOC:
            parts.append("A")
        if self.flags & SHF_EXECINSTR:
            parts.append("X")
        return "".join(parts) if parts else "-"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class DecodeProfile(BaseModel):
    """Options selecting how the decoder names registers and which
    opcodes it recognises."""
    model_config = ConfigDict(frozen=True)

    name: str
    register_naming: RegisterNaming
    recognize_return: bool


class _Instruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)

    @property
    def size(self) -> int:
        return 1

    @property
    @abc.abstractmethod
    def mnemonic(self) -> str:
        ...

    @property
    @abc.abstractmethod
    def raw_bytes(self) -> bytes:
        """The encoded bytes this record was decoded from."""

    @property
    def operands(self) -> str:
        return ""

    @property
    def text(self) -> str:
        """Assembly-style rendering, e.g. ``mov rax, 0x2f``."""
        if self.operands:
            return f"{self.mnemonic} {self.operands}"
        return self.mnemonic


class LoadImmediate(_Instruction):
    """``mov r32/r64, imm32`` (opcodes ``B8``..``BF``)."""
    kind: Literal["load_immediate"] = "load_immediate"
    register_index: int = Field(ge=0, le=7)
    reg: str
    value: int = Field(ge=0, le=0xFFFFFFFF)

    @property
    def size(self) -> int:
        return 5

    @property
    def mnemonic(self) -> str:
        return "mov"

    @property
    def operands(self) -> str:
        return f"{self.reg}, 0x{self.value:x}"

    @property
    def raw_bytes(self) -> bytes:
        return bytes([0xB8 + self.register_index]) + self.value.to_bytes(4, "little")


class NoOp(_Instruction):
    kind: Literal["nop"] = "nop"

    @property
    def mnemonic(self) -> str:
        return "nop"

    @property
    def raw_bytes(self) -> bytes:
        return b"\x90"


class Return(_Instruction):
    kind: Literal["ret"] = "ret"

    @property
    def mnemonic(self) -> str:
        return "ret"

    @property
    def raw_bytes(self) -> bytes:
        return b"\xc3"


class RawByte(_Instruction):
    """A byte the decoder does not interpret."""
    kind: Literal["raw_byte"] = "raw_byte"
    value: int = Field(ge=0, le=0xFF)

    @property
    def mnemonic(self) -> str:
        return "db"

    @property
    def operands(self) -> str:
        return f"0x{self.value:02x}"

    @property
    def raw_bytes(self) -> bytes:
        return bytes([self.value])


DecodedInstruction = Annotated[
    Union[LoadImmediate, NoOp, Return, RawByte],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Aggregate result
# ---------------------------------------------------------------------------

class DisassemblyResult(BaseModel):
    """Everything the pipeline recovered from one image.

    Stages that did not run (because an earlier one failed) leave their
    fields at the defaults; ``error`` then names the failing stage.

    Attributes:
        target: Path or label of the analysed image.
        size: Image size in bytes.
        header: Parsed file header.
        sections: Every section descriptor, when a listing was requested.
        section: The located target section.
        profile: Decode profile used for the listing.
        base_address: Address added to instruction offsets for display.
        instructions: Decoded records in slice order.
        error: The failure that stopped the pipeline, if any.
    """
    target: str = "<memory>"
    size: int = 0
    header: Optional[FileHeader] = None
    sections: list[SectionDescriptor] = Field(default_factory=list)
    section: Optional[SectionDescriptor] = None
    profile: Optional[DecodeProfile] = None
    base_address: int = 0
    instructions: list[DecodedInstruction] = Field(default_factory=list)
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def instruction_count(self) -> int:
        return len(self.instructions)

    def address_of(self, instruction: _Instruction) -> int:
        """Display address of *instruction* (``base_address + offset``)."""
        return self.base_address + instruction.offset
