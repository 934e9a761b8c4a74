"""
ElfLens -- ELF Code Section Lister
===================================

Reads an ELF32/ELF64 little-endian image, interprets its file header,
locates a named section through the section header table, and decodes
the section bytes into a listing of register-immediate loads, no-ops,
returns, and raw bytes.

Capabilities:
    - ELF header validation and field extraction
    - Section lookup by name through the section name string table
    - Bounds-checked section extraction
    - Profile-driven instruction decoding (x86_64 / x86 register naming)
    - Rich console listing and JSON reports

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

__version__ = "1.0.0"
__all__ = [
    "LensEngine",
    "DisassemblyResult",
    "parse_header",
    "find_section_by_name",
    "iter_sections",
    "list_sections",
    "extract_section",
    "decode",
    "decode_all",
]

from elflens.analyzers.decoder import decode, decode_all
from elflens.core.engine import LensEngine
from elflens.core.models import DisassemblyResult
from elflens.parsers.elf_header import parse_header
from elflens.parsers.section_table import (
    extract_section,
    find_section_by_name,
    iter_sections,
    list_sections,
)
