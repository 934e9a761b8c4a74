"""
ElfLens Parsers
===============

Bounds-checked readers for the ELF file header and section header table.
"""

from elflens.parsers.elf_header import parse_header
from elflens.parsers.section_table import (
    extract_section,
    find_section_by_name,
    iter_sections,
    list_sections,
)

__all__ = [
    "parse_header",
    "find_section_by_name",
    "iter_sections",
    "list_sections",
    "extract_section",
]
