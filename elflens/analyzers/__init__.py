"""
ElfLens Analyzers
=================

Instruction decoding over a code slice.
"""

from elflens.analyzers.decoder import (
    X86_64_PROFILE,
    X86_PROFILE,
    decode,
    decode_all,
    get_profile,
    register_name,
)

__all__ = [
    "X86_64_PROFILE",
    "X86_PROFILE",
    "decode",
    "decode_all",
    "get_profile",
    "register_name",
]
