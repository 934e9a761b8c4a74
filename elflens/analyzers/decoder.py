"""
Instruction Decoder
====================

Linear-sweep decoder for a deliberately small x86 subset:

    ``B8+r id``   MOV r32/r64, imm32   (register-immediate load, 5 bytes)
    ``90``        NOP                  (1 byte)
    ``C3``        RET                  (1 byte, profile dependent)

Every other byte is reported as a :class:`RawByte` record.  Bytes are
never reinterpreted as partial or misaligned instructions.

One decoder serves both listing styles; a :class:`DecodeProfile`
selects the register naming convention and whether ``C3`` is
recognised.

References:
    - Intel 64 and IA-32 Architectures Software Developer's Manual,
      Volume 2: MOV (B8+rd id), NOP (90), RET (C3).
"""

from __future__ import annotations

from typing import Iterator, Optional

from elflens.core.errors import TruncatedInstructionError
from elflens.core.models import (
    DecodedInstruction,
    DecodeProfile,
    FileClass,
    LoadImmediate,
    NoOp,
    RawByte,
    RegisterNaming,
    Return,
)
from elflens.parsers.fields import Buffer, read_u32


# ---------------------------------------------------------------------------
# Opcodes
# ---------------------------------------------------------------------------

OP_MOV_IMM_FIRST: int = 0xB8
OP_MOV_IMM_LAST: int = 0xBF
OP_NOP: int = 0x90
OP_RET: int = 0xC3

_MOV_IMM_LENGTH: int = 5

_REGISTER_NAMES: dict[RegisterNaming, tuple[str, ...]] = {
    RegisterNaming.QWORD: ("rax", "rcx", "rdx", "rbx", "rsp", "rbp", "rsi", "rdi"),
    RegisterNaming.DWORD: ("eax", "ecx", "edx", "ebx", "esp", "ebp", "esi", "edi"),
}


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

X86_64_PROFILE = DecodeProfile(
    name="x86_64",
    register_naming=RegisterNaming.QWORD,
    recognize_return=False,
)

X86_PROFILE = DecodeProfile(
    name="x86",
    register_naming=RegisterNaming.DWORD,
    recognize_return=True,
)

PROFILES: dict[str, DecodeProfile] = {
    X86_64_PROFILE.name: X86_64_PROFILE,
    X86_PROFILE.name: X86_PROFILE,
}


def get_profile(name: str) -> DecodeProfile:
    """Return the decode profile registered under *name*.

    Raises:
        KeyError: *name* is not a known profile.
    """
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown decode profile {name!r} "
            f"(choose from: {', '.join(sorted(PROFILES))})"
        ) from None


def profile_for_class(file_class: FileClass) -> DecodeProfile:
    """Default profile for images of *file_class*."""
    return X86_64_PROFILE if file_class is FileClass.ELF64 else X86_PROFILE


def register_name(index: int, naming: RegisterNaming) -> str:
    """Name of register *index* (0-7) under the *naming* convention."""
    return _REGISTER_NAMES[naming][index]


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

def decode(
    code: Buffer,
    profile: DecodeProfile = X86_64_PROFILE,
) -> Iterator[DecodedInstruction]:
    """Decode *code* from offset 0 to its end.

    The cursor only moves forward.  Records carry their offset relative
    to the start of *code*.

    Args:
        code: The bytes to decode (usually a section slice).
        profile: Register naming and opcode options.

    Yields:
        One decoded record per instruction or unrecognised byte.

    Raises:
        TruncatedInstructionError: A register-immediate load starts
            fewer than five bytes before the end of *code*.  No record is
            emitted for it and decoding stops.
    """
    length = len(code)
    i = 0
    while i < length:
        opcode = code[i]

        if OP_MOV_IMM_FIRST <= opcode <= OP_MOV_IMM_LAST:
            available = length - i
            if available < _MOV_IMM_LENGTH:
                raise TruncatedInstructionError(
                    i, opcode, _MOV_IMM_LENGTH, available
                )
            value = read_u32(code, i + 1)
            index = opcode - OP_MOV_IMM_FIRST
            yield LoadImmediate(
                offset=i,
                register_index=index,
                reg=register_name(index, profile.register_naming),
                value=value,
            )
            i += _MOV_IMM_LENGTH
        elif opcode == OP_NOP:
            yield NoOp(offset=i)
            i += 1
        elif opcode == OP_RET and profile.recognize_return:
            yield Return(offset=i)
            i += 1
        else:
            yield RawByte(offset=i, value=opcode)
            i += 1


def decode_all(
    code: Buffer,
    profile: DecodeProfile = X86_64_PROFILE,
) -> tuple[list[DecodedInstruction], Optional[TruncatedInstructionError]]:
    """Decode *code* eagerly, keeping the records decoded before a truncation.

    Returns:
        ``(instructions, error)`` where *error* is the truncation that
        stopped decoding, or ``None`` when the whole slice decoded.
    """
    instructions: list[DecodedInstruction] = []
    try:
        for instruction in decode(code, profile):
            instructions.append(instruction)
    except TruncatedInstructionError as exc:
        return instructions, exc
    return instructions, None
