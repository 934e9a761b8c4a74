"""Tests for the ElfLens analysis engine."""

import pytest

from elf_factory import FakeSection, build_elf

from shared.config import LensConfig
from shared.logger import LensLogger
from shared.models import ScanStatus

from elflens.core.engine import LensEngine
from elflens.core.models import DisassemblyResult, LoadImmediate


CODE = b"\xb8\x2f\x00\x00\x00\x90\xc3"


def _engine(**scan_settings) -> LensEngine:
    config = LensConfig()
    for key, value in scan_settings.items():
        setattr(config.scan, key, value)
    return LensEngine(config=config, logger=LensLogger("test", console_output=False))


# ─── In-memory pipeline ─────────────────────

class TestAnalyzeData:
    def test_elf64_listing(self):
        result = _engine().analyze_data(build_elf([FakeSection(".text", CODE)]))
        assert result.ok
        assert result.header.bits == 64
        assert result.section.name == ".text"
        assert result.profile.name == "x86_64"
        assert [i.text for i in result.instructions] == [
            "mov rax, 0x2f", "nop", "db 0xc3",
        ]

    def test_elf32_uses_x86_profile(self):
        result = _engine().analyze_data(build_elf([FakeSection(".text", CODE)], bits=32))
        assert result.profile.name == "x86"
        assert [i.text for i in result.instructions] == [
            "mov eax, 0x2f", "nop", "ret",
        ]

    def test_fixed_profile_overrides_class(self):
        result = _engine(profile="x86").analyze_data(build_elf([FakeSection(".text", CODE)]))
        assert result.profile.name == "x86"
        assert result.instructions[0].text == "mov eax, 0x2f"

    def test_unknown_profile_rejected(self):
        with pytest.raises(KeyError):
            _engine(profile="mips")

    def test_other_section(self):
        image = build_elf([FakeSection(".init", b"\x90"), FakeSection(".text", CODE)])
        result = _engine(section_name=".init").analyze_data(image)
        assert result.section.index == 1
        assert len(result.instructions) == 1

    def test_sections_listed_on_request(self):
        image = build_elf([FakeSection(".text", CODE)])
        assert _engine().analyze_data(image).sections == []
        result = _engine(list_sections=True).analyze_data(image)
        assert [s.name for s in result.sections] == ["", ".text", ".shstrtab"]

    def test_size_and_target(self):
        image = build_elf()
        result = _engine().analyze_data(image, "sample.elf")
        assert result.target == "sample.elf"
        assert result.size == len(image)


class TestAddresses:
    def test_offsets_by_default(self):
        result = _engine().analyze_data(build_elf([FakeSection(".text", CODE)]))
        assert [result.address_of(i) for i in result.instructions] == [0, 5, 6]

    def test_base_address(self):
        result = _engine(base_address=0x1000).analyze_data(
            build_elf([FakeSection(".text", CODE)])
        )
        assert result.address_of(result.instructions[1]) == 0x1005

    def test_section_address(self):
        image = build_elf([FakeSection(".text", CODE, address=0x401000)])
        result = _engine(use_section_address=True).analyze_data(image)
        assert result.base_address == 0x401000
        assert result.address_of(result.instructions[0]) == 0x401000


class TestFailures:
    def test_bad_magic(self):
        result = _engine().analyze_data(b"\x00" * 64)
        assert not result.ok
        assert result.error.stage == "header"
        assert result.error.code == "bad_magic"
        assert result.header is None

    def test_missing_section(self):
        result = _engine().analyze_data(build_elf([FakeSection(".data", b"\x00")]))
        assert result.error.code == "not_found"
        assert result.error.message == "No .text section found"
        assert result.header is not None
        assert result.section is None
        assert result.instructions == []

    def test_section_out_of_bounds(self):
        image = build_elf([FakeSection(".text", b"\x90", size=0x1000)])
        result = _engine().analyze_data(image)
        assert result.error.code == "section_out_of_bounds"
        assert result.section is None

    def test_truncation_keeps_decoded_prefix(self):
        image = build_elf([FakeSection(".text", b"\x90\x90\xb8\x01")])
        result = _engine().analyze_data(image)
        assert result.error.code == "truncated_instruction"
        assert result.error.stage == "decode"
        assert [i.text for i in result.instructions] == ["nop", "nop"]

    def test_big_endian(self):
        result = _engine().analyze_data(build_elf(data_encoding=2))
        assert result.error.code == "unsupported_byte_order"


# ─── File entry point ─────────────────────

class TestAnalyzeFile:
    def test_success(self, tmp_path):
        path = tmp_path / "prog.elf"
        path.write_bytes(build_elf([FakeSection(".text", CODE)]))
        scan = _engine().analyze(path)
        assert scan.ok
        assert scan.status is ScanStatus.OK
        assert scan.end_time is not None
        assert "3 instruction(s)" in scan.summary

        result = DisassemblyResult.model_validate(scan.metadata["disassembly"])
        assert isinstance(result.instructions[0], LoadImmediate)
        assert result.instructions[0].value == 0x2F

    def test_pipeline_failure(self, tmp_path):
        path = tmp_path / "not_elf.bin"
        path.write_bytes(b"hello world")
        scan = _engine().analyze(path)
        assert not scan.ok
        assert scan.error.code == "bad_magic"
        assert "disassembly" in scan.metadata
        assert "bad_magic" in scan.summary

    def test_missing_file(self, tmp_path):
        scan = _engine().analyze(tmp_path / "absent.elf")
        assert scan.status is ScanStatus.FAILED
        assert scan.error.stage == "io"
        assert scan.error.code == "unreadable"

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "prog.elf"
        path.write_bytes(build_elf())
        scan = _engine(max_file_size=16).analyze(path)
        assert scan.error.code == "too_large"
        assert scan.metadata == {}
