"""
ElfLens Analysis Engine
========================

Orchestrates the disassembly pipeline over an in-memory ELF image:

    1. Interpret the file header (class, byte order, machine, entry)
    2. Optionally list every section descriptor
    3. Locate the code section by name through the section name table
    4. Bounds-check and slice the section
    5. Decode the slice with the selected decode profile

Each stage either hands its output to the next or raises an
:class:`~elflens.core.errors.ElfLensError`.  The engine catches the
error, records it on the result, and returns, so a caller can report
and continue across many inputs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from shared.config import LensConfig
from shared.logger import LensLogger
from shared.models import ErrorInfo, ScanResult

from elflens.analyzers.decoder import decode_all, get_profile, profile_for_class
from elflens.core.errors import ElfLensError
from elflens.core.models import DecodeProfile, DisassemblyResult, FileHeader
from elflens.parsers.elf_header import parse_header
from elflens.parsers.section_table import (
    extract_section,
    find_section_by_name,
    list_sections,
)


class LensEngine:
    """Runs the ElfLens pipeline on files or raw bytes.

    Usage::

        engine = LensEngine()
        scan = engine.analyze("/usr/bin/true")
        print(scan.summary)

        result = engine.analyze_data(raw_bytes)
        for insn in result.instructions:
            print(f"{result.address_of(insn):04x}: {insn.text}")
    """

    def __init__(
        self,
        config: LensConfig | None = None,
        logger: LensLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: ElfLens configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.

        Raises:
            KeyError: ``config.scan.profile`` names an unknown profile.
        """
        self._config: LensConfig = config or LensConfig()
        self._logger: LensLogger = logger or LensLogger("engine")

        profile_name = self._config.scan.profile
        self._fixed_profile: Optional[DecodeProfile] = (
            None if profile_name.lower() == "auto" else get_profile(profile_name)
        )

    @property
    def config(self) -> LensConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  File entry point
    # ------------------------------------------------------------------ #

    def analyze(self, file_path: str | Path) -> ScanResult:
        """Read *file_path* and run the pipeline on its contents.

        Returns:
            ScanResult whose ``metadata["disassembly"]`` holds the
            serialised :class:`DisassemblyResult` when the file was read.
        """
        path = Path(file_path)
        scan = ScanResult(tool_name="elflens", target=str(path))
        self._logger.info("Starting analysis of %s", path)

        try:
            file_size = path.stat().st_size
            max_size = self._config.scan.max_file_size
            if file_size > max_size:
                scan.fail(ErrorInfo(
                    stage="io",
                    code="too_large",
                    message=(
                        f"File too large: {file_size:,} bytes "
                        f"(max: {max_size:,} bytes)"
                    ),
                ))
                self._logger.error(scan.error.message)
                return scan.finalize()

            data = path.read_bytes()
        except OSError as exc:
            scan.fail(ErrorInfo(stage="io", code="unreadable", message=str(exc)))
            self._logger.error("Failed to open file: %s (%s)", path, exc.strerror or exc)
            return scan.finalize()

        try:
            with self._logger.timed(f"analysis of {path.name}"):
                result = self.analyze_data(data, str(path))
        except Exception as exc:
            scan.fail(ErrorInfo.from_exception(exc))
            self._logger.exception("Analysis failed: %s", exc)
            return scan.finalize()

        scan.metadata = {"disassembly": result.model_dump(mode="json")}
        if result.error is not None:
            scan.fail(result.error)
            return scan.finalize()

        scan.finalize(self._summarize(result))
        self._logger.info(scan.summary)
        return scan

    # ------------------------------------------------------------------ #
    #  In-memory pipeline
    # ------------------------------------------------------------------ #

    def analyze_data(self, data: bytes, target: str = "<memory>") -> DisassemblyResult:
        """Run the pipeline on *data*.

        Pipeline failures are recorded on the returned result rather than
        raised; instructions decoded before a truncation are kept.

        Args:
            data: The whole ELF image.
            target: Display label for the result.

        Returns:
            Populated DisassemblyResult.
        """
        settings = self._config.scan
        result = DisassemblyResult(
            target=target,
            size=len(data),
            base_address=settings.base_address,
        )

        try:
            with self._logger.operation("header"):
                header = parse_header(data)
                result.header = header
                self._logger.debug(
                    "%s: %s %s, entry 0x%x, %d section(s)",
                    target,
                    header.file_class.value,
                    header.machine_name,
                    header.entry_address,
                    header.section_count,
                )

            if settings.list_sections:
                with self._logger.operation("section_table"):
                    result.sections = list_sections(data, header)

            with self._logger.operation("section_lookup"):
                section = find_section_by_name(data, header, settings.section_name)
                code = extract_section(data, section)
                result.section = section
                self._logger.debug(
                    "Found %s section at offset 0x%x with size 0x%x",
                    section.name,
                    section.file_offset,
                    section.size,
                )

            if settings.use_section_address:
                result.base_address = section.address

            profile = self._select_profile(header)
            result.profile = profile

            with self._logger.operation("decode"):
                instructions, truncation = decode_all(code, profile)
                result.instructions = instructions
                if truncation is not None:
                    self._record_failure(result, truncation)

        except ElfLensError as exc:
            self._record_failure(result, exc)

        return result

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _select_profile(self, header: FileHeader) -> DecodeProfile:
        if self._fixed_profile is not None:
            return self._fixed_profile
        return profile_for_class(header.file_class)

    def _record_failure(self, result: DisassemblyResult, exc: ElfLensError) -> None:
        result.error = ErrorInfo.from_exception(exc)
        self._logger.warning(
            "%s: %s", result.target, exc.message, stage=exc.stage, code=exc.code
        )

    @staticmethod
    def _summarize(result: DisassemblyResult) -> str:
        parts: list[str] = []
        if result.header is not None:
            parts.append(
                f"{result.header.file_class.value} {result.header.machine_name}"
            )
        if result.section is not None:
            parts.append(
                f"{result.section.name} @ 0x{result.section.file_offset:x} "
                f"(0x{result.section.size:x} bytes)"
            )
        if result.profile is not None:
            parts.append(f"profile {result.profile.name}")
        parts.append(f"{result.instruction_count} instruction(s)")
        return " | ".join(parts)
