"""
ElfLens Report Generator
=========================

Generates structured JSON reports from ElfLens results for machine
consumption and downstream tooling.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from elflens import __version__
from elflens.core.models import DisassemblyResult


class LensReportGenerator:
    """Builds JSON reports from one or more :class:`DisassemblyResult`.

    Usage::

        generator = LensReportGenerator()
        generator.generate_json([result], "report.json")
    """

    def build_report(self, result: DisassemblyResult) -> dict[str, Any]:
        """Return the report dictionary for a single result."""
        header = result.header
        section = result.section
        return {
            "target": result.target,
            "size": result.size,
            "status": "ok" if result.ok else "failed",
            "header": None if header is None else {
                "class": header.file_class.value,
                "byte_order": header.byte_order.value,
                "version": header.version,
                "os_abi": header.os_abi,
                "type": header.object_type,
                "type_name": header.type_name,
                "machine": header.machine,
                "machine_name": header.machine_name,
                "entry_address": header.entry_address,
                "section_table_offset": header.section_table_offset,
                "section_count": header.section_count,
            },
            "sections": [
                {
                    "index": s.index,
                    "name": s.name,
                    "type": s.type_name,
                    "flags": s.flags_text,
                    "address": s.address,
                    "offset": s.file_offset,
                    "size": s.size,
                }
                for s in result.sections
            ],
            "section": None if section is None else {
                "name": section.name,
                "index": section.index,
                "address": section.address,
                "offset": section.file_offset,
                "size": section.size,
            },
            "profile": None if result.profile is None else result.profile.name,
            "base_address": result.base_address,
            "instructions": [
                {
                    "address": result.address_of(insn),
                    "offset": insn.offset,
                    "kind": insn.kind,
                    "bytes": insn.raw_bytes.hex(),
                    "text": insn.text,
                }
                for insn in result.instructions
            ],
            "error": None if result.error is None else result.error.model_dump(),
        }

    def build_document(self, results: Sequence[DisassemblyResult]) -> dict[str, Any]:
        """Wrap several results in the top-level report envelope."""
        return {
            "report_type": "elflens_disassembly",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "results": [self.build_report(r) for r in results],
        }

    def generate_json(
        self,
        results: Sequence[DisassemblyResult],
        output_path: str | Path,
    ) -> str:
        """Write a JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.build_document(results), f, indent=2, ensure_ascii=False)

        return str(path.resolve())
