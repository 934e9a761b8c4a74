"""
ElfLens Console Output
=======================

Rich-powered terminal display for ElfLens results: the ELF header
panel, an optional section table, the located code section, and the
disassembly listing.

Uses the LensConsole abstraction for consistent styling.
"""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shared.console import LensConsole

from elflens.core.models import (
    DisassemblyResult,
    FileHeader,
    RawByte,
    SectionDescriptor,
)


class LensConsoleOutput:
    """Rich terminal display for a :class:`DisassemblyResult`.

    Usage::

        output = LensConsoleOutput()
        output.display(result)
    """

    def __init__(
        self,
        console: LensConsole | None = None,
        *,
        show_bytes: bool = True,
    ) -> None:
        self._console: LensConsole = console or LensConsole()
        self._show_bytes = show_bytes

    def display(self, result: DisassemblyResult) -> None:
        """Display every stage the pipeline completed, then any error."""
        self._console.section(escape(result.target))

        if result.header is not None:
            self.display_header(result.header)

        if result.sections:
            self.display_sections(result.sections)

        if result.section is not None:
            self._console.info(
                f"Found {escape(result.section.name)} section at offset "
                f"0x{result.section.file_offset:x} with size "
                f"0x{result.section.size:x}"
            )

        if result.profile is not None:
            self.display_listing(result)

        if result.error is not None:
            self._console.error(
                escape(
                    f"[{result.error.stage}/{result.error.code}] {result.error.message}"
                )
            )

    def display_header(self, header: FileHeader) -> None:
        """Display the ELF header panel."""
        magic = " ".join(f"{b:02x}" for b in header.ident)
        lines: list[str] = [
            f"[bold]Magic:[/bold]        {magic}",
            f"[bold]Class:[/bold]        {header.file_class.value}",
            f"[bold]Data:[/bold]         {header.byte_order.value} endian",
            f"[bold]Version:[/bold]      {header.version}",
            f"[bold]OS/ABI:[/bold]       {header.os_abi}",
            f"[bold]Type:[/bold]         0x{header.object_type:x} ({header.type_name})",
            f"[bold]Machine:[/bold]      0x{header.machine:x} ({header.machine_name})",
            f"[bold]Entry point:[/bold]  0x{header.entry_address:x}",
        ]
        panel = Panel(
            "\n".join(lines),
            title=f"[bold bright_cyan]{header.file_class.value} Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(0, 2),
            expand=False,
        )
        self._console.rich.print(panel)

    def display_sections(self, sections: list[SectionDescriptor]) -> None:
        """Display the section header table."""
        tbl = Table(
            title="Sections",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", justify="right")
        tbl.add_column("Name", style="bold")
        tbl.add_column("Type")
        tbl.add_column("Flags")
        tbl.add_column("Address", justify="right")
        tbl.add_column("Offset", justify="right")
        tbl.add_column("Size", justify="right")

        for sec in sections:
            tbl.add_row(
                str(sec.index),
                escape(sec.name) or "<unnamed>",
                sec.type_name,
                sec.flags_text,
                f"0x{sec.address:x}",
                f"0x{sec.file_offset:x}",
                f"0x{sec.size:x}",
            )

        self._console.rich.print(tbl)

    def display_listing(self, result: DisassemblyResult) -> None:
        """Display the decoded instructions, one per line."""
        name = result.section.name if result.section is not None else "code"
        profile = result.profile.name if result.profile is not None else "?"
        self._console.print(
            f"[lens.section]Disassembly of {escape(name)} section[/lens.section] "
            f"[lens.dim]({profile})[/lens.dim]"
        )

        for insn in result.instructions:
            address = f"[lens.address]{result.address_of(insn):04x}:[/lens.address]"
            style = "lens.raw" if isinstance(insn, RawByte) else "lens.mnemonic"
            text = f"[{style}]{insn.text}[/{style}]"
            if self._show_bytes:
                raw = f"[lens.bytes]{insn.raw_bytes.hex(' '):<15}[/lens.bytes]"
                self._console.print(f"{address} {raw} {text}")
            else:
                self._console.print(f"{address} {text}")
