"""
ElfLens Console Interface
==========================

Rich-powered console abstraction providing one presentation layer for
ElfLens: banner, section rules, and severity-coloured messages, all with
consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all ElfLens output
# ---------------------------------------------------------------------------
_LENS_THEME = Theme(
    {
        "lens.banner": "bold bright_cyan",
        "lens.section": "bold bright_magenta",
        "lens.success": "bold green",
        "lens.warning": "bold yellow",
        "lens.error": "bold red",
        "lens.info": "bold bright_blue",
        "lens.dim": "dim white",
        "lens.address": "bright_cyan",
        "lens.bytes": "dim white",
        "lens.mnemonic": "bold bright_white",
        "lens.raw": "yellow",
    }
)

_TAGLINE = "ELF header, section, and code listing"


class LensConsole:
    """Unified console interface for ElfLens.

    Wraps :class:`rich.console.Console` with helpers for every
    presentation need the tool has.

    Usage::

        con = LensConsole()
        con.banner()
        con.section("Disassembly")
        con.success("Done")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        width: int | None = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for text export.
            width:  Fixed console width; ``None`` auto-detects.
        """
        self._console = Console(
            theme=_LENS_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            width=width,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / section header
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        """Display the ElfLens title panel."""
        text = Text.from_markup(
            f"[lens.banner]ElfLens[/lens.banner]  "
            f"[lens.dim]{_TAGLINE}  |  v{version}[/lens.dim]"
        )
        self._console.print(Panel(text, border_style="bright_cyan", expand=False))

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(f"  {title}  ", style="lens.section", characters="─")

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[lens.success][✔] SUCCESS:[/lens.success] {message}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[lens.warning][⚠] WARNING:[/lens.warning] {message}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[lens.error][✘] ERROR:[/lens.error] {message}"
        )

    def info(self, message: str) -> None:
        self._console.print(
            f"[lens.info][ℹ] INFO:[/lens.info] {message}"
        )

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
