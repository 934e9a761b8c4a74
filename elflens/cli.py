"""
ElfLens CLI
============

Click-based command-line interface.  Each PATH is analysed
independently; a failure in one file is reported and the run continues
with the next.

Usage::

    # List the .text section of a binary
    elflens /path/to/binary

    # Another section, 32-bit register names, addresses from 0x401000
    elflens /path/to/binary --section .init --profile x86 --base 0x401000

    # Show the section table as well
    elflens /path/to/binary --list-sections

    # Machine-readable output
    elflens a.out b.out --json
    elflens a.out --output report.json

Exit status is 0 when every input was decoded completely, 1 otherwise.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys
from typing import Optional

import click
from rich.markup import escape

from shared.config import LensConfig
from shared.console import LensConsole
from shared.logger import LensLogger

from elflens import __version__
from elflens.analyzers.decoder import PROFILES
from elflens.core.engine import LensEngine
from elflens.core.models import DisassemblyResult
from elflens.output.console import LensConsoleOutput
from elflens.output.report import LensReportGenerator


class _AddressParam(click.ParamType):
    """Integer accepting decimal, ``0x`` hex, ``0o`` and ``0b`` forms."""

    name = "address"

    def convert(self, value, param, ctx):  # type: ignore[no-untyped-def]
        if isinstance(value, int):
            return value
        try:
            parsed = int(value, 0)
        except ValueError:
            self.fail(f"{value!r} is not a valid address", param, ctx)
        if parsed < 0:
            self.fail(f"{value!r} is negative", param, ctx)
        return parsed


ADDRESS = _AddressParam()


@click.command("elflens")
@click.argument("paths", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--section", "-s",
    "section_name",
    default=None,
    help="Name of the section to decode.  Default: .text",
)
@click.option(
    "--profile", "-p",
    type=click.Choice(["auto", *sorted(PROFILES)], case_sensitive=False),
    default=None,
    help="Decode profile.  Default: auto (x86_64 for ELF64, x86 for ELF32).",
)
@click.option(
    "--base", "-b",
    "base_address",
    type=ADDRESS,
    default=None,
    help="Address of the first byte of the section in the listing.",
)
@click.option(
    "--section-address",
    is_flag=True,
    default=False,
    help="Use the section's virtual address as the listing base.",
)
@click.option(
    "--list-sections", "-l",
    is_flag=True,
    default=False,
    help="Also show the section header table.",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    default=False,
    help="Hide raw instruction bytes in the listing.",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print results as JSON to stdout.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging and local variables in tracebacks.",
)
@click.version_option(__version__, prog_name="elflens")
def elflens_cli(
    paths: tuple[str, ...],
    section_name: Optional[str],
    profile: Optional[str],
    base_address: Optional[int],
    section_address: bool,
    list_sections: bool,
    no_bytes: bool,
    config_path: Optional[str],
    output_path: Optional[str],
    json_output: bool,
    verbose: bool,
) -> None:
    """ElfLens -- list the code section of ELF executables.

    PATHS are the ELF files to analyse.

    Examples:

    \b
        elflens /bin/true
        elflens prog.elf --section .init --profile x86
        elflens prog.elf --json
    """
    console = LensConsole()

    try:
        config = LensConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(escape(f"Cannot load configuration: {exc}"))
        sys.exit(2)

    _apply_overrides(
        config,
        section_name=section_name,
        profile=profile,
        base_address=base_address,
        section_address=section_address,
        list_sections=list_sections,
        no_bytes=no_bytes,
        verbose=verbose,
    )

    settings = config.global_settings
    logger = LensLogger(
        "engine",
        log_level=settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
        show_locals=settings.debug,
    )

    try:
        engine = LensEngine(config=config, logger=logger)
    except KeyError as exc:
        console.error(escape(str(exc.args[0]) if exc.args else str(exc)))
        sys.exit(2)

    results: list[DisassemblyResult] = []
    failed = 0

    try:
        for path in paths:
            scan = engine.analyze(path)
            raw = scan.metadata.get("disassembly")
            if raw is not None:
                result = DisassemblyResult.model_validate(raw)
            else:
                result = DisassemblyResult(target=scan.target, error=scan.error)
            results.append(result)
            if not scan.ok:
                failed += 1
    except KeyboardInterrupt:
        console.warning("Analysis interrupted by user.")
        sys.exit(130)

    report_gen = LensReportGenerator()

    if json_output:
        click.echo(json.dumps(report_gen.build_document(results), indent=2))
    else:
        output_display = LensConsoleOutput(
            console=console, show_bytes=config.scan.show_bytes
        )
        console.banner(__version__)
        for result in results:
            output_display.display(result)
        console.blank()
        console.info(
            f"Analysed {len(results)} file(s), {failed} failed."
        )

    if output_path:
        report_path = report_gen.generate_json(results, output_path)
        if not json_output:
            console.success(f"JSON report saved: {report_path}")

    sys.exit(1 if failed else 0)


def _apply_overrides(
    config: LensConfig,
    *,
    section_name: Optional[str],
    profile: Optional[str],
    base_address: Optional[int],
    section_address: bool,
    list_sections: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """Fold command-line options into *config*; unset options keep the file's values."""
    scan = config.scan
    if section_name is not None:
        scan.section_name = section_name
    if profile is not None:
        scan.profile = profile
    if base_address is not None:
        scan.base_address = base_address
    if section_address:
        scan.use_section_address = True
    if list_sections:
        scan.list_sections = True
    if no_bytes:
        scan.show_bytes = False
    if verbose:
        config.global_settings.log_level = "DEBUG"
        config.global_settings.debug = True


def main() -> None:
    """Entry point for ``elflens`` and ``python -m elflens``."""
    elflens_cli()


if __name__ == "__main__":
    main()
