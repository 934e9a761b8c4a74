"""
ElfLens Configuration Management
=================================

Centralized configuration for ElfLens using Python dataclasses and
TOML-based persistence.  Command-line options override the loaded values.

Example ``elflens.toml``::

    [global]
    log_level = "DEBUG"
    log_file = "logs/elflens.log"
    log_json = true

    [scan]
    section_name = ".text"
    profile = "auto"
    base_address = 0x401000

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional, get_args, get_type_hints

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "elflens.toml"


# ========================== Tool Settings ==================================


@dataclass(slots=True)
class ScanConfig:
    """Settings for locating and decoding the code section.

    ``profile`` is ``"auto"`` (pick by file class: ``x86_64`` for ELF64,
    ``x86`` for ELF32) or the name of a decode profile.  When
    ``use_section_address`` is set, listing addresses start at the
    section's virtual address instead of ``base_address``.
    """

    section_name: str = ".text"
    profile: str = "auto"
    base_address: int = 0
    use_section_address: bool = False
    list_sections: bool = False
    max_file_size: int = 52_428_800  # 50 MiB
    show_bytes: bool = True


# =========================== Global Settings ===============================


@dataclass(slots=True)
class GlobalConfig:
    """Logging verbosity and general operational parameters.

    ``debug`` adds local variables to the tracebacks of unexpected errors.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(slots=True)
class LensConfig:
    """Master configuration aggregating global and scan settings.

    Usage:
        >>> config = LensConfig.load()                  # from default path
        >>> config = LensConfig.load("custom.toml")     # from custom path
        >>> print(config.scan.section_name)
        '.text'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> LensConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``elflens.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`LensConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            ValueError: If a table or a known key holds a value of the
                wrong type.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {}), "global"),
            scan=cls._build_section(ScanConfig, raw.get("scan", {}), "scan"),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: Any, table: str) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are ignored; known keys must hold
        a value of the field's declared type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"[{table}] must be a table, got {type(data).__name__}")

        hints = get_type_hints(cls)
        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in hints:
                continue
            allowed = get_args(hints[key]) or (hints[key],)
            if not any(_is_instance(value, kind) for kind in allowed):
                names = " or ".join(kind.__name__ for kind in allowed)
                raise ValueError(
                    f"[{table}] {key} must be {names}, got {type(value).__name__}"
                )
            filtered[key] = value
        return cls(**filtered)


def _is_instance(value: Any, kind: type) -> bool:
    # bool is an int subclass; TOML true/false is never a valid integer here
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


# ========================= Module-level convenience ========================

def get_config(path: str | Path | None = None) -> LensConfig:
    """Module-level convenience wrapper around :meth:`LensConfig.load`.

    Caches the result so that repeated calls share one instance.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = LensConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
