"""
ElfLens Structured Logger
==========================

:class:`LensLogger` binds a component name to a stdlib logger under the
``elflens.`` namespace.  Records go to stderr through Rich and, when a
log file is configured, to a size-rotated file as plain text or as one
JSON object per line.

Records carry two context fields: ``tool_name`` (fixed per instance) and
``operation`` (the pipeline stage currently running, set with
:meth:`LensLogger.operation`).  Keyword arguments that are not standard
logging options are collected under ``lens_extra``.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_STDERR_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold white on red",
    }
)

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(operation)s | %(message)s"
_PLAIN_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# logging.Logger.log() keyword arguments that must not be folded into lens_extra
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel"})


class _JSONLineFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message`` and, when
    present, ``tool_name``, ``operation``, ``extra``, ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("tool_name", "operation"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        lens_extra = getattr(record, "lens_extra", None)
        if lens_extra:
            payload["extra"] = lens_extra
        if record.exc_info and record.exc_info[1] is not None:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _stderr_handler(level: int, show_locals: bool) -> RichHandler:
    # markup stays off: messages embed file-derived names and paths
    return RichHandler(
        level=level,
        console=Console(theme=_STDERR_THEME, stderr=True),
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=show_locals,
        markup=False,
    )


def _file_handler(
    path: Path,
    level: int,
    *,
    json_lines: bool,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    if json_lines:
        handler.setFormatter(_JSONLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt=_PLAIN_DATEFMT))
    return handler


class LensLogger:
    """Logger facade for one ElfLens component.

    Usage::

        log = LensLogger("engine", log_file="logs/elflens.log", json_logs=True)
        with log.operation("section_lookup"):
            log.debug("Looking for %s", name, offset=0x40)

    Args:
        tool_name:      Component name; the stdlib logger is ``elflens.<tool_name>``.
        log_level:      Minimum level name.  Unknown names fall back to INFO.
        log_file:       Rotating log file, or ``None`` for no file output.
        json_logs:      Write JSON lines instead of plain text to *log_file*.
        max_bytes:      Rotation threshold in bytes.
        backup_count:   Rotated files to keep.
        console_output: Attach the Rich stderr handler.
        show_locals:    Include local variables in Rich tracebacks.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
        console_output: bool = True,
        show_locals: bool = False,
    ) -> None:
        self._tool_name = tool_name
        self._operation: str | None = None

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        self._logger = logging.getLogger(f"elflens.{tool_name}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        # a second instance for the same component replaces the first one's handlers
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        if console_output:
            self._logger.addHandler(_stderr_handler(level, show_locals))
        if log_file is not None:
            self._logger.addHandler(_file_handler(
                Path(log_file),
                level,
                json_lines=json_logs,
                max_bytes=max_bytes,
                backup_count=backup_count,
            ))

    # ------------------------------------------------------------------ #
    #  Scopes
    # ------------------------------------------------------------------ #

    @contextmanager
    def operation(self, name: str) -> Iterator[LensLogger]:
        """Tag records emitted inside the block with ``operation=name``.

        Scopes nest; the enclosing operation is restored on exit.
        """
        outer = self._operation
        self._operation = name
        try:
            yield self
        finally:
            self._operation = outer

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log *label* at DEBUG on entry and again with the elapsed seconds on exit."""
        start = time.perf_counter()
        self.debug("Started: %s", label)
        try:
            yield
        finally:
            self.debug("Completed: %s (%.3f sec)", label, time.perf_counter() - start)

    # ------------------------------------------------------------------ #
    #  Emit
    # ------------------------------------------------------------------ #

    def _log(self, level: int, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        options = {k: kwargs.pop(k) for k in list(kwargs) if k in _LOGGING_KWARGS}
        extra = dict(kwargs.pop("extra", None) or {})
        extra["tool_name"] = self._tool_name
        extra["operation"] = self._operation
        if kwargs:
            extra["lens_extra"] = kwargs
        options.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, extra=extra, **options)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """ERROR with the active exception's traceback attached."""
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, kwargs)

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def tool_name(self) -> str:
        return self._tool_name

    @property
    def underlying(self) -> logging.Logger:
        """The wrapped :class:`logging.Logger`."""
        return self._logger
