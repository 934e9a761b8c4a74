"""
ElfLens Shared Data Models
===========================

Pydantic v2 models shared by the ElfLens engine, CLI, and report
generators: the per-input scan envelope (:class:`ScanResult`) and the
serialisable form of a pipeline failure (:class:`ErrorInfo`).

References:
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import datetime as _dt
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


# ========================== Enumerations ===================================


class ScanStatus(str, Enum):
    """Outcome of a single scan.

    Attributes:
        OK:     Every pipeline stage completed.
        FAILED: A stage raised; see :attr:`ScanResult.error`.
    """

    OK = "OK"
    FAILED = "FAILED"


# ========================== Core Models ====================================


class ErrorInfo(BaseModel):
    """Serialisable description of a pipeline failure.

    Attributes:
        stage:   Pipeline stage that failed (``header``, ``section``,
                 ``decode``, ``read``, ``io`` or ``internal``).
        code:    Stable machine-readable error code, e.g. ``bad_magic``.
        message: Human-readable explanation.
    """

    model_config = ConfigDict(frozen=True)

    stage: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    message: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        """Build from an exception carrying ``stage``/``code`` attributes.

        Exceptions without them are reported as ``internal`` failures.
        """
        return cls(
            stage=getattr(exc, "stage", "internal"),
            code=getattr(exc, "code", "internal"),
            message=str(exc) or exc.__class__.__name__,
        )


class ScanResult(BaseModel):
    """Envelope for one scan run.

    Bundles the target, timing, outcome, and the raw analysis payload
    (``metadata``) into one serialisable object for the CLI and reports.

    Attributes:
        tool_name:  Name of the tool that produced the scan.
        target:     File that was analysed.
        start_time: UTC timestamp when the scan started.
        end_time:   UTC timestamp when the scan ended.
        status:     Overall outcome.
        error:      Failure details when ``status`` is FAILED.
        summary:    Human-readable result summary.
        metadata:   Analysis payload keyed by kind.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
        extra="ignore",
    )

    tool_name: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    start_time: _dt.datetime = Field(default_factory=_utcnow)
    end_time: Optional[_dt.datetime] = None
    status: ScanStatus = ScanStatus.OK
    error: Optional[ErrorInfo] = None
    summary: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed scan time in seconds, or ``None`` if *end_time* is unset."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def ok(self) -> bool:
        return self.status is ScanStatus.OK

    def fail(self, error: ErrorInfo) -> ScanResult:
        """Record *error* and mark the scan FAILED."""
        self.error = error
        self.status = ScanStatus.FAILED
        return self

    def finalize(self, summary: str | None = None) -> ScanResult:
        """Mark the scan as complete by setting *end_time* and *summary*.

        If *summary* is ``None`` a default is generated from the outcome.

        Returns:
            ``self`` for fluent chaining.
        """
        self.end_time = _utcnow()
        if summary is not None:
            self.summary = summary
        elif self.error is not None:
            self.summary = f"Scan failed [{self.error.code}]: {self.error.message}"
        else:
            self.summary = "Scan complete."
        return self
