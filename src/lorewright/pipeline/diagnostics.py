"""Per-attempt diagnostics and the optional failure sink.

Every failed validation attempt inside an orchestration is captured as an
``AttemptDiagnostic``. When the attempts run out, a ``FailureReport`` is
handed to an optional ``DiagnosticsSink``. The report always carries the
attempt count; the raw invalid JSON and the formatted error list are only
included when explicitly enabled.

A sink is passive: whatever it raises is logged and discarded, and never
changes the outcome of the orchestration.
"""

from __future__ import annotations

import copy
import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from lorewright.core.constants import DIAGNOSTICS_LOG_LIMIT
from lorewright.core.logging import get_logger
from lorewright.schemas.registry import ValidationIssue


logger = get_logger(__name__)


# =============================================================================
# Attempt Records
# =============================================================================


@dataclass(frozen=True)
class AttemptDiagnostic:
    """One failed validation attempt.

    Attributes:
        attempt: 1-based attempt number.
        errors: Structural errors reported by the validator.
        payload: Snapshot of the candidate as it entered the attempt.
        normalized: Snapshot of the normalized candidate that failed.
    """

    attempt: int
    errors: tuple[ValidationIssue, ...]
    payload: Any = field(repr=False)
    normalized: Any = field(repr=False)

    def formatted_errors(self) -> list[str]:
        return [issue.format() for issue in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt": self.attempt,
            "errors": [issue.to_dict() for issue in self.errors],
            "payload": copy.deepcopy(self.payload),
            "normalized": copy.deepcopy(self.normalized),
        }


@dataclass(frozen=True)
class FailureReport:
    """What a diagnostics sink receives when an orchestration is exhausted.

    Attributes:
        kind: Entity kind tag.
        attempts: Number of attempts made.
        invalid_json: Last normalized candidate as indented JSON, if enabled.
        errors: Formatted errors of the last attempt, if enabled.
    """

    kind: str
    attempts: int
    invalid_json: str | None = None
    errors: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        report: dict[str, Any] = {"kind": self.kind, "attempts": self.attempts}
        if self.invalid_json is not None:
            report["invalid_json"] = self.invalid_json
        if self.errors is not None:
            report["errors"] = list(self.errors)
        return report


def build_failure_report(
    kind: str,
    diagnostics: list[AttemptDiagnostic],
    last_payload: Any,
    *,
    include_invalid_json: bool = False,
    include_errors: bool = False,
) -> FailureReport:
    """Assemble a failure report, honoring the two inclusion toggles."""
    invalid_json = None
    if include_invalid_json:
        invalid_json = json.dumps(last_payload, indent=2, default=str)
    errors = None
    if include_errors and diagnostics:
        errors = diagnostics[-1].formatted_errors()
    return FailureReport(
        kind=kind,
        attempts=len(diagnostics),
        invalid_json=invalid_json,
        errors=errors,
    )


# =============================================================================
# Sinks
# =============================================================================


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receiver of exhausted-orchestration reports."""

    def record_failure(self, report: FailureReport) -> None:
        ...


class LoggingDiagnosticsSink:
    """Sink that emits each report as a structured warning."""

    def record_failure(self, report: FailureReport) -> None:
        logger.warning("Validation failure recorded", **report.to_dict())


@dataclass(frozen=True)
class RecordedFailure:
    """A report kept by MemoryDiagnosticsSink, stamped with its arrival time."""

    report: FailureReport
    recorded_at: datetime


class MemoryDiagnosticsSink:
    """Bounded in-memory log of the most recent failure reports.

    Example:
        >>> sink = MemoryDiagnosticsSink(limit=2)
        >>> for n in range(3):
        ...     sink.record_failure(FailureReport(kind="item", attempts=n))
        >>> [entry.report.attempts for entry in sink.entries]
        [1, 2]
    """

    def __init__(self, limit: int = DIAGNOSTICS_LOG_LIMIT) -> None:
        self._entries: deque[RecordedFailure] = deque(maxlen=limit)

    def record_failure(self, report: FailureReport) -> None:
        self._entries.append(RecordedFailure(report=report, recorded_at=datetime.now(timezone.utc)))

    @property
    def entries(self) -> list[RecordedFailure]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def report_failure(sink: DiagnosticsSink | None, report: FailureReport) -> None:
    """Deliver a report to a sink; sink errors are logged, never raised."""
    if sink is None:
        return
    try:
        sink.record_failure(report)
    except Exception:
        logger.warning(
            "Diagnostics sink failed",
            sink=type(sink).__name__,
            kind=report.kind,
            exc_info=True,
        )


__all__ = [
    "AttemptDiagnostic",
    "FailureReport",
    "build_failure_report",
    "DiagnosticsSink",
    "LoggingDiagnosticsSink",
    "RecordedFailure",
    "MemoryDiagnosticsSink",
    "report_failure",
]
