"""
realitycheck — deterministic verdict engine

File: src/realitycheck/verdict/engine.py
Last updated: 2026-10-15

Purpose
- Convert validated findings into a reproducible score, severity counts and an
  overall verdict. Nothing here consults the oracle.

Functional requirements
- Score starts at 100; minus 20 per CRITICAL, 7 per WARN, 2 per INFO across
  drift findings and violations; clamped to [0, 100].
- Verdict precedence, first match wins:
  1. any CRITICAL violation -> VIOLATION
  2. any CRITICAL drift finding -> VIOLATION
  3. any drift finding -> DRIFT_DETECTED
  4. any PARTIAL / NOT_IMPLEMENTED / UNCLEAR coverage entry -> PARTIALLY_ALIGNED
  5. otherwise -> ALIGNED
  A non-CRITICAL violation alone does not lower the verdict.
- Strict escalation raises drift severities one level (INFO -> WARN ->
  CRITICAL); CRITICAL saturates; violations are never escalated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from realitycheck.constants import CRITICAL_PENALTY, INFO_PENALTY, SCORE_START, WARN_PENALTY
from realitycheck.domain.models import (
    SEVERITY_ORDER,
    VERDICT_ORDER,
    CoverageStatus,
    DriftFinding,
    PartialReport,
    ReportSummary,
    Severity,
    Verdict,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

_ESCALATION: Final[dict[str, Severity]] = {
    Severity.INFO: Severity.WARN,
    Severity.WARN: Severity.CRITICAL,
}
_UNRESOLVED_STATUSES: Final[frozenset[str]] = frozenset(
    {CoverageStatus.PARTIAL, CoverageStatus.NOT_IMPLEMENTED, CoverageStatus.UNCLEAR}
)


@dataclass(frozen=True, slots=True)
class SeverityCounts:
    critical: int = 0
    warn: int = 0
    info: int = 0


def compute_score(critical: int, warn: int, info: int) -> int:
    score = SCORE_START - critical * CRITICAL_PENALTY - warn * WARN_PENALTY - info * INFO_PENALTY
    return max(0, min(SCORE_START, score))


def verdict_ordinal(verdict: str) -> int:
    """ALIGNED=0 ... VIOLATION=3; unknown values map to -1."""

    try:
        return VERDICT_ORDER.index(Verdict(verdict))
    except ValueError:
        return -1


def severity_ordinal(severity: str) -> int:
    """INFO=0, WARN=1, CRITICAL=2; unknown values map to -1."""

    try:
        return SEVERITY_ORDER.index(Severity(severity))
    except ValueError:
        return -1


def count_by_severity(severities: Iterable[str]) -> SeverityCounts:
    critical = warn = info = 0
    for severity in severities:
        if severity == Severity.CRITICAL:
            critical += 1
        elif severity == Severity.WARN:
            warn += 1
        elif severity == Severity.INFO:
            info += 1
    return SeverityCounts(critical=critical, warn=warn, info=info)


def count_severities(report: PartialReport) -> SeverityCounts:
    """Aggregate severities across drift findings and violations. Unknown values are not counted."""

    return count_by_severity(
        [
            *(finding.severity for finding in report.drift),
            *(violation.severity for violation in report.violations),
        ]
    )


def determine_verdict(report: PartialReport) -> Verdict:
    if any(violation.severity == Severity.CRITICAL for violation in report.violations):
        return Verdict.VIOLATION
    # Maximum-severity unauthorized behavior ranks with a declared-constraint breach.
    if any(finding.severity == Severity.CRITICAL for finding in report.drift):
        return Verdict.VIOLATION
    if report.drift:
        return Verdict.DRIFT_DETECTED
    if any(entry.status in _UNRESOLVED_STATUSES for entry in report.coverage.entries()):
        return Verdict.PARTIALLY_ALIGNED
    return Verdict.ALIGNED


def escalate_severity(finding: DriftFinding, strict: bool) -> DriftFinding:
    """Return `finding` with its severity raised one level when `strict` is set."""

    if not strict:
        return finding
    escalated = _ESCALATION.get(finding.severity)
    if escalated is None:
        return finding
    return replace(finding, severity=str(escalated))


def escalate_drift(report: PartialReport, strict: bool) -> PartialReport:
    """Apply `escalate_severity` to every drift finding in place and return the report."""

    report.drift = [escalate_severity(finding, strict) for finding in report.drift]
    return report


def summarize(report: PartialReport) -> ReportSummary:
    counts = count_severities(report)
    return ReportSummary(
        verdict=determine_verdict(report),
        score=compute_score(counts.critical, counts.warn, counts.info),
        critical_count=counts.critical,
        warn_count=counts.warn,
        info_count=counts.info,
    )


__all__ = [
    "SeverityCounts",
    "compute_score",
    "count_by_severity",
    "count_severities",
    "determine_verdict",
    "escalate_drift",
    "escalate_severity",
    "severity_ordinal",
    "summarize",
    "verdict_ordinal",
]
