"""Drift-finding helpers: field checks, severity tallies and output filtering."""

from __future__ import annotations

from typing import TYPE_CHECKING

from realitycheck.domain.models import DriftFinding, Severity
from realitycheck.verdict.engine import SeverityCounts, count_by_severity, severity_ordinal

if TYPE_CHECKING:
    from collections.abc import Iterable

    from realitycheck.domain.models import Report


def validate_drift_finding(finding: DriftFinding) -> list[str]:
    problems: list[str] = []
    if not finding.id:
        problems.append("id is required")
    if not finding.severity:
        problems.append("severity is required")
    elif severity_ordinal(finding.severity) < 0:
        problems.append(f"severity {finding.severity!r} is not valid")
    if not finding.description:
        problems.append("description is required")
    return problems


def count_drift_by_severity(findings: Iterable[DriftFinding]) -> SeverityCounts:
    return count_by_severity(finding.severity for finding in findings)


def filter_by_severity(report: Report, threshold: Severity | None) -> Report:
    """Drop drift findings and violations below `threshold` from the rendered report.

    Summary counts, score and verdict are left untouched; they describe the full set.
    """

    if threshold is None:
        return report
    floor = severity_ordinal(threshold)
    report.drift = [f for f in report.drift if severity_ordinal(f.severity) >= floor]
    report.violations = [v for v in report.violations if severity_ordinal(v.severity) >= floor]
    return report


__all__ = ["count_drift_by_severity", "filter_by_severity", "validate_drift_finding"]
