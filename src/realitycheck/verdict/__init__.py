"""Deterministic verdict engine and finding helpers."""

from realitycheck.verdict.coverage import (
    CoverageTally,
    parse_coverage_status,
    summarize_coverage,
    validate_coverage_entry,
)
from realitycheck.verdict.engine import (
    SeverityCounts,
    compute_score,
    count_by_severity,
    count_severities,
    determine_verdict,
    escalate_drift,
    escalate_severity,
    severity_ordinal,
    summarize,
    verdict_ordinal,
)
from realitycheck.verdict.findings import (
    count_drift_by_severity,
    filter_by_severity,
    validate_drift_finding,
)

__all__ = [
    "CoverageTally",
    "SeverityCounts",
    "compute_score",
    "count_by_severity",
    "count_drift_by_severity",
    "count_severities",
    "determine_verdict",
    "escalate_drift",
    "escalate_severity",
    "filter_by_severity",
    "parse_coverage_status",
    "severity_ordinal",
    "summarize",
    "summarize_coverage",
    "validate_coverage_entry",
    "validate_drift_finding",
    "verdict_ordinal",
]
