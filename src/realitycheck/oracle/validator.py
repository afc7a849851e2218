"""
realitycheck — oracle response validator

File: src/realitycheck/oracle/validator.py
Last updated: 2026-10-16

Purpose
- Turns untrusted oracle text into a `PartialReport` plus a list of
  `ValidationIssue` diagnostics.

Functional requirements
- Steps in order: strip an enclosing code fence; parse JSON (one heuristic
  escape repair on failure); require `coverage.spec` and `coverage.plan`;
  check enumerated fields; check drift/violation identifiers; ground every
  evidence path against the code index.
- `json_parse` and `required_field` issues are fatal and yield no report.
  Every other issue is non-fatal and the report is kept.
- Ungrounded evidence is downgraded to LOW confidence in place.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Final, NoReturn

import structlog

from realitycheck.domain.models import (
    DRIFT_ID_PATTERN,
    VIOLATION_ID_PATTERN,
    Confidence,
    CoverageStatus,
    Evidence,
    PartialReport,
    Severity,
    ValidationIssue,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from realitycheck.inventory.index import Index

logger = structlog.get_logger(__name__)

JSON_PARSE_FIELD: Final[str] = "json_parse"
REQUIRED_FIELD: Final[str] = "required_field"

_FENCE_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:`{3}|~{3})[^\n]*\n(.*?)(?:`{3}|~{3})\s*$", re.DOTALL | re.ASCII
)
_OPEN_FENCE_RE: Final[re.Pattern[str]] = re.compile(r"^(?:`{3}|~{3})[^\n]*\n")
# A backslash followed by a character that cannot start a JSON escape.
_INVALID_ESCAPE_RE: Final[re.Pattern[str]] = re.compile(r'\\([^"\\/bfnrtu])')

_VALID_STATUSES: Final[frozenset[str]] = frozenset(CoverageStatus)
_VALID_SEVERITIES: Final[frozenset[str]] = frozenset(Severity)
# Confidence is optional on evidence.
_VALID_CONFIDENCES: Final[frozenset[str]] = frozenset(Confidence) | {""}


def strip_code_fences(raw: str) -> str:
    """Remove an enclosing ``` or ~~~ fence, or a lone opening fence from a truncated reply."""

    text = raw.strip()
    match = _FENCE_RE.match(text)
    if match is not None:
        return match.group(1).strip()
    opening = _OPEN_FENCE_RE.match(text)
    if opening is not None:
        return text[opening.end() :].strip()
    return text


def fix_invalid_escapes(text: str) -> str:
    """Double every backslash that does not begin a valid JSON escape."""

    return _INVALID_ESCAPE_RE.sub(r"\\\\\1", text)


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"invalid JSON literal {name}")


def _decode(text: str) -> tuple[object, PartialReport]:
    # NaN and Infinity are not JSON.
    document: object = json.loads(text, parse_constant=_reject_constant)
    return document, PartialReport.from_dict(document)


def _missing_required(document: object) -> list[ValidationIssue]:
    coverage = document.get("coverage") if isinstance(document, Mapping) else None
    if not isinstance(coverage, Mapping):
        coverage = {}
    issues: list[ValidationIssue] = []
    for key in ("spec", "plan"):
        if coverage.get(key) is None:
            issues.append(ValidationIssue(REQUIRED_FIELD, f"coverage.{key} is missing"))
    return issues


def _check_confidences(prefix: str, evidence: Iterable[Evidence]) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            f"{prefix}.evidence[{index}].confidence",
            f"invalid confidence {json.dumps(item.confidence)}",
        )
        for index, item in enumerate(evidence)
        if item.confidence not in _VALID_CONFIDENCES
    ]


def validate_enums(report: PartialReport) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for section, entries in (("spec", report.coverage.spec), ("plan", report.coverage.plan)):
        for index, entry in enumerate(entries):
            prefix = f"coverage.{section}[{index}]"
            if entry.status not in _VALID_STATUSES:
                issues.append(
                    ValidationIssue(
                        f"{prefix}.status", f"invalid status {json.dumps(entry.status)}"
                    )
                )
            issues.extend(_check_confidences(prefix, entry.evidence))

    for section, findings in (("drift", report.drift), ("violations", report.violations)):
        for index, finding in enumerate(findings):
            prefix = f"{section}[{index}]"
            if finding.severity not in _VALID_SEVERITIES:
                issues.append(
                    ValidationIssue(
                        f"{prefix}.severity", f"invalid severity {json.dumps(finding.severity)}"
                    )
                )
            issues.extend(_check_confidences(prefix, finding.evidence))
    return issues


def validate_ids(report: PartialReport) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for index, drift in enumerate(report.drift):
        if DRIFT_ID_PATTERN.fullmatch(drift.id) is None:
            issues.append(
                ValidationIssue(
                    f"drift[{index}].id", f"id {json.dumps(drift.id)} does not match DRIFT-\\d+"
                )
            )
    for index, violation in enumerate(report.violations):
        if VIOLATION_ID_PATTERN.fullmatch(violation.id) is None:
            issues.append(
                ValidationIssue(
                    f"violations[{index}].id",
                    f"id {json.dumps(violation.id)} does not match VIOLATION-\\d+",
                )
            )
    return issues


def ground_evidence(report: PartialReport, known_paths: frozenset[str]) -> list[ValidationIssue]:
    """Downgrade evidence whose path is not in the index. Mutates `report`."""

    issues: list[ValidationIssue] = []
    for prefix, evidence in report.evidence_sites():
        for index, item in enumerate(evidence):
            if not item.path or item.path in known_paths:
                continue
            item.confidence = Confidence.LOW.value
            issues.append(
                ValidationIssue(
                    f"{prefix}[{index}].path",
                    f"path {json.dumps(item.path)} not found in code index; "
                    "confidence downgraded to LOW",
                )
            )
    return issues


def validate_response(
    raw: str, index: Index
) -> tuple[PartialReport | None, list[ValidationIssue]]:
    """Parse and validate one oracle response against the code index."""

    text = strip_code_fences(raw)
    try:
        document, report = _decode(text)
    except ValueError as first_error:
        repaired = fix_invalid_escapes(text)
        try:
            document, report = _decode(repaired)
        except ValueError:
            return None, [ValidationIssue(JSON_PARSE_FIELD, str(first_error))]
        logger.info("oracle_response_escapes_repaired")

    missing = _missing_required(document)
    if missing:
        return None, missing

    issues = validate_enums(report)
    issues.extend(validate_ids(report))
    issues.extend(ground_evidence(report, index.known_paths()))
    return report, issues


def needs_repair(report: PartialReport | None, issues: Iterable[ValidationIssue]) -> bool:
    return report is None or any(issue.fatal for issue in issues)


__all__ = [
    "JSON_PARSE_FIELD",
    "REQUIRED_FIELD",
    "fix_invalid_escapes",
    "ground_evidence",
    "needs_repair",
    "strip_code_fences",
    "validate_enums",
    "validate_ids",
    "validate_response",
]
