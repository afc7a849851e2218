"""
realitycheck — report data model

File: src/realitycheck/domain/models.py
Last updated: 2026-10-12

Purpose
- Canonical types for declared intent (Item), oracle findings (coverage, drift,
  violations) and the final report document.

What should be included in this file
- Closed value sets (Verdict, CoverageStatus, Severity, Confidence).
- Immutable Item and ValidationIssue records.
- Mutable finding records so the validator can downgrade evidence in place.
- Strict decoders (from_dict) for untrusted oracle payloads and canonical
  serializers (to_dict) for the report document.

Functional requirements
- Decoders accept missing or null fields as empty values and reject wrong JSON
  types with a ValueError naming the offending path.
- Enumerated fields are decoded as plain strings so out-of-set values survive
  decoding and can be reported by the validator verbatim.
- Optional text fields (notes, quote, symbol, confidence) are omitted from
  to_dict output when empty.

Non-functional requirements
- No I/O and no logging.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final, NoReturn

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

FATAL_ISSUE_FIELDS: Final[frozenset[str]] = frozenset({"json_parse", "required_field"})

DRIFT_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^DRIFT-\d+$", re.ASCII)
VIOLATION_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^VIOLATION-\d+$", re.ASCII)

SPEC_REFERENCE_KEY: Final[str] = "spec_reference"
PLAN_REFERENCE_KEY: Final[str] = "plan_reference"


class Verdict(StrEnum):
    ALIGNED = "ALIGNED"
    PARTIALLY_ALIGNED = "PARTIALLY_ALIGNED"
    DRIFT_DETECTED = "DRIFT_DETECTED"
    VIOLATION = "VIOLATION"


class CoverageStatus(StrEnum):
    IMPLEMENTED = "IMPLEMENTED"
    PARTIAL = "PARTIAL"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    UNCLEAR = "UNCLEAR"


class Severity(StrEnum):
    INFO = "INFO"
    WARN = "WARN"
    CRITICAL = "CRITICAL"


class Confidence(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


VERDICT_ORDER: Final[tuple[Verdict, ...]] = tuple(Verdict)
SEVERITY_ORDER: Final[tuple[Severity, ...]] = tuple(Severity)


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _as_object(value: object, path: str) -> Mapping[str, object]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")
    return value


def _as_list(value: object, path: str) -> list[object]:
    if value is None:
        return []
    if not isinstance(value, list):
        _fail(path, f"expected array, got {type(value).__name__}")
    return value


def _as_str(value: object, path: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    return value


def _as_int(value: object, path: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(path, f"expected integer, got {type(value).__name__}")
    return value


def _as_float(value: object, path: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(path, f"expected number, got {type(value).__name__}")
    return float(value)


def _as_bool(value: object, path: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        _fail(path, f"expected boolean, got {type(value).__name__}")
    return value


def _decode_evidence(value: object, path: str) -> list[Evidence]:
    return [
        Evidence.from_dict(item, f"{path}[{index}]")
        for index, item in enumerate(_as_list(value, path))
    ]


@dataclass(frozen=True, slots=True)
class Item:
    """One discrete unit of declared intent with its 1-indexed source lines."""

    id: str
    line_start: int
    line_end: int
    text: str

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Item.id must not be empty")
        if self.line_start < 1:
            raise ValueError(f"Item.line_start must be >= 1, got {self.line_start}")
        if self.line_end < self.line_start:
            raise ValueError(
                f"Item.line_end ({self.line_end}) must be >= line_start ({self.line_start})"
            )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validation failure on an oracle response."""

    field: str
    message: str

    @property
    def fatal(self) -> bool:
        return self.field in FATAL_ISSUE_FIELDS

    def __str__(self) -> str:
        return f"validation: {self.field}: {self.message}"

    def to_dict(self) -> dict[str, JSONValue]:
        return {"field": self.field, "message": self.message, "fatal": self.fatal}


@dataclass(slots=True)
class Reference:
    line_start: int = 0
    line_end: int = 0
    quote: str = ""

    @classmethod
    def from_dict(cls, data: object, path: str) -> Reference:
        parsed = _as_object(data, path)
        return cls(
            line_start=_as_int(parsed.get("line_start"), f"{path}.line_start"),
            line_end=_as_int(parsed.get("line_end"), f"{path}.line_end"),
            quote=_as_str(parsed.get("quote"), f"{path}.quote"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {
            "line_start": self.line_start,
            "line_end": self.line_end,
        }
        if self.quote:
            payload["quote"] = self.quote
        return payload


@dataclass(slots=True)
class Evidence:
    """A citation from a finding back into the code inventory."""

    path: str
    symbol: str = ""
    confidence: str = ""

    @classmethod
    def from_dict(cls, data: object, path: str) -> Evidence:
        parsed = _as_object(data, path)
        return cls(
            path=_as_str(parsed.get("path"), f"{path}.path"),
            symbol=_as_str(parsed.get("symbol"), f"{path}.symbol"),
            confidence=_as_str(parsed.get("confidence"), f"{path}.confidence"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"path": self.path}
        if self.symbol:
            payload["symbol"] = self.symbol
        if self.confidence:
            payload["confidence"] = self.confidence
        return payload


@dataclass(slots=True)
class CoverageEntry:
    """Implementation status of one spec or plan item."""

    id: str
    status: str
    reference: Reference = field(default_factory=Reference)
    evidence: list[Evidence] = field(default_factory=list)
    notes: str = ""

    @classmethod
    def from_dict(cls, data: object, path: str, *, reference_key: str) -> CoverageEntry:
        parsed = _as_object(data, path)
        return cls(
            id=_as_str(parsed.get("id"), f"{path}.id"),
            status=_as_str(parsed.get("status"), f"{path}.status"),
            reference=Reference.from_dict(
                parsed.get(reference_key), f"{path}.{reference_key}"
            ),
            evidence=_decode_evidence(parsed.get("evidence"), f"{path}.evidence"),
            notes=_as_str(parsed.get("notes"), f"{path}.notes"),
        )

    def to_dict(self, *, reference_key: str) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {
            "id": self.id,
            "status": self.status,
            reference_key: self.reference.to_dict(),
            "evidence": [item.to_dict() for item in self.evidence],
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


@dataclass(slots=True)
class Coverage:
    spec: list[CoverageEntry] = field(default_factory=list)
    plan: list[CoverageEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: object, path: str) -> Coverage:
        parsed = _as_object(data, path)
        return cls(
            spec=[
                CoverageEntry.from_dict(
                    item, f"{path}.spec[{index}]", reference_key=SPEC_REFERENCE_KEY
                )
                for index, item in enumerate(_as_list(parsed.get("spec"), f"{path}.spec"))
            ],
            plan=[
                CoverageEntry.from_dict(
                    item, f"{path}.plan[{index}]", reference_key=PLAN_REFERENCE_KEY
                )
                for index, item in enumerate(_as_list(parsed.get("plan"), f"{path}.plan"))
            ],
        )

    def entries(self) -> list[CoverageEntry]:
        return [*self.spec, *self.plan]

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "spec": [entry.to_dict(reference_key=SPEC_REFERENCE_KEY) for entry in self.spec],
            "plan": [entry.to_dict(reference_key=PLAN_REFERENCE_KEY) for entry in self.plan],
        }


@dataclass(slots=True)
class DriftFinding:
    """Code behavior with no supporting spec or plan authorization."""

    id: str
    severity: str
    description: str = ""
    evidence: list[Evidence] = field(default_factory=list)
    why_unjustified: str = ""
    impact: str = ""
    recommendation: str = ""

    @classmethod
    def from_dict(cls, data: object, path: str) -> DriftFinding:
        parsed = _as_object(data, path)
        return cls(
            id=_as_str(parsed.get("id"), f"{path}.id"),
            severity=_as_str(parsed.get("severity"), f"{path}.severity"),
            description=_as_str(parsed.get("description"), f"{path}.description"),
            evidence=_decode_evidence(parsed.get("evidence"), f"{path}.evidence"),
            why_unjustified=_as_str(parsed.get("why_unjustified"), f"{path}.why_unjustified"),
            impact=_as_str(parsed.get("impact"), f"{path}.impact"),
            recommendation=_as_str(parsed.get("recommendation"), f"{path}.recommendation"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "severity": self.severity,
            "description": self.description,
            "evidence": [item.to_dict() for item in self.evidence],
            "why_unjustified": self.why_unjustified,
            "impact": self.impact,
            "recommendation": self.recommendation,
        }


@dataclass(slots=True)
class Violation:
    """Code behavior that contradicts a declared constraint."""

    id: str
    severity: str
    description: str = ""
    reference: Reference = field(default_factory=Reference)
    evidence: list[Evidence] = field(default_factory=list)
    impact: str = ""
    blocking: bool = False

    @classmethod
    def from_dict(cls, data: object, path: str) -> Violation:
        parsed = _as_object(data, path)
        return cls(
            id=_as_str(parsed.get("id"), f"{path}.id"),
            severity=_as_str(parsed.get("severity"), f"{path}.severity"),
            description=_as_str(parsed.get("description"), f"{path}.description"),
            reference=Reference.from_dict(
                parsed.get(SPEC_REFERENCE_KEY), f"{path}.{SPEC_REFERENCE_KEY}"
            ),
            evidence=_decode_evidence(parsed.get("evidence"), f"{path}.evidence"),
            impact=_as_str(parsed.get("impact"), f"{path}.impact"),
            blocking=_as_bool(parsed.get("blocking"), f"{path}.blocking"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "severity": self.severity,
            "description": self.description,
            SPEC_REFERENCE_KEY: self.reference.to_dict(),
            "evidence": [item.to_dict() for item in self.evidence],
            "impact": self.impact,
            "blocking": self.blocking,
        }


@dataclass(slots=True)
class Meta:
    model: str = ""
    temperature: float = 0.0

    @classmethod
    def from_dict(cls, data: object, path: str) -> Meta:
        parsed = _as_object(data, path)
        return cls(
            model=_as_str(parsed.get("model"), f"{path}.model"),
            temperature=_as_float(parsed.get("temperature"), f"{path}.temperature"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {"model": self.model, "temperature": self.temperature}


@dataclass(slots=True)
class PartialReport:
    """The oracle-populated part of a report. Score and verdict are never read from it."""

    coverage: Coverage = field(default_factory=Coverage)
    drift: list[DriftFinding] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    meta: Meta = field(default_factory=Meta)

    @classmethod
    def from_dict(cls, data: object) -> PartialReport:
        if not isinstance(data, Mapping):
            _fail("report", f"expected object, got {type(data).__name__}")
        return cls(
            coverage=Coverage.from_dict(data.get("coverage"), "coverage"),
            drift=[
                DriftFinding.from_dict(item, f"drift[{index}]")
                for index, item in enumerate(_as_list(data.get("drift"), "drift"))
            ],
            violations=[
                Violation.from_dict(item, f"violations[{index}]")
                for index, item in enumerate(_as_list(data.get("violations"), "violations"))
            ],
            meta=Meta.from_dict(data.get("meta"), "meta"),
        )

    def evidence_sites(self) -> list[tuple[str, list[Evidence]]]:
        """Return every evidence list with its dotted field prefix, in report order."""

        sites: list[tuple[str, list[Evidence]]] = []
        for index, entry in enumerate(self.coverage.spec):
            sites.append((f"coverage.spec[{index}].evidence", entry.evidence))
        for index, entry in enumerate(self.coverage.plan):
            sites.append((f"coverage.plan[{index}].evidence", entry.evidence))
        for index, finding in enumerate(self.drift):
            sites.append((f"drift[{index}].evidence", finding.evidence))
        for index, violation in enumerate(self.violations):
            sites.append((f"violations[{index}].evidence", violation.evidence))
        return sites

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "coverage": self.coverage.to_dict(),
            "drift": [finding.to_dict() for finding in self.drift],
            "violations": [violation.to_dict() for violation in self.violations],
            "meta": self.meta.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ReportInput:
    spec_file: str
    plan_file: str
    code_root: str
    profile: str
    strict: bool

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "spec_file": self.spec_file,
            "plan_file": self.plan_file,
            "code_root": self.code_root,
            "profile": self.profile,
            "strict": self.strict,
        }


@dataclass(frozen=True, slots=True)
class ReportSummary:
    verdict: Verdict
    score: int
    critical_count: int
    warn_count: int
    info_count: int

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise ValueError(f"ReportSummary.score must be within [0, 100], got {self.score}")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "verdict": str(self.verdict),
            "score": self.score,
            "critical_count": self.critical_count,
            "warn_count": self.warn_count,
            "info_count": self.info_count,
        }


@dataclass(slots=True)
class Report:
    """Final report document: oracle findings merged with locally computed fields."""

    tool: str
    version: str
    input: ReportInput
    summary: ReportSummary
    coverage: Coverage = field(default_factory=Coverage)
    drift: list[DriftFinding] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    meta: Meta = field(default_factory=Meta)

    @classmethod
    def from_partial(
        cls,
        partial: PartialReport,
        *,
        tool: str,
        version: str,
        report_input: ReportInput,
        summary: ReportSummary,
    ) -> Report:
        return cls(
            tool=tool,
            version=version,
            input=report_input,
            summary=summary,
            coverage=Coverage(spec=list(partial.coverage.spec), plan=list(partial.coverage.plan)),
            drift=list(partial.drift),
            violations=list(partial.violations),
            meta=Meta(model=partial.meta.model, temperature=partial.meta.temperature),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input": self.input.to_dict(),
            "summary": self.summary.to_dict(),
            "coverage": self.coverage.to_dict(),
            "drift": [finding.to_dict() for finding in self.drift],
            "violations": [violation.to_dict() for violation in self.violations],
            "meta": self.meta.to_dict(),
        }


__all__ = [
    "DRIFT_ID_PATTERN",
    "FATAL_ISSUE_FIELDS",
    "PLAN_REFERENCE_KEY",
    "SEVERITY_ORDER",
    "SPEC_REFERENCE_KEY",
    "VERDICT_ORDER",
    "VIOLATION_ID_PATTERN",
    "Confidence",
    "Coverage",
    "CoverageEntry",
    "CoverageStatus",
    "DriftFinding",
    "Evidence",
    "Item",
    "JSONValue",
    "Meta",
    "PartialReport",
    "Reference",
    "Report",
    "ReportInput",
    "ReportSummary",
    "Severity",
    "ValidationIssue",
    "Verdict",
    "Violation",
]
