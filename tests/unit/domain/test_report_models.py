"""Unit tests for report model decoding, serialization and record validation."""

from __future__ import annotations

import pytest

from realitycheck.domain.models import (
    Item,
    PartialReport,
    Report,
    ReportInput,
    ReportSummary,
    ValidationIssue,
    Verdict,
)

ORACLE_PAYLOAD = {
    "coverage": {
        "spec": [
            {
                "id": "SPEC-001",
                "status": "IMPLEMENTED",
                "spec_reference": {"line_start": 3, "line_end": 4, "quote": "serve"},
                "evidence": [{"path": "main.go", "symbol": "Serve", "confidence": "HIGH"}],
                "notes": "",
            }
        ],
        "plan": [{"id": "PLAN-001", "status": "SHIPPED", "plan_reference": None}],
    },
    "drift": [
        {
            "id": "DRIFT-001",
            "severity": "WARN",
            "description": "Undeclared cache",
            "evidence": [{"path": "cache.go"}],
        }
    ],
    "violations": [],
    "meta": {"model": "m", "temperature": 1},
    "summary": {"verdict": "ALIGNED", "score": 100},
}


@pytest.mark.unit
def test_partial_report_decodes_oracle_payload() -> None:
    report = PartialReport.from_dict(ORACLE_PAYLOAD)

    spec_entry = report.coverage.spec[0]
    assert spec_entry.reference.line_start == 3
    assert spec_entry.reference.quote == "serve"
    assert spec_entry.evidence[0].symbol == "Serve"
    # Out-of-set values survive decoding for the validator to report.
    assert report.coverage.plan[0].status == "SHIPPED"
    assert report.coverage.plan[0].reference.line_start == 0
    assert report.drift[0].evidence[0].confidence == ""
    assert report.meta.temperature == 1.0
    assert [prefix for prefix, _ in report.evidence_sites()] == [
        "coverage.spec[0].evidence",
        "coverage.plan[0].evidence",
        "drift[0].evidence",
    ]


@pytest.mark.unit
def test_partial_report_null_sections_become_empty() -> None:
    report = PartialReport.from_dict({"coverage": None, "drift": None})

    assert report.coverage.entries() == []
    assert report.drift == []
    assert report.violations == []
    assert report.meta.model == ""


@pytest.mark.unit
@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "report: expected object, got list"),
        ({"drift": {}}, "drift: expected array, got dict"),
        ({"coverage": {"spec": [{"id": 7}]}}, "coverage.spec[0].id: expected string, got int"),
        (
            {"violations": [{"id": "VIOLATION-001", "blocking": "yes"}]},
            "violations[0].blocking: expected boolean, got str",
        ),
        ({"meta": {"temperature": True}}, "meta.temperature: expected number, got bool"),
    ],
)
def test_partial_report_rejects_wrong_json_types(payload: object, message: str) -> None:
    with pytest.raises(ValueError) as excinfo:
        PartialReport.from_dict(payload)

    assert str(excinfo.value) == message


@pytest.mark.unit
def test_serialization_omits_empty_optional_text() -> None:
    payload = PartialReport.from_dict(ORACLE_PAYLOAD).to_dict()

    spec_entry = payload["coverage"]["spec"][0]
    assert "notes" not in spec_entry
    assert payload["coverage"]["plan"][0]["plan_reference"] == {"line_start": 0, "line_end": 0}
    assert payload["drift"][0]["evidence"] == [{"path": "cache.go"}]
    assert "summary" not in payload


@pytest.mark.unit
def test_report_from_partial_copies_findings() -> None:
    partial = PartialReport.from_dict(ORACLE_PAYLOAD)
    report = Report.from_partial(
        partial,
        tool="realitycheck",
        version="0.1.0",
        report_input=ReportInput("SPEC.md", "PLAN.md", ".", "general", False),
        summary=ReportSummary(Verdict.DRIFT_DETECTED, 93, 0, 1, 0),
    )

    partial.drift.clear()

    assert [finding.id for finding in report.drift] == ["DRIFT-001"]
    assert list(report.to_dict())[:4] == ["tool", "version", "input", "summary"]
    assert report.to_dict()["summary"]["verdict"] == "DRIFT_DETECTED"


@pytest.mark.unit
def test_item_rejects_inverted_or_zero_lines() -> None:
    with pytest.raises(ValueError, match="line_start must be >= 1"):
        Item(id="SPEC-001", line_start=0, line_end=0, text="x")
    with pytest.raises(ValueError, match="must be >= line_start"):
        Item(id="SPEC-001", line_start=5, line_end=4, text="x")


@pytest.mark.unit
def test_summary_score_is_bounded() -> None:
    with pytest.raises(ValueError, match="within \\[0, 100\\]"):
        ReportSummary(Verdict.ALIGNED, 101, 0, 0, 0)


@pytest.mark.unit
def test_validation_issue_fatality_and_rendering() -> None:
    issue = ValidationIssue("json_parse", "unexpected end")

    assert issue.fatal is True
    assert ValidationIssue("drift[0].id", "bad").fatal is False
    assert str(issue) == "validation: json_parse: unexpected end"
    assert issue.to_dict() == {"field": "json_parse", "message": "unexpected end", "fatal": True}
