"""
realitycheck — unit tests for the oracle response validator

File: tests/unit/oracle/test_validator.py
Last updated: 2026-10-18

Purpose
- Validate parsing, fatal/non-fatal classification, and evidence grounding of
  untrusted oracle responses.

What this test file should cover
- Fence stripping (closed and truncated) and invalid-escape repair.
- Required coverage arrays and wrong JSON types as fatal failures.
- Enum, identifier, and evidence-path checks as non-fatal corrections.
"""

from __future__ import annotations

import json

import pytest

from realitycheck.domain.models import Confidence
from realitycheck.inventory import FileEntry, Index, ManifestEntry
from realitycheck.oracle import (
    fix_invalid_escapes,
    needs_repair,
    strip_code_fences,
    validate_response,
)
from realitycheck.oracle.validator import JSON_PARSE_FIELD, REQUIRED_FIELD

INDEX = Index(
    files=(FileEntry(path="src/server.go", language="Go"),),
    dependency_manifests=(ManifestEntry(path="go.mod", content="module x\n"),),
    config_files=("config.yaml",),
)


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "coverage": {
            "spec": [
                {
                    "id": "SPEC-001",
                    "status": "IMPLEMENTED",
                    "spec_reference": {"line_start": 3, "line_end": 3},
                    "evidence": [
                        {"path": "src/server.go", "symbol": "Serve", "confidence": "HIGH"}
                    ],
                }
            ],
            "plan": [
                {
                    "id": "PLAN-001",
                    "status": "PARTIAL",
                    "plan_reference": {"line_start": 1, "line_end": 2},
                    "evidence": [],
                }
            ],
        },
        "drift": [],
        "violations": [],
        "meta": {"model": "test-model", "temperature": 0.2},
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
def test_strip_code_fences_variants() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('~~~\n{"a": 1}\n~~~\n') == '{"a": 1}'
    assert strip_code_fences('```json\n{"a": 1') == '{"a": 1'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


@pytest.mark.unit
def test_fix_invalid_escapes_doubles_only_invalid_backslashes() -> None:
    assert fix_invalid_escapes(r'"C:\path"') == r'"C:\\path"'
    assert fix_invalid_escapes(r'"line\nnext \"q\""') == r'"line\nnext \"q\""'


@pytest.mark.unit
def test_valid_response_has_no_issues() -> None:
    report, issues = validate_response(json.dumps(_payload()), INDEX)

    assert report is not None
    assert issues == []
    assert not needs_repair(report, issues)
    assert report.coverage.spec[0].evidence[0].confidence == "HIGH"
    assert report.meta.model == "test-model"


@pytest.mark.unit
def test_fenced_response_is_accepted() -> None:
    raw = "```json\n" + json.dumps(_payload()) + "\n```"
    report, issues = validate_response(raw, INDEX)

    assert report is not None
    assert issues == []


@pytest.mark.unit
def test_invalid_escape_is_repaired_once() -> None:
    raw = json.dumps(_payload()).replace('"test-model"', r'"C:\models\x"')
    report, issues = validate_response(raw, INDEX)

    assert report is not None
    assert report.meta.model == "C:\\models\\x"
    assert issues == []


@pytest.mark.unit
def test_unparseable_response_is_fatal_json_parse() -> None:
    report, issues = validate_response("I could not produce JSON, sorry.", INDEX)

    assert report is None
    assert [issue.field for issue in issues] == [JSON_PARSE_FIELD]
    assert issues[0].fatal
    assert needs_repair(report, issues)


@pytest.mark.unit
def test_top_level_array_is_fatal_json_parse() -> None:
    report, issues = validate_response("[1, 2, 3]", INDEX)

    assert report is None
    assert issues[0].field == JSON_PARSE_FIELD


@pytest.mark.unit
def test_wrong_json_type_for_known_field_is_fatal_json_parse() -> None:
    report, issues = validate_response(json.dumps(_payload(drift={"id": "DRIFT-1"})), INDEX)

    assert report is None
    assert issues[0].field == JSON_PARSE_FIELD
    assert "drift" in issues[0].message


@pytest.mark.unit
def test_missing_coverage_arrays_are_required_field_failures() -> None:
    report, issues = validate_response(json.dumps({"coverage": {"spec": []}}), INDEX)

    assert report is None
    assert [(issue.field, issue.message) for issue in issues] == [
        (REQUIRED_FIELD, "coverage.plan is missing")
    ]
    assert issues[0].fatal


@pytest.mark.unit
def test_missing_coverage_object_reports_both_arrays() -> None:
    report, issues = validate_response("{}", INDEX)

    assert report is None
    assert [issue.message for issue in issues] == [
        "coverage.spec is missing",
        "coverage.plan is missing",
    ]


@pytest.mark.unit
def test_invalid_enums_are_retained_and_reported() -> None:
    payload = _payload(
        drift=[
            {
                "id": "DRIFT-1",
                "severity": "SEVERE",
                "description": "Undeclared cache",
                "evidence": [{"path": "src/server.go", "confidence": "CERTAIN"}],
            }
        ],
        violations=[
            {"id": "VIOLATION-1", "severity": "LOW", "evidence": []},
        ],
    )
    payload["coverage"]["spec"][0]["status"] = "DONE"  # type: ignore[index]
    report, issues = validate_response(json.dumps(payload), INDEX)

    assert report is not None
    assert not needs_repair(report, issues)
    by_field = {issue.field: issue.message for issue in issues}
    assert by_field["coverage.spec[0].status"] == 'invalid status "DONE"'
    assert by_field["drift[0].severity"] == 'invalid severity "SEVERE"'
    assert by_field["drift[0].evidence[0].confidence"] == 'invalid confidence "CERTAIN"'
    assert by_field["violations[0].severity"] == 'invalid severity "LOW"'
    assert report.coverage.spec[0].status == "DONE"
    assert report.drift[0].severity == "SEVERE"
    assert all(not issue.fatal for issue in issues)


@pytest.mark.unit
def test_malformed_ids_are_non_fatal() -> None:
    payload = _payload(
        drift=[{"id": "drift-7", "severity": "WARN"}],
        violations=[{"id": "VIOL-1", "severity": "INFO"}],
    )
    report, issues = validate_response(json.dumps(payload), INDEX)

    assert report is not None
    assert {issue.field for issue in issues} == {"drift[0].id", "violations[0].id"}
    assert report.drift[0].id == "drift-7"


@pytest.mark.unit
def test_non_ascii_digits_do_not_satisfy_id_patterns() -> None:
    payload = _payload(
        drift=[{"id": "DRIFT-\u0663", "severity": "WARN"}],
        violations=[{"id": "VIOLATION-\uff11", "severity": "INFO"}],
    )
    report, issues = validate_response(json.dumps(payload), INDEX)

    assert report is not None
    assert {issue.field for issue in issues} == {"drift[0].id", "violations[0].id"}


@pytest.mark.unit
@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_numbers_are_fatal_json_parse(literal: str) -> None:
    raw = json.dumps(_payload()).replace("0.2", literal)

    report, issues = validate_response(raw, INDEX)

    assert report is None
    assert [issue.field for issue in issues] == [JSON_PARSE_FIELD]
    assert "invalid JSON literal" in issues[0].message

@pytest.mark.unit
def test_ungrounded_evidence_is_downgraded_to_low() -> None:
    payload = _payload(
        drift=[
            {
                "id": "DRIFT-1",
                "severity": "WARN",
                "evidence": [
                    {"path": "src/ghost.go", "confidence": "HIGH"},
                    {"path": "src/server.go", "confidence": "HIGH"},
                    {"path": "go.mod", "confidence": "MEDIUM"},
                ],
            }
        ]
    )
    report, issues = validate_response(json.dumps(payload), INDEX)

    assert report is not None
    evidence = report.drift[0].evidence
    assert [item.confidence for item in evidence] == [Confidence.LOW, "HIGH", "MEDIUM"]
    assert len(report.drift) == 1
    assert [issue.field for issue in issues] == ["drift[0].evidence[0].path"]
    assert "src/ghost.go" in issues[0].message
    assert not issues[0].fatal


@pytest.mark.unit
def test_nulls_decode_as_empty_values() -> None:
    payload = _payload(drift=None, violations=None, meta=None)
    report, issues = validate_response(json.dumps(payload), INDEX)

    assert report is not None
    assert issues == []
    assert report.drift == []
    assert report.meta.model == ""
