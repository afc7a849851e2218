"""Output rendering for realitycheck reports and auxiliary CLI listings.

File: src/realitycheck/ui/render.py
Last updated: 2026-10-17

Purpose
- Render a finished `Report` as indented JSON or GitHub-flavoured Markdown.
- Provide a thin plain-text renderer for the `profiles` listing.

Functional requirements
- Every finding ID in the report appears in the Markdown output.
- Rendered output always ends with a newline.

Non-functional requirements
- Deterministic output for identical reports; no terminal colors.
"""

from __future__ import annotations

import json
import sys
from typing import IO, TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

    from realitycheck.domain.models import CoverageEntry, Evidence, Report

FORMATS: Final[tuple[str, ...]] = ("json", "md")


def render_json(report: Report) -> str:
    """Two-space indented JSON with a trailing newline."""

    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n"


def md_escape(text: str) -> str:
    """Make text safe for a single Markdown table cell or summary line."""

    return text.replace("|", "\\|").replace("\n", " ").replace("\r", "")


def render_markdown(report: Report) -> str:
    """GitHub-flavoured Markdown summary, suitable for PR comments."""

    summary = report.summary
    lines: list[str] = [
        "## RealityCheck Report",
        "",
        f"**Verdict:** {summary.verdict}  ",
        f"**Score:** {summary.score}/100  ",
        f"**Critical:** {summary.critical_count} | **Warn:** {summary.warn_count} "
        f"| **Info:** {summary.info_count}",
        "",
    ]

    lines.extend(_coverage_table("Spec Coverage", report.coverage.spec))
    lines.extend(_coverage_table("Plan Coverage", report.coverage.plan))

    if report.drift:
        lines.extend(["## Drift Findings", ""])
        for finding in report.drift:
            lines.extend(_details_open(finding.id, finding.severity, finding.description))
            lines.extend(_evidence_block(finding.evidence))
            if finding.why_unjustified:
                lines.extend([f"**Why unjustified:** {md_escape(finding.why_unjustified)}", ""])
            if finding.recommendation:
                lines.extend([f"**Recommendation:** {md_escape(finding.recommendation)}", ""])
            lines.extend(["</details>", ""])

    if report.violations:
        lines.extend(["## Violations", ""])
        for violation in report.violations:
            lines.extend(_details_open(violation.id, violation.severity, violation.description))
            lines.extend(_evidence_block(violation.evidence))
            if violation.impact:
                lines.extend([f"**Impact:** {md_escape(violation.impact)}", ""])
            blocking = "yes" if violation.blocking else "no"
            lines.extend([f"**Blocking:** {blocking}", "", "</details>", ""])

    return "\n".join(lines) + "\n"


def render_report(report: Report, output_format: str) -> str:
    if output_format == "json":
        return render_json(report)
    if output_format == "md":
        return render_markdown(report)
    raise ValueError(f'format must be "json" or "md", got {output_format!r}')


def _coverage_table(title: str, entries: Sequence[CoverageEntry]) -> list[str]:
    if not entries:
        return []
    lines = [f"## {title}", "", "| ID | Status | Notes |", "|---|---|---|"]
    lines.extend(f"| {entry.id} | {entry.status} | {md_escape(entry.notes)} |" for entry in entries)
    lines.append("")
    return lines


def _details_open(finding_id: str, severity: str, description: str) -> list[str]:
    return [
        "<details>",
        f"<summary><strong>{finding_id}</strong> [{severity}] \u2014 "
        f"{md_escape(description)}</summary>",
        "",
    ]


def _evidence_block(evidence: Sequence[Evidence]) -> list[str]:
    if not evidence:
        return []
    lines = ["**Evidence:**", ""]
    for item in evidence:
        if item.symbol:
            lines.append(f"- `{item.path}`: `{item.symbol}`")
        else:
            lines.append(f"- `{item.path}`")
    lines.append("")
    return lines


class CLIRenderer:
    """Thin plain-text renderer for non-report CLI output."""

    def __init__(self, *, stream: IO[str] | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def text(self, line: str) -> None:
        print(line, file=self._stream)

    def table(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        """Print a left-aligned ASCII table."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts = [
                (str(cells[i]) if i < len(cells) else "").ljust(widths[i])
                for i in range(col_count)
            ]
            return "  ".join(parts).rstrip()

        self.text(_pad(list(headers)))
        self.text("  ".join("-" * w for w in widths))
        for row in rows:
            self.text(_pad(list(row)))


__all__ = [
    "FORMATS",
    "CLIRenderer",
    "md_escape",
    "render_json",
    "render_markdown",
    "render_report",
]
