"""
realitycheck — domain layer

File: src/realitycheck/domain/__init__.py
Last updated: 2026-10-12

Purpose
- Types shared across the pipeline: Item, findings, report document, typed errors.

What should be included in this file
- Re-export of core domain entities for convenience.
- Keep domain layer free of IO side effects.
"""

from realitycheck.domain.errors import (
    DocumentReadError,
    InputError,
    InventoryWalkError,
    ProfileError,
    UnrecoverableOutputError,
)
from realitycheck.domain.models import (
    Confidence,
    Coverage,
    CoverageEntry,
    CoverageStatus,
    DriftFinding,
    Evidence,
    Item,
    Meta,
    PartialReport,
    Reference,
    Report,
    ReportInput,
    ReportSummary,
    Severity,
    ValidationIssue,
    Verdict,
    Violation,
)

__all__ = [
    "Confidence",
    "Coverage",
    "CoverageEntry",
    "CoverageStatus",
    "DocumentReadError",
    "DriftFinding",
    "Evidence",
    "InputError",
    "InventoryWalkError",
    "Item",
    "Meta",
    "PartialReport",
    "ProfileError",
    "Reference",
    "Report",
    "ReportInput",
    "ReportSummary",
    "Severity",
    "UnrecoverableOutputError",
    "ValidationIssue",
    "Verdict",
    "Violation",
]
