"""Coverage-entry helpers: status parsing, field checks and per-status tallies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from realitycheck.domain.models import CoverageEntry, CoverageStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

_VALID_STATUSES: Final[frozenset[str]] = frozenset(CoverageStatus)


@dataclass(frozen=True, slots=True)
class CoverageTally:
    implemented: int = 0
    partial: int = 0
    not_implemented: int = 0
    unclear: int = 0

    @property
    def total(self) -> int:
        return self.implemented + self.partial + self.not_implemented + self.unclear


def parse_coverage_status(value: str) -> CoverageStatus:
    try:
        return CoverageStatus(value)
    except ValueError:
        raise ValueError(f"coverage: unknown status {value!r}") from None


def validate_coverage_entry(entry: CoverageEntry, *, reference_key: str) -> list[str]:
    """Return field-level problems for one entry; an empty list means the entry is well formed."""

    problems: list[str] = []
    if not entry.id:
        problems.append("id is required")
    if not entry.status:
        problems.append("status is required")
    elif entry.status not in _VALID_STATUSES:
        problems.append(f"status {entry.status!r} is not a valid CoverageStatus")
    if entry.reference.line_start <= 0 or entry.reference.line_end <= 0:
        problems.append(f"{reference_key}.line_start and line_end must both be positive")
    return problems


def summarize_coverage(entries: Iterable[CoverageEntry]) -> CoverageTally:
    counts = dict.fromkeys(CoverageStatus, 0)
    for entry in entries:
        if entry.status in counts:
            counts[CoverageStatus(entry.status)] += 1
    return CoverageTally(
        implemented=counts[CoverageStatus.IMPLEMENTED],
        partial=counts[CoverageStatus.PARTIAL],
        not_implemented=counts[CoverageStatus.NOT_IMPLEMENTED],
        unclear=counts[CoverageStatus.UNCLEAR],
    )


__all__ = [
    "CoverageTally",
    "parse_coverage_status",
    "summarize_coverage",
    "validate_coverage_entry",
]
