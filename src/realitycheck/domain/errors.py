"""Typed pipeline failures shared across segmentation, inventory, and analysis."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from realitycheck.domain.models import ValidationIssue


class InputError(ValueError):
    """Missing or unreadable analysis input. Fatal and never retried."""


class DocumentReadError(InputError):
    """Raised when a spec or plan document cannot be read."""

    def __init__(self, *, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"cannot read {self.path}: {detail}")


class InventoryWalkError(InputError):
    """Raised when the code root cannot be walked."""

    def __init__(self, *, root: Path | str, detail: str) -> None:
        self.root = Path(root)
        self.detail = detail
        super().__init__(f"cannot walk code root {self.root}: {detail}")


class ProfileError(InputError):
    """Raised for unknown or malformed enforcement profiles."""


class UnrecoverableOutputError(RuntimeError):
    """Oracle output still failed validation after the single repair attempt."""

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = tuple(issues)
        if self.issues:
            rendered = "; ".join(str(issue) for issue in self.issues)
        else:
            rendered = "no validation detail"
        super().__init__(f"invalid model output after repair attempt: {rendered}")


__all__ = [
    "DocumentReadError",
    "InputError",
    "InventoryWalkError",
    "ProfileError",
    "UnrecoverableOutputError",
]
