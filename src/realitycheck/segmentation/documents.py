"""Spec and plan document front-ends over the shared segmenter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

import structlog

from realitycheck.constants import PLAN_ID_PREFIX, SPEC_ID_PREFIX
from realitycheck.domain.models import Item
from realitycheck.segmentation.segmenter import (
    Segmenter,
    is_numbered_item,
    strip_list_prefix,
)

# "Step 3:" / "Sub-step 7a:" plan headers; one optional letter suffix.
_PLAN_STEP_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:Sub-step\s+\d+[a-zA-Z]?|Step\s+\d+[a-zA-Z]?):\s*",
    re.ASCII,
)

_logger = structlog.get_logger(__name__)


def is_plan_step(line: str) -> bool:
    """Return True for standard numbered items and `Step N:` / `Sub-step Na:` headers."""

    if is_numbered_item(line):
        return True
    return _PLAN_STEP_RE.match(line.strip()) is not None


def strip_plan_prefix(line: str) -> str:
    trimmed = line.strip()
    match = _PLAN_STEP_RE.match(trimmed)
    if match is not None:
        return trimmed[match.end() :].strip()
    return strip_list_prefix(line)


SPEC_SEGMENTER: Final[Segmenter] = Segmenter(SPEC_ID_PREFIX)
PLAN_SEGMENTER: Final[Segmenter] = Segmenter(
    PLAN_ID_PREFIX,
    is_numbered_item=is_plan_step,
    strip_prefix=strip_plan_prefix,
)


def parse_spec(path: Path | str) -> list[Item]:
    items = SPEC_SEGMENTER.parse_file(path)
    _logger.info("document_segmented", kind="spec", path=str(path), items=len(items))
    return items


def parse_plan(path: Path | str) -> list[Item]:
    items = PLAN_SEGMENTER.parse_file(path)
    _logger.info("document_segmented", kind="plan", path=str(path), items=len(items))
    return items


__all__ = [
    "PLAN_SEGMENTER",
    "SPEC_SEGMENTER",
    "is_plan_step",
    "parse_plan",
    "parse_spec",
    "strip_plan_prefix",
]
