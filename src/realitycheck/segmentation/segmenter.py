"""
realitycheck — intent segmenter

File: src/realitycheck/segmentation/segmenter.py
Last updated: 2026-10-14

Purpose
- Deterministically split a free-form Markdown document into ordered,
  line-accurate Items (one requirement or plan step each).

What should be included in this file
- Pure line classifiers (headings, bullets, numbered items, decorators, fences).
- A single forward scan carrying an explicit scan state (outside / in-fence)
  and one pending-item buffer.
- Fence-aware continuation consumer for list items.

Functional requirements
- Headings, blank lines and thematic-break decorators only flush; they never
  become item text.
- Numbered and bullet items greedily absorb indented continuation lines,
  including fenced blocks opened inside the continuation, and are flushed
  immediately afterward.
- An unterminated top-level fence is flushed with the pending item at end of
  input. An unterminated fence inside a continuation never leaks outward.
- IDs are `<PREFIX>-<NNN>` assigned at flush time in document order.

Known limitations
- Setext headings are not recognized; the underline is a decorator.
- Lazy (non-indented) list continuation starts a new item.

Non-functional requirements
- No I/O in `segment`; identical input always yields identical output.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from realitycheck.domain.errors import DocumentReadError
from realitycheck.domain.models import Item

if TYPE_CHECKING:
    from collections.abc import Sequence

LinePredicate = Callable[[str], bool]
PrefixStripper = Callable[[str], str]

_MAX_BLOCK_INDENT: Final[int] = 3
_MIN_FENCE_LENGTH: Final[int] = 3
_MAX_HEADING_LEVEL: Final[int] = 6
_MIN_DECORATOR_LENGTH: Final[int] = 3
_FENCE_CHARS: Final[frozenset[str]] = frozenset({"`", "~"})
_DECORATOR_CHARS: Final[frozenset[str]] = frozenset({"-", "=", "*", "_", "⸻", "—"})
_BULLET_PREFIXES: Final[tuple[str, ...]] = ("- ", "* ", "• ")
_NUMBER_TERMINATORS: Final[tuple[str, ...]] = (". ", ") ")
_DIGITS: Final[str] = "0123456789"


class _ScanState(Enum):
    OUTSIDE = "outside"
    IN_FENCE = "in_fence"


@dataclass(frozen=True, slots=True)
class _FenceState:
    marker_char: str
    marker_length: int


@dataclass(slots=True)
class _PendingBuffer:
    """Reusable accumulation buffer for the item currently being built."""

    active: bool = False
    line_start: int = 0
    line_end: int = 0
    lines: list[str] = field(default_factory=list)

    def open(self, line_number: int) -> None:
        self.active = True
        self.line_start = line_number
        self.line_end = line_number
        self.lines.clear()

    def add(self, line_number: int, text: str) -> None:
        self.lines.append(text)
        if line_number > self.line_end:
            self.line_end = line_number


def _leading_spaces(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _digit_run(text: str) -> int:
    return len(text) - len(text.lstrip(_DIGITS))


def _parse_fence_start(line: str) -> _FenceState | None:
    leading = _leading_spaces(line)
    if leading > _MAX_BLOCK_INDENT:
        return None
    stripped = line[leading:]
    if not stripped or stripped[0] not in _FENCE_CHARS:
        return None
    marker_char = stripped[0]
    marker_length = len(stripped) - len(stripped.lstrip(marker_char))
    if marker_length < _MIN_FENCE_LENGTH:
        return None
    return _FenceState(marker_char=marker_char, marker_length=marker_length)


def _is_fence_close(line: str, state: _FenceState) -> bool:
    candidate = _parse_fence_start(line)
    if candidate is None:
        return False
    if candidate.marker_char != state.marker_char:
        return False
    if candidate.marker_length < state.marker_length:
        return False
    rest = line[_leading_spaces(line) + candidate.marker_length :]
    return rest.lstrip(" ") == ""


def is_indented(line: str) -> bool:
    """Return True for lines starting with a tab or at least two spaces."""

    return line.startswith(("  ", "\t"))


def is_bullet(line: str) -> bool:
    return line.strip().startswith(_BULLET_PREFIXES)


def is_numbered_item(line: str) -> bool:
    """Return True for `N. text` or `N) text` lines."""

    trimmed = line.strip()
    digits = _digit_run(trimmed)
    return digits > 0 and trimmed[digits : digits + 2] in _NUMBER_TERMINATORS


def is_heading(line: str) -> bool:
    """Return True for ATX headings (`#` through `######` followed by a space)."""

    if _leading_spaces(line) > _MAX_BLOCK_INDENT:
        return False
    trimmed = line.strip()
    hashes = len(trimmed) - len(trimmed.lstrip("#"))
    return 0 < hashes <= _MAX_HEADING_LEVEL and trimmed[hashes : hashes + 1] == " "


def is_decorator(line: str) -> bool:
    """Return True for 3+ repetitions of one separator character (`---`, `===`, `***`)."""

    trimmed = line.strip()
    if len(trimmed) < _MIN_DECORATOR_LENGTH:
        return False
    first = trimmed[0]
    return first in _DECORATOR_CHARS and trimmed == first * len(trimmed)


def strip_list_prefix(line: str) -> str:
    """Remove a leading `N. `, `N) `, `- `, `* ` or `• ` marker and trim."""

    trimmed = line.strip()
    digits = _digit_run(trimmed)
    if digits > 0 and trimmed[digits : digits + 2] in _NUMBER_TERMINATORS:
        return trimmed[digits + 1 :].strip()
    for prefix in _BULLET_PREFIXES:
        if trimmed.startswith(prefix):
            return trimmed[len(prefix) :].strip()
    return trimmed


def split_lines(text: str) -> list[str]:
    """Split on `\\n`, accepting `\\r\\n`; a trailing newline adds no empty line."""

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _collect_continuation(lines: Sequence[str], index: int, buffer: _PendingBuffer) -> int:
    inner_fence: _FenceState | None = None
    while index < len(lines):
        line = lines[index]
        line_number = index + 1
        if inner_fence is not None:
            buffer.add(line_number, line)
            if _is_fence_close(line, inner_fence):
                inner_fence = None
            index += 1
            continue
        opener = _parse_fence_start(line)
        if opener is not None and is_indented(line):
            inner_fence = opener
            buffer.add(line_number, line)
            index += 1
            continue
        if not line.strip() or not is_indented(line):
            break
        buffer.add(line_number, line.strip())
        index += 1
    return index


_standard_numbered_item: Final[LinePredicate] = is_numbered_item


class Segmenter:
    """Split documents into Items with IDs of the form `<id_prefix>-NNN`."""

    __slots__ = ("_id_prefix", "_is_numbered_item", "_strip_prefix")

    def __init__(
        self,
        id_prefix: str,
        *,
        is_numbered_item: LinePredicate | None = None,
        strip_prefix: PrefixStripper | None = None,
    ) -> None:
        if not id_prefix:
            raise ValueError("id_prefix must not be empty")
        self._id_prefix = id_prefix
        self._is_numbered_item = is_numbered_item or _standard_numbered_item
        self._strip_prefix = strip_prefix or strip_list_prefix

    @property
    def id_prefix(self) -> str:
        return self._id_prefix

    def parse_file(self, path: Path | str) -> list[Item]:
        document = Path(path)
        try:
            raw = document.read_bytes()
        except OSError as exc:
            raise DocumentReadError(path=document, detail=exc.strerror or str(exc)) from exc
        return self.parse_text(raw.decode("utf-8", errors="replace"))

    def parse_text(self, text: str) -> list[Item]:
        return self.segment(split_lines(text))

    def segment(self, lines: Sequence[str]) -> list[Item]:
        items: list[Item] = []
        buffer = _PendingBuffer()

        def flush() -> None:
            if not buffer.active:
                return
            buffer.active = False
            text = "\n".join(buffer.lines).strip()
            if not text:
                return
            items.append(
                Item(
                    id=f"{self._id_prefix}-{len(items) + 1:03d}",
                    line_start=buffer.line_start,
                    line_end=buffer.line_end,
                    text=text,
                )
            )

        def ensure_open(line_number: int) -> None:
            if not buffer.active:
                buffer.open(line_number)

        state = _ScanState.OUTSIDE
        fence: _FenceState | None = None
        index = 0
        while index < len(lines):
            line = lines[index]
            line_number = index + 1

            if state is _ScanState.IN_FENCE and fence is not None:
                ensure_open(line_number)
                buffer.add(line_number, line)
                if _is_fence_close(line, fence):
                    state = _ScanState.OUTSIDE
                    fence = None
                index += 1
                continue

            opener = _parse_fence_start(line)
            if opener is not None:
                ensure_open(line_number)
                buffer.add(line_number, line)
                state = _ScanState.IN_FENCE
                fence = opener
                index += 1
                continue

            if is_heading(line) or not line.strip():
                flush()
                index += 1
                continue

            if not is_indented(line) and (self._is_numbered_item(line) or is_bullet(line)):
                flush()
                buffer.open(line_number)
                buffer.add(line_number, self._strip_prefix(line))
                index = _collect_continuation(lines, index + 1, buffer)
                flush()
                continue

            if is_indented(line) and is_bullet(line):
                ensure_open(line_number)
                buffer.add(line_number, line.strip())
                index += 1
                continue

            if is_decorator(line):
                flush()
                index += 1
                continue

            ensure_open(line_number)
            buffer.add(line_number, line)
            index += 1

        flush()
        return items


__all__ = [
    "LinePredicate",
    "PrefixStripper",
    "Segmenter",
    "is_bullet",
    "is_decorator",
    "is_heading",
    "is_indented",
    "is_numbered_item",
    "split_lines",
    "strip_list_prefix",
]
