"""
realitycheck — code inventory index and summary rendering

File: src/realitycheck/inventory/index.py
Last updated: 2026-10-14

Purpose
- Immutable snapshot of a code tree (files, symbols, tests, manifests, config
  paths) and its bounded text summary for the oracle prompt.

Functional requirements
- `summary()` renders file tree, tests, manifest contents, config paths, then
  symbols. When the rendering exceeds the byte budget, only the symbol list is
  truncated and a count-bearing notice is appended.
- Truncation is reported as a structured warning, never as an error.

Non-functional requirements
- Sizes are measured in UTF-8 bytes.
- Rendering is deterministic for a given Index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

import structlog

from realitycheck.constants import MAX_SUMMARY_BYTES, TRUNCATION_NOTICE_RESERVE
from realitycheck.domain.models import JSONValue

SYMBOL_SECTION_HEADER: Final[str] = "\n=== Symbols ===\n"
TRUNCATION_NOTICE: Final[str] = "[TRUNCATED: {omitted} symbols omitted to fit context limit]\n"

_logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FileEntry:
    path: str
    language: str


@dataclass(frozen=True, slots=True)
class SymbolEntry:
    path: str
    symbol: str


@dataclass(frozen=True, slots=True)
class DiscoveredTest:
    path: str
    function: str


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    path: str
    content: str


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _symbol_line(entry: SymbolEntry) -> str:
    return f"  {entry.path}: {entry.symbol}\n"


@dataclass(frozen=True, slots=True)
class Index:
    """Read-only inventory of one code root. Paths are POSIX and root-relative."""

    files: tuple[FileEntry, ...] = ()
    symbols: tuple[SymbolEntry, ...] = ()
    tests: tuple[DiscoveredTest, ...] = ()
    dependency_manifests: tuple[ManifestEntry, ...] = ()
    config_files: tuple[str, ...] = ()

    def known_paths(self) -> frozenset[str]:
        """Paths an evidence citation may legitimately point at."""

        return frozenset(
            [
                *(entry.path for entry in self.files),
                *(entry.path for entry in self.dependency_manifests),
                *self.config_files,
            ]
        )

    def summary(self, *, max_bytes: int = MAX_SUMMARY_BYTES) -> str:
        non_symbol = self._render_non_symbol_sections()
        symbol_lines = [_symbol_line(entry) for entry in self.symbols]
        full = non_symbol + SYMBOL_SECTION_HEADER + "".join(symbol_lines)
        full_size = _byte_len(full)
        if full_size <= max_bytes:
            return full

        reserve = _byte_len(SYMBOL_SECTION_HEADER) + TRUNCATION_NOTICE_RESERVE
        budget = max_bytes - _byte_len(non_symbol) - reserve
        kept: list[str] = []
        used = 0
        for line in symbol_lines:
            size = _byte_len(line)
            if used + size > budget:
                break
            used += size
            kept.append(line)

        omitted = len(symbol_lines) - len(kept)
        _logger.warning(
            "inventory_summary_truncated",
            omitted_symbols=omitted,
            full_bytes=full_size,
            limit_bytes=max_bytes,
        )
        return (
            non_symbol
            + SYMBOL_SECTION_HEADER
            + "".join(kept)
            + TRUNCATION_NOTICE.format(omitted=omitted)
        )

    def _render_non_symbol_sections(self) -> str:
        parts = ["=== File Tree ===\n"]
        parts.extend(f"  {entry.path} ({entry.language})\n" for entry in self.files)
        if self.tests:
            parts.append("\n=== Tests ===\n")
            parts.extend(f"  {entry.path}: {entry.function}\n" for entry in self.tests)
        if self.dependency_manifests:
            parts.append("\n=== Dependency Manifests ===\n")
            parts.extend(
                f"--- {entry.path} ---\n{entry.content}\n" for entry in self.dependency_manifests
            )
        if self.config_files:
            parts.append("\n=== Config Files ===\n")
            parts.extend(f"  {path}\n" for path in self.config_files)
        return "".join(parts)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "files": [{"path": e.path, "language": e.language} for e in self.files],
            "symbols": [{"path": e.path, "symbol": e.symbol} for e in self.symbols],
            "tests": [{"path": e.path, "function": e.function} for e in self.tests],
            "dependency_manifests": [
                {"path": e.path, "content": e.content} for e in self.dependency_manifests
            ],
            "config_files": list(self.config_files),
        }


__all__ = [
    "SYMBOL_SECTION_HEADER",
    "TRUNCATION_NOTICE",
    "DiscoveredTest",
    "FileEntry",
    "Index",
    "ManifestEntry",
    "SymbolEntry",
]
