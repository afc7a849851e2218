"""
realitycheck — code inventory builder

File: src/realitycheck/inventory/builder.py
Last updated: 2026-10-14

Purpose
- Walk a code root once and produce an `Index` without parsing source.

Functional requirements
- Skip directories whose base name is in the default ignore set or the
  caller-supplied extra set; the root itself is never skipped.
- Manifests: full text captured, excluded from Files.
- Config files: path only.
- Everything else: recorded with a language label; content at or under the size
  ceiling goes through the extraction strategy for its extension (test
  extractor for test files, symbol extractor otherwise).
- Unreadable individual files are skipped. Failure to walk the tree is fatal.

Non-functional requirements
- Deterministic ordering: directory entries are visited in lexical order.
- Symlinked directories are not followed.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final

import structlog

from realitycheck.constants import MAX_FILE_BYTES
from realitycheck.domain.errors import InventoryWalkError
from realitycheck.inventory.extractors import (
    DEFAULT_STRATEGIES,
    ExtractionStrategy,
    build_strategy_registry,
    classify_language,
    is_config,
    is_manifest,
    is_test_file,
)
from realitycheck.inventory.index import (
    DiscoveredTest,
    FileEntry,
    Index,
    ManifestEntry,
    SymbolEntry,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

DEFAULT_IGNORED_DIRECTORIES: Final[frozenset[str]] = frozenset(
    {".git", "vendor", "node_modules", "__pycache__", ".build", "dist", "build"}
)

_logger = structlog.get_logger(__name__)


class InventoryBuilder:
    """Builds an `Index` from a directory tree using an extraction strategy table."""

    def __init__(
        self,
        *,
        strategies: Sequence[ExtractionStrategy] = DEFAULT_STRATEGIES,
        max_file_bytes: int = MAX_FILE_BYTES,
    ) -> None:
        if max_file_bytes <= 0:
            raise ValueError("max_file_bytes must be > 0")
        self._strategies = build_strategy_registry(strategies)
        self._max_file_bytes = max_file_bytes

    def build(self, root: Path | str, extra_ignore: Iterable[str] = ()) -> Index:
        root_path = Path(root)
        if not root_path.is_dir():
            raise InventoryWalkError(root=root_path, detail="not a directory")
        ignored = DEFAULT_IGNORED_DIRECTORIES | frozenset(extra_ignore)

        files: list[FileEntry] = []
        symbols: list[SymbolEntry] = []
        tests: list[DiscoveredTest] = []
        manifests: list[ManifestEntry] = []
        configs: list[str] = []

        for relative in self._iter_candidate_files(root_path, ignored):
            local_path = root_path.joinpath(*relative.parts)
            name = relative.as_posix()
            if is_manifest(name):
                content = self._read_text(local_path)
                if content is not None:
                    manifests.append(ManifestEntry(path=name, content=content))
                continue
            if is_config(name):
                configs.append(name)
                continue

            extension = relative.suffix
            files.append(FileEntry(path=name, language=classify_language(extension)))
            strategy = self._strategies.get(extension)
            if strategy is None:
                continue
            try:
                size = local_path.stat().st_size
            except OSError:
                continue
            if size > self._max_file_bytes:
                continue
            content = self._read_text(local_path)
            if content is None:
                continue

            if is_test_file(name):
                if strategy.tests is not None:
                    tests.extend(
                        DiscoveredTest(path=name, function=function)
                        for function in strategy.tests(content)
                    )
            else:
                symbols.extend(
                    SymbolEntry(path=name, symbol=symbol) for symbol in strategy.symbols(content)
                )

        index = Index(
            files=tuple(files),
            symbols=tuple(symbols),
            tests=tuple(tests),
            dependency_manifests=tuple(manifests),
            config_files=tuple(configs),
        )
        _logger.info(
            "inventory_built",
            root=str(root_path),
            files=len(index.files),
            symbols=len(index.symbols),
            tests=len(index.tests),
            manifests=len(index.dependency_manifests),
            configs=len(index.config_files),
        )
        return index

    @staticmethod
    def _iter_candidate_files(root: Path, ignored: frozenset[str]) -> list[PurePosixPath]:
        def _raise_walk_error(error: OSError) -> None:
            raise InventoryWalkError(
                root=root, detail=f"{error.filename}: {error.strerror or error}"
            ) from error

        candidates: list[PurePosixPath] = []
        for current_dir, dir_names, file_names in os.walk(
            root, topdown=True, followlinks=False, onerror=_raise_walk_error
        ):
            current_relative = PurePosixPath(Path(current_dir).relative_to(root).as_posix())
            dir_names[:] = [name for name in sorted(dir_names) if name not in ignored]
            for file_name in sorted(file_names):
                candidates.append(current_relative / file_name)

        # Per-component ordering matches a lexical depth-first walk.
        candidates.sort(key=lambda path: path.parts)
        return candidates

    @staticmethod
    def _read_text(path: Path) -> str | None:
        try:
            return path.read_bytes().decode("utf-8", errors="replace")
        except OSError:
            return None


def build_index(
    root: Path | str,
    extra_ignore: Iterable[str] = (),
    *,
    max_file_bytes: int = MAX_FILE_BYTES,
) -> Index:
    """Walk `root` and return its inventory. Raises `InventoryWalkError` on walk failure."""

    return InventoryBuilder(max_file_bytes=max_file_bytes).build(root, extra_ignore)


__all__ = ["DEFAULT_IGNORED_DIRECTORIES", "InventoryBuilder", "build_index"]
