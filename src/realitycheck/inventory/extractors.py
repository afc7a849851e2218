"""
realitycheck — per-language symbol extraction strategies

File: src/realitycheck/inventory/extractors.py
Last updated: 2026-10-14

Purpose
- Map file extensions to lightweight, regex-based extraction strategies that
  yield symbol names and test-function names without parsing.

What should be included in this file
- `ExtractionStrategy` records (symbol extractor + optional test extractor).
- The default strategy table (Go, JavaScript/TypeScript, Python, Rust).
- Registry construction that rejects malformed or duplicate extensions.
- Language classification and file-role predicates (test file, manifest, config).

Functional requirements
- Symbol extraction de-duplicates per file while preserving first-seen order.
- Adding a language means adding a strategy; the walk logic never changes.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

Extractor = Callable[[str], list[str]]

_FLAGS: Final[re.RegexFlag] = re.MULTILINE | re.ASCII

MANIFEST_NAMES: Final[frozenset[str]] = frozenset(
    {"go.mod", "package.json", "requirements.txt", "Cargo.toml", "pyproject.toml", "pom.xml"}
)
CONFIG_EXTENSIONS: Final[frozenset[str]] = frozenset({".yaml", ".yml", ".toml", ".json"})

_LANGUAGES: Final[Mapping[str, str]] = {
    ".go": "Go",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".py": "Python",
    ".rs": "Rust",
    ".java": "Java",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".rb": "Ruby",
    ".sh": "Shell",
    ".bash": "Shell",
    ".md": "Markdown",
}
OTHER_LANGUAGE: Final[str] = "Other"

_JS_TEST_SUFFIXES: Final[tuple[str, ...]] = (
    ".test.ts",
    ".spec.ts",
    ".test.tsx",
    ".spec.tsx",
    ".test.js",
    ".spec.js",
)

_GO_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"^func\s+(\w+)\s*\(", _FLAGS),
    re.compile(r"^func\s+\([^)]+\)\s+(\w+)\s*\(", _FLAGS),
    re.compile(r"^type\s+(\w+)\s+(?:struct|interface)", _FLAGS),
)
_GO_TEST_RE: Final[re.Pattern[str]] = re.compile(r"^func\s+(Test\w+)\s*\(", _FLAGS)

_JS_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\bfunction\s+(\w+)\s*\(", _FLAGS),
    re.compile(r"\bclass\s+(\w+)", _FLAGS),
    re.compile(r"\bexport\s+(?:default\s+)?(?:function|class)\s+(\w+)", _FLAGS),
)
_JS_TEST_RE: Final[re.Pattern[str]] = re.compile(
    r"(?:it|test|describe)\s*\(\s*['\"]([^'\"]+)['\"]", _FLAGS
)

_PY_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"^def\s+(\w+)\s*\(", _FLAGS),
    re.compile(r"^class\s+(\w+)", _FLAGS),
)
_PY_TEST_RE: Final[re.Pattern[str]] = re.compile(r"^def\s+(test_\w+)\s*\(", _FLAGS)

_RUST_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\bfn\s+(\w+)\s*\(", _FLAGS),
    re.compile(r"\bstruct\s+(\w+)", _FLAGS),
    # Skip generic parameters so `impl<T> Foo` yields Foo.
    re.compile(r"\bimpl(?:<[^>]+>)?\s+(\w+)", _FLAGS),
)


def _unique_matches(patterns: Sequence[re.Pattern[str]], content: str) -> list[str]:
    seen: set[str] = set()
    names: list[str] = []
    for pattern in patterns:
        for match in pattern.finditer(content):
            name = match.group(1)
            if name not in seen:
                seen.add(name)
                names.append(name)
    return names


def _all_matches(pattern: re.Pattern[str], content: str) -> list[str]:
    return [match.group(1) for match in pattern.finditer(content)]


def extract_go_symbols(content: str) -> list[str]:
    return _unique_matches(_GO_PATTERNS, content)


def extract_go_tests(content: str) -> list[str]:
    return _all_matches(_GO_TEST_RE, content)


def extract_js_symbols(content: str) -> list[str]:
    return _unique_matches(_JS_PATTERNS, content)


def extract_js_tests(content: str) -> list[str]:
    return _all_matches(_JS_TEST_RE, content)


def extract_python_symbols(content: str) -> list[str]:
    return _unique_matches(_PY_PATTERNS, content)


def extract_python_tests(content: str) -> list[str]:
    return _all_matches(_PY_TEST_RE, content)


def extract_rust_symbols(content: str) -> list[str]:
    return _unique_matches(_RUST_PATTERNS, content)


@dataclass(frozen=True, slots=True)
class ExtractionStrategy:
    """Symbol and test extraction for one language family."""

    name: str
    extensions: frozenset[str]
    symbols: Extractor
    tests: Extractor | None = None


DEFAULT_STRATEGIES: Final[tuple[ExtractionStrategy, ...]] = (
    ExtractionStrategy(
        name="go",
        extensions=frozenset({".go"}),
        symbols=extract_go_symbols,
        tests=extract_go_tests,
    ),
    ExtractionStrategy(
        name="typescript",
        extensions=frozenset({".ts", ".tsx"}),
        symbols=extract_js_symbols,
        tests=extract_js_tests,
    ),
    ExtractionStrategy(
        name="javascript",
        extensions=frozenset({".js"}),
        symbols=extract_js_symbols,
        tests=extract_js_tests,
    ),
    ExtractionStrategy(
        name="jsx",
        extensions=frozenset({".jsx"}),
        symbols=extract_js_symbols,
    ),
    ExtractionStrategy(
        name="python",
        extensions=frozenset({".py"}),
        symbols=extract_python_symbols,
        tests=extract_python_tests,
    ),
    ExtractionStrategy(
        name="rust",
        extensions=frozenset({".rs"}),
        symbols=extract_rust_symbols,
    ),
)


def build_strategy_registry(
    strategies: Sequence[ExtractionStrategy],
) -> dict[str, ExtractionStrategy]:
    registry: dict[str, ExtractionStrategy] = {}
    for strategy in strategies:
        for extension in sorted(strategy.extensions):
            normalized = extension.lower().strip()
            if not normalized.startswith("."):
                raise ValueError(f"strategy extension must start with '.': {extension!r}")
            if normalized in registry:
                raise ValueError(f"duplicate strategy registration for extension {normalized!r}")
            registry[normalized] = strategy
    return registry


def classify_language(extension: str) -> str:
    return _LANGUAGES.get(extension, OTHER_LANGUAGE)


def is_test_file(name: str) -> bool:
    """Return True for names following Go, JS/TS or Python test-file conventions."""

    path = PurePosixPath(name)
    base, suffix, stem = path.name, path.suffix, path.stem
    if suffix == ".go":
        return stem.endswith("_test")
    if base.endswith(_JS_TEST_SUFFIXES):
        return True
    if suffix == ".py":
        return base.startswith("test_") or stem.endswith("_test")
    return False


def is_manifest(name: str) -> bool:
    return PurePosixPath(name).name in MANIFEST_NAMES


def is_config(name: str) -> bool:
    """Config files contribute their path only. Manifests never count as config."""

    if is_manifest(name):
        return False
    path = PurePosixPath(name)
    return path.suffix in CONFIG_EXTENSIONS or path.name.startswith(".env")


__all__ = [
    "CONFIG_EXTENSIONS",
    "DEFAULT_STRATEGIES",
    "MANIFEST_NAMES",
    "OTHER_LANGUAGE",
    "ExtractionStrategy",
    "Extractor",
    "build_strategy_registry",
    "classify_language",
    "extract_go_symbols",
    "extract_go_tests",
    "extract_js_symbols",
    "extract_js_tests",
    "extract_python_symbols",
    "extract_python_tests",
    "extract_rust_symbols",
    "is_config",
    "is_manifest",
    "is_test_file",
]
