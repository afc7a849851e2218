"""
realitycheck — unit tests for the code inventory builder

File: tests/unit/inventory/test_builder.py
Last updated: 2026-10-18

Purpose
- Validate the single-pass walk that produces an Index from a directory tree.

What this test file should cover
- Ignored directories (defaults and caller-supplied), root never skipped.
- Manifest/config/source classification and symbol/test extraction.
- Size ceiling and deterministic ordering.
- Walk failures surfacing as InventoryWalkError.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from realitycheck.domain.errors import InputError, InventoryWalkError
from realitycheck.inventory import (
    DEFAULT_IGNORED_DIRECTORIES,
    ExtractionStrategy,
    InventoryBuilder,
    build_index,
)


def _write(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    _write(tmp_path, "go.mod", "module example.com/svc\n")
    _write(tmp_path, "config/app.yaml", "port: 8080\n")
    _write(tmp_path, ".env", "DEBUG=1\n")
    _write(tmp_path, "cmd/main.go", "package main\n\nfunc main() {}\n")
    _write(tmp_path, "cmd/main_test.go", "package main\n\nfunc TestMain(t *testing.T) {}\n")
    _write(
        tmp_path,
        "lib/api.py",
        "def handler(request):\n    return request\n\nclass Api:\n    pass\n",
    )
    _write(tmp_path, "lib/test_api.py", "def test_handler():\n    pass\n")
    _write(tmp_path, "README.md", "# Readme\n")
    _write(tmp_path, "node_modules/pkg/index.js", "function hidden() {}\n")
    _write(tmp_path, ".git/HEAD", "ref: refs/heads/main\n")
    _write(tmp_path, "generated/out.py", "def generated():\n    pass\n")
    return tmp_path


@pytest.mark.unit
def test_build_index_classifies_files_manifests_and_configs(sample_tree: Path) -> None:
    index = build_index(sample_tree)

    assert [entry.path for entry in index.dependency_manifests] == ["go.mod"]
    assert index.dependency_manifests[0].content == "module example.com/svc\n"
    assert index.config_files == (".env", "config/app.yaml")
    assert [(entry.path, entry.language) for entry in index.files] == [
        ("README.md", "Markdown"),
        ("cmd/main.go", "Go"),
        ("cmd/main_test.go", "Go"),
        ("generated/out.py", "Python"),
        ("lib/api.py", "Python"),
        ("lib/test_api.py", "Python"),
    ]


@pytest.mark.unit
def test_build_index_extracts_symbols_and_tests(sample_tree: Path) -> None:
    index = build_index(sample_tree)

    assert [(entry.path, entry.symbol) for entry in index.symbols] == [
        ("cmd/main.go", "main"),
        ("generated/out.py", "generated"),
        ("lib/api.py", "handler"),
        ("lib/api.py", "Api"),
    ]
    assert [(entry.path, entry.function) for entry in index.tests] == [
        ("cmd/main_test.go", "TestMain"),
        ("lib/test_api.py", "test_handler"),
    ]


@pytest.mark.unit
def test_default_ignored_directories_are_skipped(sample_tree: Path) -> None:
    index = build_index(sample_tree)
    paths = index.known_paths()

    assert "node_modules" in DEFAULT_IGNORED_DIRECTORIES
    assert not any(path.startswith("node_modules/") for path in paths)
    assert not any(path.startswith(".git/") for path in paths)


@pytest.mark.unit
def test_extra_ignore_names_are_skipped(sample_tree: Path) -> None:
    index = build_index(sample_tree, extra_ignore=["generated"])

    assert "generated/out.py" not in index.known_paths()
    assert all(entry.path != "generated/out.py" for entry in index.symbols)


@pytest.mark.unit
def test_root_is_walked_even_when_its_name_is_ignored(tmp_path: Path) -> None:
    root = tmp_path / "build"
    _write(root, "main.py", "def run():\n    pass\n")

    index = build_index(root)

    assert [entry.path for entry in index.files] == ["main.py"]


@pytest.mark.unit
def test_known_paths_include_manifests_and_configs(sample_tree: Path) -> None:
    paths = build_index(sample_tree).known_paths()

    assert {"go.mod", ".env", "config/app.yaml", "lib/api.py"} <= paths


@pytest.mark.unit
def test_files_over_size_ceiling_are_listed_but_not_extracted(tmp_path: Path) -> None:
    _write(tmp_path, "big.py", "def big():\n    pass\n" + "#" * 200)
    _write(tmp_path, "small.py", "def small():\n    pass\n")

    index = build_index(tmp_path, max_file_bytes=100)

    assert [entry.path for entry in index.files] == ["big.py", "small.py"]
    assert [entry.symbol for entry in index.symbols] == ["small"]


@pytest.mark.unit
def test_build_index_is_deterministic(sample_tree: Path) -> None:
    assert build_index(sample_tree) == build_index(sample_tree)


@pytest.mark.unit
def test_custom_strategy_table_extends_languages(tmp_path: Path) -> None:
    _write(tmp_path, "job.rb", "def perform\nend\n")

    def _ruby_symbols(content: str) -> list[str]:
        return [line.split()[1] for line in content.splitlines() if line.startswith("def ")]

    builder = InventoryBuilder(
        strategies=(
            ExtractionStrategy(
                name="ruby", extensions=frozenset({".rb"}), symbols=_ruby_symbols
            ),
        )
    )
    index = builder.build(tmp_path)

    assert [(entry.path, entry.symbol) for entry in index.symbols] == [("job.rb", "perform")]
    assert index.files[0].language == "Ruby"


@pytest.mark.unit
def test_missing_root_raises_inventory_walk_error(tmp_path: Path) -> None:
    with pytest.raises(InventoryWalkError) as excinfo:
        build_index(tmp_path / "nope")

    assert isinstance(excinfo.value, InputError)
    assert "not a directory" in str(excinfo.value)


@pytest.mark.unit
def test_non_positive_size_ceiling_is_rejected() -> None:
    with pytest.raises(ValueError, match="max_file_bytes"):
        InventoryBuilder(max_file_bytes=0)
