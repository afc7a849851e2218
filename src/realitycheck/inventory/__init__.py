"""Code inventory: bounded, language-aware summary of a source tree."""

from realitycheck.inventory.builder import (
    DEFAULT_IGNORED_DIRECTORIES,
    InventoryBuilder,
    build_index,
)
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

__all__ = [
    "DEFAULT_IGNORED_DIRECTORIES",
    "DEFAULT_STRATEGIES",
    "DiscoveredTest",
    "ExtractionStrategy",
    "FileEntry",
    "Index",
    "InventoryBuilder",
    "ManifestEntry",
    "SymbolEntry",
    "build_index",
    "build_strategy_registry",
    "classify_language",
    "is_config",
    "is_manifest",
    "is_test_file",
]
