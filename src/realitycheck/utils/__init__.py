"""Shared utilities."""

from realitycheck.utils.fs import atomic_write

__all__ = ["atomic_write"]
