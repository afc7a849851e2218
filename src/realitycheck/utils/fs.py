"""
realitycheck — filesystem utilities

File: src/realitycheck/utils/fs.py
Last updated: 2026-10-17

Purpose
- Atomic report writes for `--out`.

Functional requirements
- Writes go to a temp file in the destination directory and replace the
  target in a single step; readers never observe a partial report.
- The written file keeps the target's existing permission bits, or gets
  0o644 when it is new (mkstemp would otherwise leave 0o600).
"""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]

_DEFAULT_FILE_MODE = 0o644


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> Path:
    """Atomically write ``data`` to ``path`` and return the resolved target."""

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    payload = data.encode(encoding) if isinstance(data, str) else data
    mode = _existing_mode(target)

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "wb") as file_handle:
            file_handle.write(payload)
            file_handle.flush()
            os.fsync(file_handle.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise
    return target_parent / target.name


def _existing_mode(target: Path) -> int:
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        return _DEFAULT_FILE_MODE


def _fsync_directory(path: Path) -> None:
    """Best-effort directory fsync after ``os.replace``; unsupported on some platforms."""

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        with contextlib.suppress(OSError):
            os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


__all__ = ["PathLike", "atomic_write"]
