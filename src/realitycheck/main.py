"""Executable CLI entrypoint for ``realitycheck``."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from realitycheck.oracle.providers.base import ProviderRegistry


class ExitCode(IntEnum):
    """Deterministic process exit-code contract."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    FAIL_ON = 2
    INPUT_ERROR = 3
    PROVIDER_ERROR = 4
    UNRECOVERABLE_OUTPUT = 5


def cli_entrypoint(
    argv: Sequence[str] | None = None,
    *,
    registry: ProviderRegistry | None = None,
) -> int:
    """Entrypoint used by ``python -m realitycheck`` and the console script."""

    try:
        from realitycheck.ui.cli import run_cli

        return _normalize_exit_code(run_cli(argv, registry=registry))
    except SystemExit as exc:
        # argparse --help / --version exit through SystemExit.
        return _normalize_exit_code(exc.code)
    except BaseException as exc:  # noqa: BLE001 - CLI boundary normalization.
        exit_code = _route_exception(exc)
        _emit_failure(exc, exit_code)
        return int(exit_code)


def _normalize_exit_code(raw_code: object) -> int:
    if isinstance(raw_code, int) and raw_code in {int(code) for code in ExitCode}:
        return raw_code
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, str) and raw_code.strip():
        _write_stderr(raw_code.strip())
    return int(ExitCode.GENERAL_ERROR)


def _route_exception(exc: BaseException) -> ExitCode:
    from realitycheck.config.loader import ConfigLoadError
    from realitycheck.config.schema import ConfigValidationError
    from realitycheck.domain.errors import InputError, UnrecoverableOutputError
    from realitycheck.oracle.providers.base import ProviderError

    for item in _iter_exception_chain(exc):
        if isinstance(item, (InputError, ConfigLoadError, ConfigValidationError)):
            return ExitCode.INPUT_ERROR
        if isinstance(item, UnrecoverableOutputError):
            return ExitCode.UNRECOVERABLE_OUTPUT
        if isinstance(item, ProviderError):
            return ExitCode.PROVIDER_ERROR
        if _is_provider_sdk_missing_error(item):
            return ExitCode.PROVIDER_ERROR
    return ExitCode.GENERAL_ERROR


def _iter_exception_chain(exc: BaseException) -> list[BaseException]:
    seen: set[int] = set()
    items: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None:
        marker = id(current)
        if marker in seen:
            break
        seen.add(marker)
        items.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
            continue
        if current.__context__ is not None and not current.__suppress_context__:
            current = current.__context__
            continue
        break
    return items


def _is_provider_sdk_missing_error(exc: BaseException) -> bool:
    if not isinstance(exc, ModuleNotFoundError):
        return False
    return exc.name in {"anthropic", "openai", "google", "google.genai"}


def _emit_failure(exc: BaseException, exit_code: ExitCode) -> None:
    if exit_code is ExitCode.GENERAL_ERROR:
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        return
    message = str(exc).strip() or exc.__class__.__name__
    if exit_code is ExitCode.PROVIDER_ERROR:
        message = f"LLM: {message}"
    _write_stderr(f"error: {message}")


def _write_stderr(message: str) -> None:
    sys.stderr.write(message.rstrip("\n") + "\n")


__all__ = ["ExitCode", "cli_entrypoint"]
