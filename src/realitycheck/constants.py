"""Stable constants shared across the realitycheck pipeline."""

from __future__ import annotations

from typing import Final

TOOL_NAME: Final[str] = "realitycheck"
VERSION: Final[str] = "0.1.0"

# Schema version for realitycheck.toml.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Item identifier prefixes per intent document.
SPEC_ID_PREFIX: Final[str] = "SPEC"
PLAN_ID_PREFIX: Final[str] = "PLAN"

# Inventory bounds.
MAX_SUMMARY_BYTES: Final[int] = 40_000
MAX_FILE_BYTES: Final[int] = 1 << 20
TRUNCATION_NOTICE_RESERVE: Final[int] = 80

# Score deductions per finding severity.
SCORE_START: Final[int] = 100
CRITICAL_PENALTY: Final[int] = 20
WARN_PENALTY: Final[int] = 7
INFO_PENALTY: Final[int] = 2

# Oracle defaults.
DEFAULT_PROVIDER: Final[str] = "anthropic"
DEFAULT_MAX_TOKENS: Final[int] = 4096
DEFAULT_TEMPERATURE: Final[float] = 0.2
DEFAULT_TIMEOUT_SECONDS: Final[float] = 300.0
DEFAULT_MODELS: Final[dict[str, str]] = {
    "anthropic": "claude-opus-4-6",
    "openai": "gpt-4o",
    "google": "gemini-2.0-flash",
}
DEFAULT_API_KEY_ENVS: Final[dict[str, str]] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
}

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "CRITICAL_PENALTY",
    "DEFAULT_API_KEY_ENVS",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MODELS",
    "DEFAULT_PROVIDER",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_TIMEOUT_SECONDS",
    "INFO_PENALTY",
    "MAX_FILE_BYTES",
    "MAX_SUMMARY_BYTES",
    "PLAN_ID_PREFIX",
    "SCORE_START",
    "SPEC_ID_PREFIX",
    "TOOL_NAME",
    "TRUNCATION_NOTICE_RESERVE",
    "VERSION",
    "WARN_PENALTY",
]
