"""
realitycheck — configuration schema and validation.

File: src/realitycheck/config/schema.py
Last updated: 2026-10-16

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric constraints.
- Deterministic deep-merge helpers.
- Redaction rules for sensitive fields.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject embedded secrets; API keys are only ever named by env var.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from realitycheck.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_FILE_BYTES,
    MAX_SUMMARY_BYTES,
)
from realitycheck.domain.models import Severity, Verdict

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

PROVIDER_NAMES: Final[tuple[str, ...]] = tuple(sorted(DEFAULT_MODELS))
OUTPUT_FORMATS: Final[tuple[str, ...]] = ("json", "md")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

_ENV_NAME_PATTERN = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_PROFILE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
_CAMEL_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_SENSITIVE_KEY_TOKENS: Final[frozenset[str]] = frozenset(
    {
        "secret",
        "token",
        "password",
        "passwd",
        "api",
        "key",
        "apikey",
        "private",
        "credential",
        "credentials",
        "auth",
    }
)
_SENSITIVE_KEY_PHRASES: Final[tuple[str, ...]] = (
    "api_key",
    "access_token",
    "refresh_token",
    "client_secret",
    "private_key",
    "password",
    "secret",
)

# Config paths that are normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("analysis", "profile_file"),)


class MetaConfig(TypedDict):
    schema_version: int


class OracleConfig(TypedDict):
    provider: str
    model: str
    max_tokens: int
    temperature: float
    timeout_seconds: float
    api_key_env: str


class AnalysisConfig(TypedDict):
    profile: str
    profile_file: str
    strict: bool
    fail_on: str
    severity_threshold: str


class InventoryConfig(TypedDict):
    ignore: list[str]
    max_file_bytes: int
    max_summary_bytes: int


class OutputConfig(TypedDict):
    format: str


class ObservabilityConfig(TypedDict):
    log_level: str
    log_format: str


class RealityCheckConfig(TypedDict):
    meta: MetaConfig
    oracle: OracleConfig
    analysis: AnalysisConfig
    inventory: InventoryConfig
    output: OutputConfig
    observability: ObservabilityConfig


# Empty strings mean "not set": provider default model/key env, no extra
# profile file, no fail-on gate, no severity filter.
DEFAULT_CONFIG: Final[RealityCheckConfig] = {
    "meta": {"schema_version": ConfigSchemaVersion},
    "oracle": {
        "provider": DEFAULT_PROVIDER,
        "model": "",
        "max_tokens": DEFAULT_MAX_TOKENS,
        "temperature": DEFAULT_TEMPERATURE,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "api_key_env": "",
    },
    "analysis": {
        "profile": "general",
        "profile_file": "",
        "strict": False,
        "fail_on": "",
        "severity_threshold": "",
    },
    "inventory": {
        "ignore": [],
        "max_file_bytes": MAX_FILE_BYTES,
        "max_summary_bytes": MAX_SUMMARY_BYTES,
    },
    "output": {"format": "json"},
    "observability": {"log_level": "WARNING", "log_format": "text"},
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> RealityCheckConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade realitycheck.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade realitycheck"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def redact_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Return deterministic redacted representation for logs and `realitycheck config`."""

    if not isinstance(config, Mapping):
        return {}
    redacted = _redact_value(config, parent_key=None)
    if isinstance(redacted, dict):
        return redacted
    return {}


def looks_sensitive_key(key: str) -> bool:
    """True for keys that name secret material (``*_env`` keys name env vars and are allowed)."""

    normalized = _normalize_key(key)
    if normalized.endswith("_env"):
        return False
    if any(phrase in normalized for phrase in _SENSITIVE_KEY_PHRASES):
        return True
    tokens = tuple(token for token in normalized.split("_") if token)
    return any(token in _SENSITIVE_KEY_TOKENS for token in tokens)


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    sections: dict[str, Callable[[dict[str, object], str, _IssueCollector], dict[str, Any]]] = {
        "meta": _validate_meta,
        "oracle": _validate_oracle,
        "analysis": _validate_analysis,
        "inventory": _validate_inventory,
        "output": _validate_output,
        "observability": _validate_observability,
    }
    _reject_unknown_keys(payload, set(sections), "", issues)
    _require_keys(payload, set(sections), "", issues)

    out: dict[str, Any] = {}
    for key in sorted(sections):
        _section(payload, key=key, issues=issues, validator=sections[key], out=out)
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    issues: _IssueCollector,
    validator: Callable[[dict[str, object], str, _IssueCollector], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_obj = _as_object(raw, key, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, key, issues)


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(
            payload["schema_version"], _join(path, "schema_version"), issues, minimum=1
        )
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_oracle(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"provider", "model", "max_tokens", "temperature", "timeout_seconds", "api_key_env"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "provider" in payload:
        provider = _as_enum(
            payload["provider"],
            _join(path, "provider"),
            issues,
            allowed_values=PROVIDER_NAMES,
            normalize=str.lower,
        )
        if provider is not None:
            out["provider"] = provider

    if "model" in payload:
        model = _as_optional_str(payload["model"], _join(path, "model"), issues)
        if model is not None:
            out["model"] = model

    if "max_tokens" in payload:
        max_tokens = _as_int(payload["max_tokens"], _join(path, "max_tokens"), issues, minimum=1)
        if max_tokens is not None:
            out["max_tokens"] = max_tokens

    if "temperature" in payload:
        temperature = _as_float(
            payload["temperature"], _join(path, "temperature"), issues, minimum=0.0
        )
        if temperature is not None:
            if temperature > 2.0:
                issues.add(_join(path, "temperature"), "must be <= 2.0")
            else:
                out["temperature"] = temperature

    if "timeout_seconds" in payload:
        timeout = _as_float(payload["timeout_seconds"], _join(path, "timeout_seconds"), issues)
        if timeout is not None:
            if timeout <= 0:
                issues.add(_join(path, "timeout_seconds"), "must be > 0")
            else:
                out["timeout_seconds"] = timeout

    if "api_key_env" in payload:
        env_name = _as_optional_str(payload["api_key_env"], _join(path, "api_key_env"), issues)
        if env_name and not _ENV_NAME_PATTERN.fullmatch(env_name):
            issues.add(
                _join(path, "api_key_env"),
                "must be an env var name (example: ANTHROPIC_API_KEY)",
            )
        elif env_name is not None:
            out["api_key_env"] = env_name

    return out


def _validate_analysis(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"profile", "profile_file", "strict", "fail_on", "severity_threshold"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "profile" in payload:
        profile = _as_str(payload["profile"], _join(path, "profile"), issues)
        if profile is not None:
            if _PROFILE_NAME_PATTERN.fullmatch(profile) is None:
                issues.add(_join(path, "profile"), f"must match {_PROFILE_NAME_PATTERN.pattern}")
            else:
                out["profile"] = profile

    if "profile_file" in payload:
        profile_file = _as_optional_str(
            payload["profile_file"], _join(path, "profile_file"), issues
        )
        if profile_file is not None:
            if "\x00" in profile_file:
                issues.add(_join(path, "profile_file"), "must not contain NUL bytes")
            else:
                out["profile_file"] = profile_file

    if "strict" in payload:
        strict = _as_bool(payload["strict"], _join(path, "strict"), issues)
        if strict is not None:
            out["strict"] = strict

    if "fail_on" in payload:
        fail_on = _as_optional_enum(
            payload["fail_on"],
            _join(path, "fail_on"),
            issues,
            allowed_values=tuple(Verdict),
        )
        if fail_on is not None:
            out["fail_on"] = fail_on

    if "severity_threshold" in payload:
        threshold = _as_optional_enum(
            payload["severity_threshold"],
            _join(path, "severity_threshold"),
            issues,
            allowed_values=tuple(Severity),
        )
        if threshold is not None:
            out["severity_threshold"] = threshold

    return out


def _validate_inventory(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"ignore", "max_file_bytes", "max_summary_bytes"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "ignore" in payload:
        ignore = _as_str_list(payload["ignore"], _join(path, "ignore"), issues)
        if ignore is not None:
            for index, name in enumerate(ignore):
                if "/" in name or "\\" in name:
                    issues.add(
                        f"{_join(path, 'ignore')}[{index}]",
                        "must be a directory base name, not a path",
                    )
            out["ignore"] = ignore

    for key in ("max_file_bytes", "max_summary_bytes"):
        if key in payload:
            parsed = _as_int(payload[key], _join(path, key), issues, minimum=1)
            if parsed is not None:
                out[key] = parsed

    return out


def _validate_output(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"format"}, path, issues)
    _require_keys(payload, {"format"}, path, issues)

    out: dict[str, Any] = {}
    if "format" in payload:
        parsed = _as_enum(
            payload["format"],
            _join(path, "format"),
            issues,
            allowed_values=OUTPUT_FORMATS,
            normalize=str.lower,
        )
        if parsed is not None:
            out["format"] = parsed
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        parsed_log_level = _as_enum(
            payload["log_level"],
            _join(path, "log_level"),
            issues,
            allowed_values=LOG_LEVELS,
            normalize=str.upper,
        )
        if parsed_log_level is not None:
            out["log_level"] = parsed_log_level

    if "log_format" in payload:
        parsed_log_format = _as_enum(
            payload["log_format"],
            _join(path, "log_format"),
            issues,
            allowed_values=LOG_FORMATS,
            normalize=str.lower,
        )
        if parsed_log_format is not None:
            out["log_format"] = parsed_log_format

    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_optional_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    return value.strip()


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if not isinstance(value, list):
        issues.add(path, f"expected array, got {type(value).__name__}")
        return None
    out: list[str] = []
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is not None:
            out.append(parsed)
    return out


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: float | None = None,
) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    if minimum is not None and parsed < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return parsed


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
    normalize: Callable[[str], str] | None = None,
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if normalize is not None:
        parsed = normalize(parsed)
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _as_optional_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_optional_str(value, path, issues)
    if parsed is None or not parsed:
        return parsed
    return _as_enum(parsed, path, issues, allowed_values=allowed_values, normalize=str.upper)


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key in allowed:
            continue
        key_path = _join(path, key)
        if looks_sensitive_key(key):
            issues.add(
                key_path,
                "embedded secret values are forbidden; use an *_env key with an env var name",
            )
        else:
            issues.add(key_path, "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _normalize_key(key: str) -> str:
    with_boundaries = _CAMEL_CASE_BOUNDARY.sub(r"\1_\2", key.strip())
    return _NON_ALNUM.sub("_", with_boundaries.lower()).strip("_")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = _deep_copy_value(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        out[key] = _deep_copy_value(value[key])
    return out


def _deep_copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, str):
                out[key] = _deep_copy_value(item)
        return out
    if isinstance(value, list):
        return [_deep_copy_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_deep_copy_value(item) for item in value)
    return copy.deepcopy(value)


def _redact_value(value: object, parent_key: str | None) -> object:
    if isinstance(value, Mapping):
        out: dict[str, object] = {}
        for key in sorted(value):
            item = value[key]
            if _key_is_sensitive_for_redaction(key):
                out[key] = "<redacted>"
            else:
                out[key] = _redact_value(item, key)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, parent_key) for item in value]
    if parent_key is not None and _key_is_sensitive_for_redaction(parent_key):
        return "<redacted>"
    return value


def _key_is_sensitive_for_redaction(key: str) -> bool:
    normalized = _normalize_key(key)
    if normalized.endswith("_env"):
        return True
    return looks_sensitive_key(normalized)


__all__ = [
    "DEFAULT_CONFIG",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "OUTPUT_FORMATS",
    "PATH_FIELDS",
    "PROVIDER_NAMES",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "RealityCheckConfig",
    "assert_valid_config",
    "default_config",
    "looks_sensitive_key",
    "merge_config",
    "migration_guidance",
    "redact_config",
    "validate_config",
]
