"""
realitycheck — enforcement profile registry

File: src/realitycheck/profiles/registry.py
Last updated: 2026-10-15

Purpose
- Resolve enforcement profiles by name. A profile contributes a system-prompt
  addendum and decides whether drift severities are escalated.

What should be included in this file
- Packaged built-in profiles (`builtin.yaml`) loaded with `yaml.safe_load`.
- Optional user profiles from a YAML file; they may not shadow a built-in.
- `ProfileError` for unknown names and malformed profile documents.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

import yaml

from realitycheck.domain.errors import ProfileError
from realitycheck.domain.models import JSONValue

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

DEFAULT_PROFILE: Final[str] = "general"
BUILTIN_PROFILES_PATH: Final[Path] = Path(__file__).with_name("builtin.yaml")

_PROFILE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_-]*$")
_REQUIRED_KEYS: Final[frozenset[str]] = frozenset(
    {"name", "description", "system_prompt_addendum"}
)
_ALLOWED_KEYS: Final[frozenset[str]] = _REQUIRED_KEYS | {"strict_drift_severity"}


@dataclass(frozen=True, slots=True)
class Profile:
    name: str
    description: str
    system_prompt_addendum: str
    strict_drift_severity: bool = False
    builtin: bool = False

    def __post_init__(self) -> None:
        if _PROFILE_NAME_PATTERN.fullmatch(self.name) is None:
            raise ProfileError(
                f"profile name {self.name!r} must match {_PROFILE_NAME_PATTERN.pattern}"
            )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "description": self.description,
            "system_prompt_addendum": self.system_prompt_addendum,
            "strict_drift_severity": self.strict_drift_severity,
            "builtin": self.builtin,
        }


def _parse_profile(item: object, *, location: str, builtin: bool) -> Profile:
    if not isinstance(item, dict):
        raise ProfileError(f"{location}: expected mapping, got {type(item).__name__}")
    mapping = cast("Mapping[str, object]", item)
    unknown = sorted(str(key) for key in mapping if key not in _ALLOWED_KEYS)
    if unknown:
        raise ProfileError(f"{location}: unknown keys: {', '.join(unknown)}")
    missing = sorted(_REQUIRED_KEYS - set(mapping))
    if missing:
        raise ProfileError(f"{location}: missing keys: {', '.join(missing)}")
    for key in sorted(_REQUIRED_KEYS):
        if not isinstance(mapping[key], str):
            raise ProfileError(f"{location}.{key}: expected string")
    strict = mapping.get("strict_drift_severity", False)
    if not isinstance(strict, bool):
        raise ProfileError(f"{location}.strict_drift_severity: expected boolean")
    return Profile(
        name=cast("str", mapping["name"]),
        description=cast("str", mapping["description"]),
        system_prompt_addendum=cast("str", mapping["system_prompt_addendum"]).strip(),
        strict_drift_severity=strict,
        builtin=builtin,
    )


def load_profiles_file(path: Path | str, *, builtin: bool = False) -> list[Profile]:
    """Parse a YAML sequence of profile mappings."""

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except OSError as exc:
        raise ProfileError(f"{source}: cannot read profile file ({exc.strerror or exc})") from exc
    except yaml.YAMLError as exc:
        raise ProfileError(f"{source}: invalid YAML ({exc})") from exc

    if not isinstance(loaded, list):
        raise ProfileError(
            f"{source}: expected top-level YAML sequence, got {type(loaded).__name__}"
        )
    return [
        _parse_profile(item, location=f"{source.name}[{index}]", builtin=builtin)
        for index, item in enumerate(loaded)
    ]


class ProfileRegistry:
    """Name -> Profile lookup preserving registration order."""

    def __init__(self, profiles: list[Profile] | None = None) -> None:
        self._profiles: dict[str, Profile] = {}
        for profile in profiles or ():
            self.register(profile)

    @classmethod
    def with_builtins(cls, extra_file: Path | str | None = None) -> ProfileRegistry:
        registry = cls(load_profiles_file(BUILTIN_PROFILES_PATH, builtin=True))
        if extra_file is not None:
            for profile in load_profiles_file(extra_file):
                registry.register(profile)
        return registry

    def register(self, profile: Profile) -> None:
        existing = self._profiles.get(profile.name)
        if existing is not None:
            kind = "built-in" if existing.builtin else "already registered"
            raise ProfileError(f"profile {profile.name!r} is {kind} and cannot be redefined")
        self._profiles[profile.name] = profile

    def names(self) -> tuple[str, ...]:
        return tuple(self._profiles)

    def get(self, name: str) -> Profile:
        profile = self._profiles.get(name)
        if profile is None:
            available = ", ".join(self._profiles)
            raise ProfileError(f"unknown profile {name!r} (available: {available})")
        return profile

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)


def load_profile(name: str, *, profile_file: Path | str | None = None) -> Profile:
    return ProfileRegistry.with_builtins(profile_file).get(name)


__all__ = [
    "BUILTIN_PROFILES_PATH",
    "DEFAULT_PROFILE",
    "Profile",
    "ProfileRegistry",
    "load_profile",
    "load_profiles_file",
]
