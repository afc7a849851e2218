"""
realitycheck — unit tests for enforcement profiles

File: tests/unit/profiles/test_profile_registry.py
Last updated: 2026-10-18

What this test file should cover
- Built-in profiles load in declared order with their escalation flags.
- User profile files extend, but never shadow, the built-ins.
- Unknown names and malformed documents raise ProfileError.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from realitycheck.domain.errors import InputError, ProfileError
from realitycheck.profiles import (
    DEFAULT_PROFILE,
    Profile,
    ProfileRegistry,
    load_profile,
    load_profiles_file,
)

TEAM_PROFILES = """
- name: team-service
  description: Team service rules.
  strict_drift_severity: true
  system_prompt_addendum: |
    Flag any new queue consumer.
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "profiles.yaml"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
def test_builtins_load_in_declared_order() -> None:
    registry = ProfileRegistry.with_builtins()

    assert registry.names() == ("general", "strict-api", "data-pipeline", "library")
    assert DEFAULT_PROFILE == "general"
    assert all(profile.builtin for profile in registry)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "escalates", "phrase"),
    [
        ("general", False, "Evaluate all evidence sources equally."),
        ("strict-api", True, "HTTP handler"),
        ("data-pipeline", True, "schema migration"),
        ("library", False, "exported symbols"),
    ],
)
def test_builtin_profile_contents(name: str, escalates: bool, phrase: str) -> None:
    profile = load_profile(name)

    assert profile.strict_drift_severity is escalates
    assert phrase in profile.system_prompt_addendum
    assert "\n" not in profile.system_prompt_addendum


@pytest.mark.unit
def test_unknown_profile_lists_available_names() -> None:
    with pytest.raises(ProfileError) as excinfo:
        load_profile("paranoid")

    assert isinstance(excinfo.value, InputError)
    assert "unknown profile 'paranoid'" in str(excinfo.value)
    assert "general, strict-api, data-pipeline, library" in str(excinfo.value)


@pytest.mark.unit
def test_profile_file_extends_builtins(tmp_path: Path) -> None:
    path = _write(tmp_path, TEAM_PROFILES)

    registry = ProfileRegistry.with_builtins(path)
    profile = load_profile("team-service", profile_file=path)

    assert registry.names()[-1] == "team-service"
    assert len(registry) == 5
    assert profile.strict_drift_severity is True
    assert profile.builtin is False
    assert profile.system_prompt_addendum == "Flag any new queue consumer."


@pytest.mark.unit
def test_profile_file_cannot_shadow_builtin(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "- name: general\n  description: mine\n  system_prompt_addendum: mine\n",
    )

    with pytest.raises(ProfileError, match="'general' is built-in"):
        ProfileRegistry.with_builtins(path)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("name: x\n", "expected top-level YAML sequence"),
        ("- [1, 2]\n", "expected mapping"),
        ("- name: x\n  description: d\n", "missing keys: system_prompt_addendum"),
        (
            "- name: x\n  description: d\n  system_prompt_addendum: a\n  color: red\n",
            "unknown keys: color",
        ),
        (
            "- name: x\n  description: d\n  system_prompt_addendum: a\n"
            "  strict_drift_severity: maybe\n",
            "strict_drift_severity: expected boolean",
        ),
        ("- name: Bad Name\n  description: d\n  system_prompt_addendum: a\n", "must match"),
        ("- name: [unclosed\n", "invalid YAML"),
    ],
)
def test_malformed_profile_files(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ProfileError, match=message):
        load_profiles_file(_write(tmp_path, text))


@pytest.mark.unit
def test_missing_profile_file_is_profile_error(tmp_path: Path) -> None:
    with pytest.raises(ProfileError, match="cannot read profile file"):
        load_profiles_file(tmp_path / "absent.yaml")


@pytest.mark.unit
def test_registry_rejects_duplicate_user_profiles() -> None:
    profile = Profile(name="mine", description="d", system_prompt_addendum="a")
    registry = ProfileRegistry([profile])

    with pytest.raises(ProfileError, match="already registered"):
        registry.register(profile)
