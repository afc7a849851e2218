"""Enforcement profiles: prompt addenda and drift escalation policy."""

from realitycheck.profiles.registry import (
    BUILTIN_PROFILES_PATH,
    DEFAULT_PROFILE,
    Profile,
    ProfileRegistry,
    load_profile,
    load_profiles_file,
)

__all__ = [
    "BUILTIN_PROFILES_PATH",
    "DEFAULT_PROFILE",
    "Profile",
    "ProfileRegistry",
    "load_profile",
    "load_profiles_file",
]
