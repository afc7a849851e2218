"""
realitycheck — intent enforcement for agentic coding systems

File: src/realitycheck/__init__.py
Last updated: 2026-10-12

Purpose
- Package root. Audits a code tree against a specification document and an
  execution plan, classifying declared intent as covered or not and code
  behavior as justified, drifting, or violating.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).

Non-functional requirements
- Keep import time small; heavy submodules (provider SDKs) load lazily.
"""

from realitycheck.constants import TOOL_NAME, VERSION

__version__ = VERSION

__all__ = ["TOOL_NAME", "VERSION", "__version__"]
