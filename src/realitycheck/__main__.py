"""Module entrypoint for ``python -m realitycheck``."""

from __future__ import annotations

from realitycheck.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
