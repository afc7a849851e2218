"""UI package exports for the CLI router and report renderers."""

from realitycheck.ui.cli import CLIError, build_parser, run_cli
from realitycheck.ui.render import (
    FORMATS,
    CLIRenderer,
    md_escape,
    render_json,
    render_markdown,
    render_report,
)

__all__ = [
    "FORMATS",
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "md_escape",
    "render_json",
    "render_markdown",
    "render_report",
    "run_cli",
]
