"""
realitycheck — oracle prompt assembly

File: src/realitycheck/oracle/prompts.py
Last updated: 2026-10-16

Purpose
- Renders the system, user and repair prompts from the packaged Jinja2
  templates in `oracle/templates/` with strict placeholders.

Functional requirements
- Must render prompts deterministically for same inputs.
- Prompts carry document text, file paths, symbol names and manifest text
  only. Source code content never reaches a prompt.

Non-functional requirements
- Missing template variables fail loudly (StrictUndefined).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

from jinja2 import Environment, StrictUndefined, TemplateError, meta

from realitycheck.constants import MAX_SUMMARY_BYTES

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from realitycheck.domain.models import Item, ValidationIssue
    from realitycheck.inventory.index import Index
    from realitycheck.profiles.registry import Profile

TEMPLATE_ROOT: Final[Path] = Path(__file__).with_name("templates")

SYSTEM_TEMPLATE: Final[str] = "system.md.j2"
USER_TEMPLATE: Final[str] = "user.md.j2"
REPAIR_TEMPLATE: Final[str] = "repair.md.j2"


class PromptTemplateError(RuntimeError):
    """Raised when a prompt template is missing or cannot be rendered."""


class PromptRenderer:
    """Deterministic prompt template loader + renderer."""

    def __init__(self, *, template_root: Path | str | None = None) -> None:
        root = Path(template_root) if template_root is not None else TEMPLATE_ROOT
        if not root.is_dir():
            raise PromptTemplateError(f"template root is not a directory: {root}")
        self._template_root = root
        self._environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=False,
            lstrip_blocks=False,
            newline_sequence="\n",
            keep_trailing_newline=True,
        )

    @property
    def template_root(self) -> Path:
        return self._template_root

    def render(self, template_name: str, variables: Mapping[str, object]) -> str:
        path = self._template_root / template_name
        try:
            source = path.read_text(encoding="utf-8").replace("\r\n", "\n")
        except OSError as exc:
            raise PromptTemplateError(f"cannot read template {path}: {exc}") from exc

        declared = meta.find_undeclared_variables(self._environment.parse(source))
        missing = sorted(declared - set(variables))
        if missing:
            raise PromptTemplateError(
                f"{template_name}: missing required template variables: {', '.join(missing)}"
            )
        try:
            return self._environment.from_string(source).render(**variables)
        except TemplateError as exc:
            raise PromptTemplateError(f"{template_name}: {exc}") from exc

    def system_prompt(self, profile: Profile, *, strict: bool) -> str:
        return self.render(
            SYSTEM_TEMPLATE,
            {"strict": strict, "addendum": profile.system_prompt_addendum},
        )

    def user_prompt(
        self,
        spec_items: Sequence[Item],
        plan_items: Sequence[Item],
        index: Index,
        *,
        max_summary_bytes: int = MAX_SUMMARY_BYTES,
    ) -> str:
        return self.render(
            USER_TEMPLATE,
            {
                "spec_items": list(spec_items),
                "plan_items": list(plan_items),
                "inventory_summary": index.summary(max_bytes=max_summary_bytes),
            },
        )

    def repair_prompt(
        self,
        user_prompt: str,
        previous_response: str,
        issues: Sequence[ValidationIssue],
    ) -> str:
        return self.render(
            REPAIR_TEMPLATE,
            {
                "user_prompt": user_prompt,
                "previous_response": previous_response,
                "issues": [str(issue) for issue in issues],
            },
        )


__all__ = [
    "REPAIR_TEMPLATE",
    "SYSTEM_TEMPLATE",
    "TEMPLATE_ROOT",
    "USER_TEMPLATE",
    "PromptRenderer",
    "PromptTemplateError",
]
