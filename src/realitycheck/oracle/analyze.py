"""
realitycheck — oracle analysis with a single repair attempt

File: src/realitycheck/oracle/analyze.py
Last updated: 2026-10-16

Purpose
- Orchestrates one analysis: render prompts, call the oracle, validate, and
  when the answer is fatally invalid issue exactly one repair request.

Functional requirements
- At most two oracle calls per analysis, strictly sequential.
- Provider failures and deadline expiry propagate as `ProviderError`; they are
  never retried and never confused with validation failures.
- A fatal validation failure after the repair call raises
  `UnrecoverableOutputError` carrying the last issues.

Non-functional requirements
- The provider is injected; nothing here consults a global registry.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from realitycheck.constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, MAX_SUMMARY_BYTES
from realitycheck.domain.errors import UnrecoverableOutputError
from realitycheck.oracle.prompts import PromptRenderer
from realitycheck.oracle.providers.base import ProviderTimeoutError
from realitycheck.oracle.validator import needs_repair, validate_response

if TYPE_CHECKING:
    from collections.abc import Sequence

    from realitycheck.domain.models import Item, PartialReport, ValidationIssue
    from realitycheck.inventory.index import Index
    from realitycheck.oracle.providers.base import OracleProvider
    from realitycheck.profiles.registry import Profile

logger = structlog.get_logger(__name__)

MAX_ORACLE_CALLS = 2


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    strict: bool = False
    max_output_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    timeout_seconds: float | None = None
    max_summary_bytes: int = MAX_SUMMARY_BYTES

    def __post_init__(self) -> None:
        if self.max_output_tokens <= 0:
            raise ValueError("max_output_tokens must be > 0")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be within [0.0, 2.0]")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_summary_bytes <= 0:
            raise ValueError("max_summary_bytes must be > 0")


@dataclass(slots=True)
class AnalysisResult:
    """Validated report plus the non-fatal issues corrected along the way."""

    report: PartialReport
    issues: list[ValidationIssue] = field(default_factory=list)
    oracle_calls: int = 1
    repaired: bool = False


async def analyze(
    spec_items: Sequence[Item],
    plan_items: Sequence[Item],
    index: Index,
    profile: Profile,
    provider: OracleProvider,
    options: AnalysisOptions | None = None,
    *,
    renderer: PromptRenderer | None = None,
) -> AnalysisResult:
    """Run the oracle against the documents and index, repairing once if needed."""

    opts = options if options is not None else AnalysisOptions()
    prompts = renderer if renderer is not None else PromptRenderer()
    system_prompt = prompts.system_prompt(profile, strict=opts.strict)
    user_prompt = prompts.user_prompt(
        spec_items, plan_items, index, max_summary_bytes=opts.max_summary_bytes
    )

    # Prompts hold document text, paths and symbol names only; safe to log verbatim.
    logger.debug("oracle_system_prompt", prompt=system_prompt)
    logger.debug("oracle_user_prompt", prompt=user_prompt)

    started = time.monotonic()
    try:
        async with asyncio.timeout(opts.timeout_seconds):
            raw = await _call(provider, system_prompt, user_prompt, opts, attempt=1)
            report, issues = validate_response(raw, index)
            if report is not None and not needs_repair(report, issues):
                _log_outcome(issues, calls=1, started=started)
                return AnalysisResult(report=report, issues=issues, oracle_calls=1)

            logger.info(
                "oracle_response_invalid",
                attempt=1,
                issues=[str(issue) for issue in issues],
            )
            repair_prompt = prompts.repair_prompt(user_prompt, raw, issues)
            raw = await _call(provider, system_prompt, repair_prompt, opts, attempt=2)
    except TimeoutError as exc:
        raise ProviderTimeoutError(
            f"analysis deadline of {opts.timeout_seconds}s exceeded",
            provider=getattr(provider, "provider_name", "oracle"),
        ) from exc

    report, issues = validate_response(raw, index)
    if report is None or needs_repair(report, issues):
        logger.info(
            "oracle_response_unrecoverable",
            attempt=MAX_ORACLE_CALLS,
            issues=[str(issue) for issue in issues],
        )
        raise UnrecoverableOutputError(issues)

    _log_outcome(issues, calls=MAX_ORACLE_CALLS, started=started)
    return AnalysisResult(
        report=report, issues=issues, oracle_calls=MAX_ORACLE_CALLS, repaired=True
    )


async def _call(
    provider: OracleProvider,
    system_prompt: str,
    user_prompt: str,
    options: AnalysisOptions,
    *,
    attempt: int,
) -> str:
    logger.info("oracle_call_started", attempt=attempt)
    return await provider.complete(
        system_prompt,
        user_prompt,
        max_output_tokens=options.max_output_tokens,
        temperature=options.temperature,
    )


def _log_outcome(issues: Sequence[ValidationIssue], *, calls: int, started: float) -> None:
    for issue in issues:
        logger.info("oracle_response_corrected", field=issue.field, detail=issue.message)
    logger.info(
        "oracle_analysis_completed",
        oracle_calls=calls,
        corrected_issues=len(issues),
        elapsed_ms=int((time.monotonic() - started) * 1000),
    )


__all__ = ["MAX_ORACLE_CALLS", "AnalysisOptions", "AnalysisResult", "analyze"]
