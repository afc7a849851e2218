"""Oracle: prompt assembly, response validation with one repair, provider adapters."""

from realitycheck.oracle.analyze import (
    MAX_ORACLE_CALLS,
    AnalysisOptions,
    AnalysisResult,
    analyze,
)
from realitycheck.oracle.prompts import PromptRenderer, PromptTemplateError
from realitycheck.oracle.validator import (
    fix_invalid_escapes,
    needs_repair,
    strip_code_fences,
    validate_response,
)

__all__ = [
    "MAX_ORACLE_CALLS",
    "AnalysisOptions",
    "AnalysisResult",
    "PromptRenderer",
    "PromptTemplateError",
    "analyze",
    "fix_invalid_escapes",
    "needs_repair",
    "strip_code_fences",
    "validate_response",
]
