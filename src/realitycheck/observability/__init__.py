"""Observability: structured logging with redaction and per-run correlation ids."""

from realitycheck.observability.logging import (
    LoggingConfig,
    configure_logging,
    new_run_id,
    redact_event,
    redact_text,
    run_scope,
)

__all__ = [
    "LoggingConfig",
    "configure_logging",
    "new_run_id",
    "redact_event",
    "redact_text",
    "run_scope",
]
