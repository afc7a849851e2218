"""Command-line interface router for realitycheck."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, NoReturn

import structlog

from realitycheck.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from realitycheck.constants import DEFAULT_API_KEY_ENVS, DEFAULT_MODELS, TOOL_NAME, VERSION
from realitycheck.domain.errors import InputError, UnrecoverableOutputError
from realitycheck.domain.models import Report, ReportInput, Severity, Verdict
from realitycheck.inventory import build_index
from realitycheck.main import ExitCode
from realitycheck.observability import LoggingConfig, configure_logging, run_scope
from realitycheck.oracle import AnalysisOptions, analyze
from realitycheck.oracle.providers import (
    ProviderError,
    ProviderRegistry,
    ProviderSettings,
    default_registry,
)
from realitycheck.profiles import ProfileRegistry, load_profile
from realitycheck.segmentation import parse_plan, parse_spec
from realitycheck.ui.render import FORMATS, CLIRenderer, render_report
from realitycheck.utils import atomic_write
from realitycheck.verdict import escalate_drift, filter_by_severity, summarize, verdict_ordinal

logger = structlog.get_logger(__name__)

PROVIDER_CHOICES: Final[tuple[str, ...]] = ("anthropic", "openai", "google")
VERDICT_CHOICES: Final[tuple[str, ...]] = tuple(str(verdict) for verdict in Verdict)
SEVERITY_CHOICES: Final[tuple[str, ...]] = tuple(str(severity) for severity in Severity)


@dataclass(slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code.

    Not frozen: contextlib assigns __traceback__ when the error crosses run_scope.
    """

    message: str
    exit_code: int = int(ExitCode.GENERAL_ERROR)

    def __str__(self) -> str:
        return self.message


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors become input errors instead of argparse's exit status 2."""

    def error(self, message: str) -> NoReturn:
        raise CLIError(f"{self.prog}: {message}", exit_code=int(ExitCode.INPUT_ERROR))


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = _ArgumentParser(
        prog=TOOL_NAME,
        description=(
            "realitycheck - compare a spec and an implementation plan against a code tree.\n\n"
            "Common workflows:\n"
            "  realitycheck check --spec SPEC.md --plan PLAN.md .\n"
            "  realitycheck profiles          List enforcement profiles\n"
            "  realitycheck config            Show effective configuration\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{TOOL_NAME} {VERSION}")

    common = _ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./realitycheck.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Log progress and timings to stderr.",
    )
    common.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Log debug output, including the rendered prompts.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Analyze a spec and plan against a code tree",
        description=(
            "Segment SPEC and PLAN, inventory the code tree, ask the oracle for\n"
            "coverage and drift, and emit a scored report.\n\n"
            "Examples:\n"
            "  realitycheck check --spec SPEC.md --plan PLAN.md ./src\n"
            "  realitycheck check --spec SPEC.md --plan PLAN.md --format md --out report.md\n"
            "  realitycheck check --spec SPEC.md --plan PLAN.md --fail-on DRIFT_DETECTED\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    check_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Code root to analyze (default: current working directory).",
    )
    check_parser.add_argument("--spec", default=None, help="Path to the spec document.")
    check_parser.add_argument("--plan", default=None, help="Path to the plan document.")
    check_parser.add_argument(
        "--code-root",
        dest="code_root",
        default=None,
        help="Code root to analyze; takes precedence over PATH.",
    )
    check_parser.add_argument(
        "--format",
        dest="output_format",
        default=None,
        help="Output format: json or md (default: json).",
    )
    check_parser.add_argument("--out", default=None, help="Write the report to this file.")
    check_parser.add_argument("--profile", default=None, help="Enforcement profile name.")
    check_parser.add_argument(
        "--profile-file",
        dest="profile_file",
        default=None,
        help="YAML file with additional profiles.",
    )
    check_parser.add_argument(
        "--provider",
        default=None,
        help="Oracle provider: anthropic, openai or google (default: anthropic).",
    )
    check_parser.add_argument("--model", default=None, help="Model identifier override.")
    check_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Escalate drift severities one level.",
    )
    check_parser.add_argument(
        "--fail-on",
        dest="fail_on",
        default=None,
        help="Exit 2 when the verdict meets or exceeds this verdict.",
    )
    check_parser.add_argument(
        "--severity-threshold",
        dest="severity_threshold",
        default=None,
        help="Only render findings at or above INFO, WARN or CRITICAL.",
    )
    check_parser.add_argument("--max-tokens", dest="max_tokens", type=int, default=None)
    check_parser.add_argument("--temperature", type=float, default=None)
    check_parser.add_argument(
        "--timeout",
        dest="timeout_seconds",
        type=float,
        default=None,
        help="Deadline in seconds for all oracle calls.",
    )
    check_parser.add_argument(
        "--ignore",
        action="append",
        default=None,
        help="Extra directory name to skip while walking (repeatable).",
    )
    check_parser.add_argument(
        "--offline",
        action="store_true",
        default=False,
        help="Skip the API key pre-flight check.",
    )
    check_parser.set_defaults(handler=_cmd_check)

    # profiles ------------------------------------------------------------
    profiles_parser = subparsers.add_parser(
        "profiles",
        parents=[common],
        help="List enforcement profiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    profiles_parser.add_argument(
        "--profile-file",
        dest="profile_file",
        default=None,
        help="YAML file with additional profiles.",
    )
    profiles_parser.set_defaults(handler=_cmd_profiles)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration (redacted)",
        description=(
            "Display the effective config after merging defaults, file, and env.\n"
            "Sensitive values are redacted.\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    registry: ProviderRegistry | None = None,
) -> int:
    """Parse argv, route to a command handler, and return process exit code.

    ``registry`` replaces the bundled provider registry; tests use it to inject
    deterministic fakes.
    """

    parser = build_parser()
    try:
        namespace = parser.parse_args(list(argv) if argv is not None else None)
        handler = getattr(namespace, "handler", None)
        if not callable(handler):
            parser.print_help(sys.stderr)
            return int(ExitCode.INPUT_ERROR)
        namespace.provider_registry = registry
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_check(args: argparse.Namespace) -> int:
    started = time.monotonic()

    spec_arg = _require_flag(args.spec, "--spec")
    plan_arg = _require_flag(args.plan, "--plan")
    spec_path = _require_file(spec_arg, "spec")
    plan_path = _require_file(plan_arg, "plan")
    code_root = args.code_root or args.path or os.getcwd()

    output_format = _validate_format(args.output_format)
    _validate_provider(args.provider)
    fail_on = _validate_verdict_flag(args.fail_on)
    threshold = _validate_severity_flag(args.severity_threshold)

    config = _load_effective_config(args, _check_overrides(args, fail_on, threshold))
    _configure_logging(config, args)

    oracle_cfg = _section(config, "oracle")
    analysis_cfg = _section(config, "analysis")
    inventory_cfg = _section(config, "inventory")

    provider_name = str(oracle_cfg["provider"])
    model = str(oracle_cfg["model"]) or DEFAULT_MODELS[provider_name]
    api_key_env = str(oracle_cfg["api_key_env"]) or DEFAULT_API_KEY_ENVS[provider_name]
    if not args.offline and not os.environ.get(api_key_env, "").strip():
        raise CLIError(
            f"{api_key_env} is not set; set the environment variable "
            "or pass --offline to skip this check",
            exit_code=int(ExitCode.PROVIDER_ERROR),
        )

    output_format = output_format or str(_section(config, "output")["format"])
    fail_on = str(analysis_cfg["fail_on"]) or None
    threshold = str(analysis_cfg["severity_threshold"]) or None
    strict = bool(analysis_cfg["strict"])
    profile_name = str(analysis_cfg["profile"])
    profile_file = str(analysis_cfg["profile_file"]) or None

    registry = getattr(args, "provider_registry", None)
    if registry is None:
        registry = default_registry()

    with run_scope(command="check"):
        timings: dict[str, int] = {}
        try:
            phase = time.monotonic()
            spec_items = parse_spec(spec_path)
            plan_items = parse_plan(plan_path)
            timings["segment_ms"] = _elapsed_ms(phase)

            phase = time.monotonic()
            index = build_index(
                code_root,
                _string_list(inventory_cfg["ignore"]),
                max_file_bytes=int(inventory_cfg["max_file_bytes"]),
            )
            timings["inventory_ms"] = _elapsed_ms(phase)
            profile = load_profile(profile_name, profile_file=profile_file)
        except InputError as exc:
            raise CLIError(str(exc), exit_code=int(ExitCode.INPUT_ERROR)) from exc

        logger.info(
            "check_inputs_ready",
            spec_items=len(spec_items),
            plan_items=len(plan_items),
            files=len(index.files),
            symbols=len(index.symbols),
            profile=profile.name,
            provider=provider_name,
            model=model,
        )

        options = AnalysisOptions(
            strict=strict,
            max_output_tokens=int(oracle_cfg["max_tokens"]),
            temperature=float(oracle_cfg["temperature"]),
            timeout_seconds=float(oracle_cfg["timeout_seconds"]),
            max_summary_bytes=int(inventory_cfg["max_summary_bytes"]),
        )
        phase = time.monotonic()
        try:
            provider = registry.create(
                provider_name,
                ProviderSettings(
                    model=model,
                    api_key_env=api_key_env,
                    timeout_seconds=options.timeout_seconds,
                ),
            )
            result = asyncio.run(analyze(spec_items, plan_items, index, profile, provider, options))
        except UnrecoverableOutputError as exc:
            raise CLIError(str(exc), exit_code=int(ExitCode.UNRECOVERABLE_OUTPUT)) from exc
        except ProviderError as exc:
            raise CLIError(f"LLM: {exc}", exit_code=int(ExitCode.PROVIDER_ERROR)) from exc
        timings["oracle_ms"] = _elapsed_ms(phase)

        partial = escalate_drift(result.report, strict or profile.strict_drift_severity)
        summary = summarize(partial)
        report = Report.from_partial(
            partial,
            tool=TOOL_NAME,
            version=VERSION,
            report_input=ReportInput(
                spec_file=spec_arg,
                plan_file=plan_arg,
                code_root=code_root,
                profile=profile.name,
                strict=strict,
            ),
            summary=summary,
        )
        report = filter_by_severity(report, Severity(threshold) if threshold else None)

        rendered = render_report(report, output_format)
        if not rendered.endswith("\n"):
            rendered += "\n"
        if args.out:
            written = atomic_write(args.out, rendered)
            logger.info("report_written", path=str(written), format=output_format)
        else:
            sys.stdout.write(rendered)
            sys.stdout.flush()

        logger.info(
            "check_completed",
            verdict=str(summary.verdict),
            score=summary.score,
            oracle_calls=result.oracle_calls,
            corrected_issues=len(result.issues),
            total_ms=_elapsed_ms(started),
            **timings,
        )

    if fail_on is not None and verdict_ordinal(summary.verdict) >= verdict_ordinal(fail_on):
        print(
            f"verdict {summary.verdict} meets or exceeds --fail-on threshold {fail_on}",
            file=sys.stderr,
        )
        return int(ExitCode.FAIL_ON)
    return int(ExitCode.SUCCESS)


def _cmd_profiles(args: argparse.Namespace) -> int:
    config = _load_effective_config(args, {"analysis.profile_file": args.profile_file})
    _configure_logging(config, args)
    profile_file = str(_section(config, "analysis")["profile_file"]) or None
    try:
        registry = ProfileRegistry.with_builtins(profile_file)
    except InputError as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.INPUT_ERROR)) from exc
    logger.info("profiles_loaded", count=len(registry), profile_file=profile_file)

    renderer = CLIRenderer()
    rows = [
        [
            profile.name,
            "yes" if profile.strict_drift_severity else "no",
            profile.description,
        ]
        for profile in registry
    ]
    renderer.table(["NAME", "ESCALATES", "DESCRIPTION"], rows)
    return int(ExitCode.SUCCESS)


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args, {})
    _configure_logging(config, args)
    logger.debug("config_resolved", config_file=getattr(args, "config_path", None))
    print(dump_effective_config(config))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Helpers - flags, config, logging
# ---------------------------------------------------------------------------


def _require_flag(value: str | None, flag: str) -> str:
    if value is None or not value.strip():
        raise CLIError(f"{flag} is required", exit_code=int(ExitCode.INPUT_ERROR))
    return value


def _require_file(raw: str, label: str) -> Path:
    path = Path(raw).expanduser()
    try:
        path.stat()
    except OSError as exc:
        raise CLIError(
            f'{label} file "{raw}" not found: {exc.strerror or exc}',
            exit_code=int(ExitCode.INPUT_ERROR),
        ) from exc
    if not path.is_file():
        raise CLIError(
            f'{label} file "{raw}" is not a regular file',
            exit_code=int(ExitCode.INPUT_ERROR),
        )
    return path


def _validate_format(raw: str | None) -> str | None:
    if raw is None:
        return None
    if raw not in FORMATS:
        raise CLIError(
            f'--format must be "json" or "md", got "{raw}"',
            exit_code=int(ExitCode.INPUT_ERROR),
        )
    return raw


def _validate_provider(raw: str | None) -> str | None:
    if raw is None:
        return None
    if raw not in PROVIDER_CHOICES:
        raise CLIError(
            f'--provider value "{raw}" is not valid ({"|".join(PROVIDER_CHOICES)})',
            exit_code=int(ExitCode.INPUT_ERROR),
        )
    return raw


def _validate_verdict_flag(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    value = raw.strip().upper()
    if value not in VERDICT_CHOICES:
        raise CLIError(
            f'--fail-on value "{value}" is not a valid verdict',
            exit_code=int(ExitCode.INPUT_ERROR),
        )
    return value


def _validate_severity_flag(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    value = raw.strip().upper()
    if value not in SEVERITY_CHOICES:
        raise CLIError(
            f'--severity-threshold value "{value}" is not valid ({"|".join(SEVERITY_CHOICES)})',
            exit_code=int(ExitCode.INPUT_ERROR),
        )
    return value


def _check_overrides(
    args: argparse.Namespace,
    fail_on: str | None,
    threshold: str | None,
) -> dict[str, object]:
    return {
        "oracle.provider": args.provider,
        "oracle.model": args.model,
        "oracle.max_tokens": args.max_tokens,
        "oracle.temperature": args.temperature,
        "oracle.timeout_seconds": args.timeout_seconds,
        "analysis.profile": args.profile,
        "analysis.profile_file": _absolute_or_none(args.profile_file),
        "analysis.strict": args.strict,
        "analysis.fail_on": fail_on,
        "analysis.severity_threshold": threshold,
        "inventory.ignore": args.ignore,
        "output.format": args.output_format,
    }


def _absolute_or_none(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    return Path(raw).expanduser().resolve().as_posix()


def _load_effective_config(
    args: argparse.Namespace, overrides: Mapping[str, object]
) -> dict[str, object]:
    config_path = getattr(args, "config_path", None)
    try:
        return load_config(config_path, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.INPUT_ERROR)) from exc


def _configure_logging(config: Mapping[str, object], args: argparse.Namespace) -> None:
    logging_config = LoggingConfig.from_observability(
        _section(config, "observability"),
        verbose=bool(getattr(args, "verbose", False)),
        debug=bool(getattr(args, "debug", False)),
    )
    configure_logging(logging_config)


def _section(config: Mapping[str, object], name: str) -> Mapping[str, object]:
    section = config.get(name)
    if not isinstance(section, Mapping):
        raise CLIError(f"config section [{name}] is missing", exit_code=int(ExitCode.INPUT_ERROR))
    return section


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


__all__ = ["CLIError", "build_parser", "run_cli"]
