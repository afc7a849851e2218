"""
realitycheck — CLI end-to-end contracts

File: tests/integration/test_check_cli.py
Last updated: 2026-10-19

Purpose
- Drive `check`, `profiles` and `config` through the real argument parser,
  segmenter, inventory builder, oracle loop and renderers.
- Verify exit codes, stdout/stderr signals and report side effects.

What this test file should cover
- Exit 0 with JSON and Markdown output, stdout or --out.
- Exit 2 from the --fail-on gate, exit 3 for input errors, exit 4 for
  provider failures and exit 5 for unrecoverable oracle output.
- Strict escalation, profile escalation and the severity threshold filter.

Functional requirements
- No network: the provider registry is replaced with a scripted fake.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog

from realitycheck.main import ExitCode, cli_entrypoint
from realitycheck.oracle.providers import (
    ProviderRateLimitError,
    ProviderRegistry,
    ProviderSettings,
)
from realitycheck.ui.cli import run_cli

if TYPE_CHECKING:
    from collections.abc import Iterator

SPEC_TEXT = "# Service\n\n## Behavior\n- Serve HTTP on :8080.\n- Log every request.\n"
PLAN_TEXT = "# Plan\n\n1. Write the handler.\n"
MAIN_GO = "package main\n\nfunc main() {}\n\nfunc Serve() {}\n"


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logger = logging.getLogger("realitycheck")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@dataclass(slots=True)
class _ScriptedProvider:
    outcomes: deque[str | Exception]
    calls: list[dict[str, object]] = field(default_factory=list)
    settings: list[ProviderSettings] = field(default_factory=list)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
            }
        )
        if not self.outcomes:
            raise AssertionError("unexpected oracle call")
        outcome = self.outcomes.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@dataclass(slots=True)
class _StalledProvider:
    calls: int = 0

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        _ = (system_prompt, user_prompt, max_output_tokens, temperature)
        self.calls += 1
        await asyncio.sleep(30)
        return _response()


def _registry(*outcomes: str | Exception) -> tuple[ProviderRegistry, _ScriptedProvider]:
    provider = _ScriptedProvider(outcomes=deque(outcomes))

    def factory(settings: ProviderSettings) -> _ScriptedProvider:
        provider.settings.append(settings)
        return provider

    registry = ProviderRegistry()
    for name in ("anthropic", "openai", "google"):
        registry.register(name, factory)
    return registry, provider


def _response(
    *,
    drift: list[dict[str, object]] | None = None,
    violations: list[dict[str, object]] | None = None,
    spec_status: str = "IMPLEMENTED",
    evidence_path: str = "main.go",
) -> str:
    return json.dumps(
        {
            "coverage": {
                "spec": [
                    {
                        "id": "SPEC-001",
                        "status": spec_status,
                        "spec_reference": {"line_start": 4, "line_end": 4},
                        "evidence": [
                            {"path": evidence_path, "symbol": "Serve", "confidence": "HIGH"}
                        ],
                    },
                    {"id": "SPEC-002", "status": "IMPLEMENTED", "evidence": []},
                ],
                "plan": [{"id": "PLAN-001", "status": "IMPLEMENTED", "evidence": []}],
            },
            "drift": drift or [],
            "violations": violations or [],
            "meta": {"model": "scripted", "temperature": 0.2},
        }
    )


def _drift(severity: str) -> dict[str, object]:
    return {
        "id": "DRIFT-001",
        "severity": severity,
        "description": "Undeclared metrics endpoint",
        "evidence": [{"path": "main.go", "symbol": "main"}],
        "why_unjustified": "Not in spec or plan",
        "recommendation": "Remove it or document it",
    }


def _violation(severity: str) -> dict[str, object]:
    return {
        "id": "VIOLATION-001",
        "severity": severity,
        "description": "Port differs",
        "evidence": [{"path": "main.go"}],
        "impact": "Clients cannot connect",
        "blocking": severity == "CRITICAL",
    }


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "SPEC.md").write_text(SPEC_TEXT, encoding="utf-8")
    (tmp_path / "PLAN.md").write_text(PLAN_TEXT, encoding="utf-8")
    code_root = tmp_path / "src"
    code_root.mkdir()
    (code_root / "main.go").write_text(MAIN_GO, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _check(registry: ProviderRegistry, *extra: str) -> int:
    argv = ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "src", "--offline", *extra]
    return run_cli(argv, registry=registry)


@pytest.mark.integration
def test_check_emits_json_report_and_exits_zero(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, provider = _registry(_response())

    exit_code = _check(registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.SUCCESS
    report = json.loads(captured.out)
    assert report["tool"] == "realitycheck"
    assert report["input"]["spec_file"] == "SPEC.md"
    assert report["input"]["plan_file"] == "PLAN.md"
    assert report["input"]["profile"] == "general"
    assert report["summary"]["verdict"] == "ALIGNED"
    assert report["summary"]["score"] == 100
    assert [entry["id"] for entry in report["coverage"]["spec"]] == ["SPEC-001", "SPEC-002"]

    assert len(provider.calls) == 1
    user_prompt = str(provider.calls[0]["user_prompt"])
    assert "Serve HTTP on :8080." in user_prompt
    assert "main.go" in user_prompt
    assert provider.settings[0].model == "claude-opus-4-6"


@pytest.mark.integration
def test_check_writes_markdown_to_out_file(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(drift=[_drift("WARN")]))

    exit_code = _check(registry, "--format", "md", "--out", "report.md")

    captured = capsys.readouterr()
    assert exit_code == ExitCode.SUCCESS
    assert captured.out == ""
    markdown = (workspace / "report.md").read_text(encoding="utf-8")
    assert markdown.startswith("## RealityCheck Report\n")
    assert "**Verdict:** DRIFT_DETECTED" in markdown
    assert "DRIFT-001" in markdown


@pytest.mark.integration
def test_ungrounded_evidence_is_downgraded_in_report(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, provider = _registry(_response(evidence_path="ghost.go"))

    exit_code = _check(registry)

    report = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert len(provider.calls) == 1
    evidence = report["coverage"]["spec"][0]["evidence"][0]
    assert evidence == {"path": "ghost.go", "symbol": "Serve", "confidence": "LOW"}


@pytest.mark.integration
def test_fail_on_gate_exits_two_after_rendering(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(drift=[_drift("WARN")]))

    exit_code = _check(registry, "--fail-on", "drift_detected")

    captured = capsys.readouterr()
    assert exit_code == ExitCode.FAIL_ON
    assert json.loads(captured.out)["summary"]["verdict"] == "DRIFT_DETECTED"
    assert (
        "verdict DRIFT_DETECTED meets or exceeds --fail-on threshold DRIFT_DETECTED"
        in captured.err
    )


@pytest.mark.integration
def test_fail_on_below_threshold_exits_zero(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(drift=[_drift("WARN")]))

    assert _check(registry, "--fail-on", "VIOLATION") == ExitCode.SUCCESS
    assert "meets or exceeds" not in capsys.readouterr().err


@pytest.mark.integration
def test_strict_escalates_drift_to_violation(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, provider = _registry(_response(drift=[_drift("WARN")]))

    exit_code = _check(registry, "--strict")

    report = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert report["input"]["strict"] is True
    assert report["drift"][0]["severity"] == "CRITICAL"
    assert report["summary"]["verdict"] == "VIOLATION"
    assert report["summary"]["critical_count"] == 1
    assert report["summary"]["score"] == 80
    assert "Strict mode is active." in str(provider.calls[0]["system_prompt"])


@pytest.mark.integration
def test_escalating_profile_raises_drift_without_strict_flag(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(drift=[_drift("INFO")]))

    exit_code = _check(registry, "--profile", "strict-api")

    report = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert report["input"]["profile"] == "strict-api"
    assert report["input"]["strict"] is False
    assert report["drift"][0]["severity"] == "WARN"


@pytest.mark.integration
def test_severity_threshold_filters_rendering_only(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(drift=[_drift("INFO")], violations=[_violation("WARN")]))

    exit_code = _check(registry, "--severity-threshold", "warn")

    report = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert report["drift"] == []
    assert [violation["id"] for violation in report["violations"]] == ["VIOLATION-001"]
    assert report["summary"]["info_count"] == 1
    assert report["summary"]["warn_count"] == 1
    assert report["summary"]["verdict"] == "DRIFT_DETECTED"


@pytest.mark.integration
@pytest.mark.parametrize(
    ("argv", "message"),
    [
        (["check", "--plan", "PLAN.md"], "--spec is required"),
        (["check", "--spec", "SPEC.md"], "--plan is required"),
        (["check", "--spec", "MISSING.md", "--plan", "PLAN.md"], 'spec file "MISSING.md"'),
        (["check", "--spec", "SPEC.md", "--plan", "src"], "is not a regular file"),
        (
            ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "--format", "html"],
            '--format must be "json" or "md"',
        ),
        (
            ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "--fail-on", "broken"],
            '--fail-on value "BROKEN" is not a valid verdict',
        ),
        (
            ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "--provider", "mistral"],
            '--provider value "mistral" is not valid',
        ),
        (
            ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "--profile", "paranoid"],
            "unknown profile 'paranoid'",
        ),
        (["check", "--max-tokens", "lots"], "invalid int value"),
        (["frobnicate"], "invalid choice"),
    ],
)
def test_input_errors_exit_three(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
    argv: list[str],
    message: str,
) -> None:
    registry, provider = _registry(_response())

    exit_code = run_cli([*argv, "--offline"] if argv[0] == "check" else argv, registry=registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.INPUT_ERROR
    assert captured.err.startswith("error: ")
    assert message in captured.err
    assert captured.out == ""
    assert provider.calls == []


@pytest.mark.integration
def test_invalid_config_file_exits_three(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (workspace / "realitycheck.toml").write_text("[oracle]\nmax_tokens = 0\n", encoding="utf-8")
    registry, provider = _registry(_response())

    exit_code = _check(registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.INPUT_ERROR
    assert "invalid config" in captured.err
    assert "oracle.max_tokens" in captured.err
    assert provider.calls == []


@pytest.mark.integration
def test_missing_api_key_exits_four_before_any_call(
    workspace: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    registry, provider = _registry(_response())

    exit_code = run_cli(["check", "--spec", "SPEC.md", "--plan", "PLAN.md"], registry=registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.PROVIDER_ERROR
    assert "ANTHROPIC_API_KEY is not set" in captured.err
    assert "--offline" in captured.err
    assert provider.calls == []


@pytest.mark.integration
def test_configured_api_key_env_passes_preflight(
    workspace: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-not-a-real-key")
    registry, provider = _registry(_response())

    exit_code = run_cli(
        ["check", "--spec", "SPEC.md", "--plan", "PLAN.md", "--provider", "openai", "src"],
        registry=registry,
    )

    assert exit_code == ExitCode.SUCCESS
    assert json.loads(capsys.readouterr().out)["summary"]["verdict"] == "ALIGNED"
    assert provider.settings[0].model == "gpt-4o"
    assert provider.settings[0].api_key_env == "OPENAI_API_KEY"


@pytest.mark.integration
def test_provider_error_exits_four_with_llm_prefix(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, provider = _registry(ProviderRateLimitError("slow down", provider="anthropic"))

    exit_code = _check(registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.PROVIDER_ERROR
    assert captured.err.startswith("error: LLM: provider=anthropic code=rate_limit")
    assert captured.out == ""
    assert len(provider.calls) == 1


@pytest.mark.integration
def test_unrecoverable_output_exits_five_after_one_repair(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, provider = _registry("not json at all", "still not json")

    exit_code = _check(registry)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.UNRECOVERABLE_OUTPUT
    assert captured.out == ""
    (line,) = captured.err.splitlines()
    assert line.startswith("error: invalid model output after repair attempt: ")
    assert len(provider.calls) == 2


@pytest.mark.integration
def test_repaired_response_succeeds(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    registry, provider = _registry("```json\n{broken", f"```json\n{_response()}\n```")

    exit_code = _check(registry)

    assert exit_code == ExitCode.SUCCESS
    assert json.loads(capsys.readouterr().out)["summary"]["verdict"] == "ALIGNED"
    assert len(provider.calls) == 2
    assert "Your previous response was:" in str(provider.calls[1]["user_prompt"])


@pytest.mark.integration
def test_profiles_command_lists_builtins_and_user_profiles(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (workspace / "profiles.yaml").write_text(
        "- name: team-service\n"
        "  description: Team rules.\n"
        "  strict_drift_severity: true\n"
        "  system_prompt_addendum: Flag queue consumers.\n",
        encoding="utf-8",
    )

    exit_code = run_cli(["profiles", "--profile-file", "profiles.yaml"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == ExitCode.SUCCESS
    assert lines[0].split() == ["NAME", "ESCALATES", "DESCRIPTION"]
    rows = {line.split()[0]: line.split()[1] for line in lines[2:]}
    assert rows == {
        "general": "no",
        "strict-api": "yes",
        "data-pipeline": "yes",
        "library": "no",
        "team-service": "yes",
    }


@pytest.mark.integration
def test_config_command_dumps_redacted_effective_config(
    workspace: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    (workspace / "realitycheck.toml").write_text(
        '[oracle]\napi_key_env = "TEAM_LLM_KEY"\nmax_tokens = 4096\n', encoding="utf-8"
    )
    monkeypatch.setenv("REALITYCHECK_ANALYSIS_FAIL_ON", "violation")

    exit_code = run_cli(["config"])

    dumped = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert dumped["oracle"]["api_key_env"] == "<redacted>"
    assert dumped["oracle"]["max_tokens"] == 4096
    assert dumped["analysis"]["fail_on"] == "VIOLATION"


@pytest.mark.integration
def test_entrypoint_version_and_missing_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--version"]) == ExitCode.SUCCESS
    assert capsys.readouterr().out.startswith("realitycheck ")

    assert cli_entrypoint([]) == ExitCode.INPUT_ERROR
    assert "error: " in capsys.readouterr().err


@pytest.mark.integration
def test_default_run_writes_nothing_to_stderr(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response(evidence_path="ghost.go"))

    assert _check(registry) == ExitCode.SUCCESS

    captured = capsys.readouterr()
    assert captured.err == ""
    assert json.loads(captured.out)["summary"]["verdict"] == "ALIGNED"


@pytest.mark.integration
def test_verbose_run_logs_progress_to_stderr_only(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    registry, _ = _registry(_response())

    assert _check(registry, "--verbose") == ExitCode.SUCCESS

    captured = capsys.readouterr()
    assert "check_completed" in captured.err
    assert json.loads(captured.out)["tool"] == "realitycheck"


@pytest.mark.integration
def test_deadline_expiry_writes_only_the_error_line(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    provider = _StalledProvider()
    registry = ProviderRegistry()
    registry.register("anthropic", lambda settings: provider)

    exit_code = _check(registry, "--timeout", "0.05")

    captured = capsys.readouterr()
    assert exit_code == ExitCode.PROVIDER_ERROR
    assert provider.calls == 1
    assert captured.out == ""
    (line,) = captured.err.splitlines()
    assert line.startswith("error: LLM: ")
    assert "code=timeout" in line
    assert "analysis deadline of 0.05s exceeded" in line


@pytest.mark.integration
def test_profiles_command_routes_logs_to_stderr(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["profiles"]) == ExitCode.SUCCESS
    quiet = capsys.readouterr()
    assert quiet.err == ""

    assert run_cli(["profiles", "--verbose"]) == ExitCode.SUCCESS
    verbose = capsys.readouterr()
    assert "profiles_loaded" in verbose.err
    assert "profiles_loaded" not in verbose.out
    assert verbose.out == quiet.out
    assert verbose.out.splitlines()[0].split() == ["NAME", "ESCALATES", "DESCRIPTION"]


@pytest.mark.integration
def test_config_command_keeps_stdout_pure_json_under_debug(
    workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["config", "--debug"]) == ExitCode.SUCCESS
    captured = capsys.readouterr()

    dumped = json.loads(captured.out)
    assert {"oracle", "analysis"} <= set(dumped)
    assert "config_resolved" in captured.err
