"""
devflow-orchestrator — unit tests for the CLI router

File: tests/unit/ui/test_cli.py

Purpose
- Validate command routing, JSON payloads, redaction and exit codes in-process.

Functional requirements
- Offline; the process environment is reduced to a valid GitHub token.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from devflow_orchestrator.config.schema import ENV_VAR_NAMES
from devflow_orchestrator.main import ExitCode, cli_entrypoint
from devflow_orchestrator.ui.cli import build_parser, run_cli

VALID_TOKEN = "ghp_" + "a1B2c3D4e5" * 3 + "f6G7h8"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VAR_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", VALID_TOKEN)


def _run(tmp_path: Path, *args: str) -> int:
    return run_cli([*args, "--env-dir", str(tmp_path)])


def _json_out(capsys: pytest.CaptureFixture[str]) -> dict[str, Any]:
    out = capsys.readouterr().out.strip()
    return json.loads(out.splitlines()[-1])


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args([])

    assert excinfo.value.code == 2


def test_config_get_scalar_uses_environment_overrides(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "config", "get", "cache.ttl", "--env", "production") == 0

    assert capsys.readouterr().out.strip() == "900"


def test_config_get_redacts_secrets(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "config", "get", "env.GITHUB_TOKEN", "--json") == 0

    payload = _json_out(capsys)
    assert payload == {"command": "config get", "path": "env.GITHUB_TOKEN", "value": "<redacted>"}


def test_config_get_missing_path_exits_one(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "config", "get", "cache.nope") == 1

    assert "configuration path not found: cache.nope" in capsys.readouterr().err


def test_config_show_section(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "config", "show", "--section", "security", "--json") == 0

    payload = _json_out(capsys)
    assert payload["environment"] == "development"
    assert payload["config"]["security"]["session"]["secret"] == "<redacted>"
    assert payload["config"]["security"]["cors"]["credentials"] is True


def test_config_health(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "config", "health", "--json") == 0

    health = _json_out(capsys)["health"]
    assert health["isInitialized"] is True
    assert health["state"] == "ready"
    assert health["watchedFiles"] == []
    assert "projectTemplates" in health["configSections"]


def test_config_validate_reports_success(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "config", "validate", "--env", "staging", "--no-color") == 0

    out = capsys.readouterr().out
    assert "Configuration is valid (staging)" in out
    assert "OK  server" in out


def test_config_validate_without_token_exits_two(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("GITHUB_TOKEN")

    assert _run(tmp_path, "config", "validate", "--json") == 2

    payload = _json_out(capsys)
    assert payload["valid"] is False
    assert payload["section"] == "env"
    assert [issue["path"] for issue in payload["issues"]] == ["GITHUB_TOKEN"]


def test_env_file_supplies_token(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("GITHUB_TOKEN")
    (tmp_path / ".env").write_text(f"GITHUB_TOKEN={VALID_TOKEN}\nCACHE_TTL=42\n", encoding="utf-8")

    assert _run(tmp_path, "config", "get", "env.CACHE_TTL") == 0

    assert capsys.readouterr().out.strip() == "42"


def test_orgs_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "orgs", "list", "--json") == 0

    organizations = _json_out(capsys)["organizations"]
    assert [item["id"] for item in organizations] == [
        "DevBusinessHub",
        "DevPersonalHub",
        "DevAcademicHub",
        "DevEcosystem",
    ]
    assert organizations[0]["projectTemplate"] == "production-ready"


def test_orgs_show_strict_and_fallback(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "orgs", "show", "Stranger", "--strict") == 1
    assert "organization not registered: Stranger" in capsys.readouterr().err

    assert _run(tmp_path, "orgs", "show", "Stranger", "--json") == 0
    profile = _json_out(capsys)["organization"]
    assert profile["type"] == "unknown"
    assert profile["name"] == "Stranger"


def test_orgs_show_lists_profile_workflows(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "orgs", "show", "DevBusinessHub", "--no-color") == 0

    out = capsys.readouterr().out
    assert "\nWorkflows\n" in out
    assert "  - security-scan\n" in out
    assert "  - customer-notification\n" in out


def test_logging_follows_the_configured_section(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "templates", "show", "basic", "--env", "production") == 1

    err = capsys.readouterr().err
    records = [json.loads(line) for line in err.splitlines() if line.startswith("{")]
    assert any(
        record["level"] == "WARNING" and record["message"] == "template not found: basic"
        for record in records
    )
    assert all(record["level"] != "DEBUG" for record in records)


def test_verbose_keeps_debug_text_logging(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "templates", "show", "basic", "--env", "production", "--verbose") == 1

    err = capsys.readouterr().err
    assert "DEBUG" in err
    assert not any(line.startswith("{") for line in err.splitlines())


def test_orgs_apply_uses_configured_template(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "orgs", "apply", "DevEcosystem", "--repository", "infra", "--json") == 0

    project = _json_out(capsys)["project"]
    assert project["id"] == "infrastructure"
    assert project["title"] == "infra - DevEcosystem"


def test_orgs_apply_unknown_organization_has_no_template(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "orgs", "apply", "Stranger") == 1

    assert "template not found: basic" in capsys.readouterr().err


def test_templates_list_and_show(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "templates", "list", "--json") == 0
    ids = [item["id"] for item in _json_out(capsys)["templates"]]
    assert ids == ["production-ready", "lightweight", "research-focused", "infrastructure"]

    assert _run(tmp_path, "templates", "show", "lightweight", "--no-color") == 0
    out = capsys.readouterr().out
    assert out.startswith("Lightweight Experimentation (lightweight)")

    assert _run(tmp_path, "templates", "show", "basic") == 1


def test_templates_apply(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(
        tmp_path,
        "templates",
        "apply",
        "production-ready",
        "--repository",
        "api",
        "--organization",
        "DevPersonalHub",
        "--json",
    )

    assert code == 0
    project = _json_out(capsys)["project"]
    assert project["title"] == "api - DevPersonalHub"
    assert project["readme"].startswith("# api - DevPersonalHub\n")
    assert project["appliedAt"].endswith("Z")


def test_entrypoint_maps_usage_errors_to_two() -> None:
    assert cli_entrypoint(["bogus"]) == int(ExitCode.CONFIG_ERROR)


def test_entrypoint_maps_broken_config_to_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_dir = tmp_path / "conf"
    (config_dir / "environments").mkdir(parents=True)
    (config_dir / "defaults.toml").write_text("[server\n", encoding="utf-8")
    (config_dir / "environments" / "development.toml").write_text("", encoding="utf-8")

    code = cli_entrypoint(
        ["config", "show", "--config-dir", str(config_dir), "--env-dir", str(tmp_path)]
    )

    assert code == int(ExitCode.CONFIG_ERROR)
    err = capsys.readouterr().err
    assert "error: configuration could not be loaded" in err
    assert "invalid TOML" in err


def test_missing_config_dir_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(tmp_path, "config", "show", "--config-dir", str(tmp_path / "absent"))

    assert code == 2
    assert "required configuration file not found" in capsys.readouterr().err
