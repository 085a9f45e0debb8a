"""
devflow-orchestrator — unit tests for structured logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate JSON-lines output, secret redaction, level parsing and config-derived settings.

Functional requirements
- Offline operation; handlers are always detached after each test.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from devflow_orchestrator.observability.logging import (
    LoggingConfig,
    default_log_redactor,
    logging_config_from_tree,
    parse_log_level,
    setup_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

GITHUB_TOKEN = "ghp_" + "Z" * 36


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _logger_name() -> str:
    return f"devflow_orchestrator.tests.logging.{uuid4().hex}"


def test_json_lines_are_valid_and_redacted() -> None:
    stream = io.StringIO()
    logger = setup_logging(LoggingConfig(logger_name=_logger_name(), stream=stream))

    logger.info(
        "loaded token=abc123 with %s",
        GITHUB_TOKEN,
        extra={"nested": {"password": "hunter2", "safe": "ok"}},
    )

    line = stream.getvalue().strip()
    parsed = json.loads(line)
    assert parsed["level"] == "INFO"
    assert parsed["timestamp"].endswith("Z")
    assert parsed["fields"]["nested"] == {"password": "***REDACTED***", "safe": "ok"}
    assert "abc123" not in line
    assert GITHUB_TOKEN not in line
    assert "hunter2" not in line


def test_text_format_redacts_tokens() -> None:
    stream = io.StringIO()
    logger = setup_logging(
        LoggingConfig(logger_name=_logger_name(), stream=stream, json_lines=False)
    )

    logger.warning("github auth failed for %s", GITHUB_TOKEN)

    output = stream.getvalue()
    assert "WARNING" in output
    assert "***REDACTED***" in output
    assert GITHUB_TOKEN not in output


def test_level_filters_records() -> None:
    stream = io.StringIO()
    logger = setup_logging(LoggingConfig(logger_name=_logger_name(), stream=stream, level="warn"))

    logger.info("hidden")
    logger.error("shown")

    lines = stream.getvalue().splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["shown"]


def test_file_handler_writes_json_lines(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "devflow.log"
    logger = setup_logging(
        LoggingConfig(logger_name=_logger_name(), stream=io.StringIO(), log_file=log_file)
    )

    logger.info("written")
    shutdown_logging()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["message"] == "written"


def test_setup_replaces_previous_handlers_and_shutdown_restores_propagation() -> None:
    name = _logger_name()
    first = io.StringIO()
    second = io.StringIO()
    setup_logging(LoggingConfig(logger_name=name, stream=first))
    logger = setup_logging(LoggingConfig(logger_name=name, stream=second))

    logger.info("once")
    assert first.getvalue() == ""
    assert second.getvalue()
    assert logger.propagate is False

    shutdown_logging()
    assert logger.handlers == []
    assert logger.propagate is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("warn", logging.WARNING),
        ("WARNING", logging.WARNING),
        (" debug ", logging.DEBUG),
        ("error", logging.ERROR),
        (15, 15),
    ],
)
def test_parse_log_level(raw: int | str, expected: int) -> None:
    assert parse_log_level(raw) == expected


def test_parse_log_level_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="unsupported logging level"):
        parse_log_level("chatty")


def test_config_from_tree_prefers_logging_section() -> None:
    derived = logging_config_from_tree(
        {"env": {"LOG_LEVEL": "error"}, "logging": {"level": "debug", "format": "simple"}}
    )
    fallback = logging_config_from_tree({"env": {"LOG_LEVEL": "warn"}})

    assert derived.level == "debug"
    assert derived.json_lines is False
    assert fallback.level == "warn"
    assert fallback.json_lines is True


def test_default_redactor_walks_structures() -> None:
    redacted = default_log_redactor(
        {"items": [f"Bearer {GITHUB_TOKEN}"], "smtp_pass": "pw", "count": 3}
    )

    assert redacted == {
        "items": ["Bearer ***REDACTED***"],
        "smtp_pass": "***REDACTED***",
        "count": 3,
    }


def test_default_redactor_masks_smtp_auth_pass_only() -> None:
    redacted = default_log_redactor(
        {"auth": {"user": "mailer@example.com", "pass": "pw"}, "passthrough": "kept"}
    )

    assert redacted == {
        "auth": {"user": "mailer@example.com", "pass": "***REDACTED***"},
        "passthrough": "kept",
    }
