"""Structured logging setup with JSON-lines output and secret redaction."""

from __future__ import annotations

import json
import logging
import math
import re
import sys
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Final, TextIO

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

_REDACTED_VALUE: Final[str] = "***REDACTED***"
_DEFAULT_LOGGER_NAME: Final[str] = "devflow_orchestrator"
_SIMPLE_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Config/env level names to stdlib levels; "warn" is the config spelling.
_LEVEL_ALIASES: Final[dict[str, int]] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "authorization",
    "credential",
    "private_key",
    "smtp_pass",
)
_SENSITIVE_EXACT_KEYS: Final[frozenset[str]] = frozenset({"pass"})

_SENSITIVE_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(token|password|secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_BEARER_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_GITHUB_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b"
)

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_INSTALLED_LOCK = threading.Lock()
_INSTALLED_HANDLERS: list[tuple[logging.Logger, logging.Handler]] = []


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Handler configuration for the package logger."""

    level: int | str = "info"
    logger_name: str = _DEFAULT_LOGGER_NAME
    json_lines: bool = True
    stream: TextIO | None = None
    log_file: Path | str | None = None
    redact: bool = True


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Install stream (and optional file) handlers, replacing any previously installed ones."""

    cfg = config or LoggingConfig()
    level = parse_log_level(cfg.level)
    redactor: LogRedactor = default_log_redactor if cfg.redact else _identity_redactor

    formatter: logging.Formatter
    if cfg.json_lines:
        formatter = _JsonLineFormatter(redactor=redactor)
    else:
        formatter = _RedactingTextFormatter(_SIMPLE_FORMAT, redactor=redactor)

    handlers: list[logging.Handler] = [logging.StreamHandler(cfg.stream or sys.stderr)]
    if cfg.log_file is not None:
        path = Path(cfg.log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logger = logging.getLogger(cfg.logger_name)
    shutdown_logging()
    with _INSTALLED_LOCK:
        for handler in handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)
            logger.addHandler(handler)
            _INSTALLED_HANDLERS.append((logger, handler))
    logger.setLevel(level)
    logger.propagate = False
    return logger


def logging_config_from_tree(
    tree: Mapping[str, object], *, stream: TextIO | None = None
) -> LoggingConfig:
    """Derive handler settings from the ``logging`` section, with ``LOG_LEVEL`` as fallback."""

    section = tree.get("logging")
    env = tree.get("env")
    level: str = "info"
    if isinstance(env, Mapping) and isinstance(env.get("LOG_LEVEL"), str):
        level = str(env["LOG_LEVEL"])
    json_lines = True
    if isinstance(section, Mapping):
        if isinstance(section.get("level"), str):
            level = str(section["level"])
        json_lines = section.get("format", "json") == "json"
    return LoggingConfig(level=level, json_lines=json_lines, stream=stream)


def shutdown_logging() -> None:
    """Detach and close every handler installed by ``setup_logging``."""

    with _INSTALLED_LOCK:
        installed = list(_INSTALLED_HANDLERS)
        _INSTALLED_HANDLERS.clear()
    for logger, handler in installed:
        logger.removeHandler(handler)
        handler.close()
        logger.propagate = True


def parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().lower()
    alias = _LEVEL_ALIASES.get(normalized)
    if alias is not None:
        return alias
    parsed = logging.getLevelName(normalized.upper())
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def default_log_redactor(value: JSONValue) -> JSONValue:
    return _redact_value(value, key_context=None)


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits one canonical JSON object per log line."""

    def __init__(self, *, redactor: LogRedactor) -> None:
        super().__init__()
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": _coerce_log_message(
                self._redactor(_normalize_json_value(record.getMessage()))
            ),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = self._redactor(_normalize_json_value(extras))

        if record.exc_info is not None:
            event["exception"] = _coerce_log_message(
                self._redactor(_normalize_json_value(self.formatException(record.exc_info)))
            )

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _RedactingTextFormatter(logging.Formatter):
    def __init__(self, fmt: str, *, redactor: LogRedactor) -> None:
        super().__init__(fmt)
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        return _coerce_log_message(self._redactor(super().format(record)))


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_log_message(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return _REDACTED_VALUE
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            normalized = value.replace(tzinfo=timezone.utc)
        else:
            normalized = value.astimezone(timezone.utc)
        return normalized.isoformat(timespec="microseconds").replace("+00:00", "Z")
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


def _identity_redactor(value: JSONValue) -> JSONValue:
    return value


def _redact_value(value: JSONValue, *, key_context: str | None) -> JSONValue:
    if key_context is not None and _requires_redaction_for_key(key_context):
        return _REDACTED_VALUE

    if isinstance(value, str):
        return _redact_string(value)

    if isinstance(value, list):
        return [_redact_value(item, key_context=None) for item in value]

    if isinstance(value, dict):
        return {key: _redact_value(item, key_context=key) for key, item in value.items()}

    return value


def _requires_redaction_for_key(key: str) -> bool:
    key_lower = key.lower()
    if key_lower in _SENSITIVE_EXACT_KEYS:
        return True
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


def _redact_string(text: str) -> str:
    redacted = _SENSITIVE_ASSIGNMENT_PATTERN.sub(
        lambda match: f"{match.group(1)}{match.group(2)}{_REDACTED_VALUE}", text
    )
    redacted = _BEARER_TOKEN_PATTERN.sub(f"Bearer {_REDACTED_VALUE}", redacted)
    redacted = _GITHUB_TOKEN_PATTERN.sub(_REDACTED_VALUE, redacted)
    return redacted


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LogRedactor",
    "LoggingConfig",
    "default_log_redactor",
    "logging_config_from_tree",
    "parse_log_level",
    "setup_logging",
    "shutdown_logging",
]
