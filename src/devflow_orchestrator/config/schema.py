"""
devflow-orchestrator — configuration schemas and validation.

File: src/devflow_orchestrator/config/schema.py

Purpose
- Declare the rules for environment variables and every configuration section.
- Validate payloads and report every violation with a dotted path.

What should be included in this file
- Environment-variable catalogue with types, defaults and patterns.
- Section validators: app, server, github, cache, logging, organization,
  projectTemplate, and the full merged config.
- Deep-merge and redaction helpers shared by the loader and the manager.

Functional requirements
- Never abort on the first failure; collect all issues for one call.
- Unknown keys are permitted and preserved.
- Unknown section names are programmer errors and raise immediately.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import math
import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Final, Literal
from urllib.parse import urlparse

from devflow_orchestrator.constants import (
    ENVIRONMENTS,
    FIELD_TYPES,
    OPTION_COLORS,
    ORGANIZATION_TYPES,
    SECURITY_LEVELS,
    UNKNOWN_ORGANIZATION_TYPE,
    VIEW_LAYOUTS,
)
from devflow_orchestrator.errors import (
    ConfigValidationError,
    ConfigValidationIssue,
    UnknownSectionError,
)

SECTION_NAMES: Final[tuple[str, ...]] = (
    "env",
    "app",
    "server",
    "github",
    "cache",
    "logging",
    "organization",
    "projectTemplate",
)

LOG_LEVELS: Final[tuple[str, ...]] = ("error", "warn", "info", "debug")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "simple", "combined")
TRANSPORT_TYPES: Final[tuple[str, ...]] = ("console", "file")

GITHUB_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"^ghp_[a-zA-Z0-9]{36,40}$")
_SEMVER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+\.\d+\.\d+$")
_HOSTNAME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*$"
)
_EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CAMEL_CASE_BOUNDARY: Final[re.Pattern[str]] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9]+")

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_SENSITIVE_KEY_TOKENS: Final[frozenset[str]] = frozenset(
    {"secret", "token", "password", "passwd", "pass", "private", "credential", "credentials"}
)
_REDACTED: Final[str] = "<redacted>"

EnvKind = Literal["str", "int", "bool", "enum", "hostname", "email"]


@dataclass(frozen=True, slots=True)
class EnvVarRule:
    """Declarative rule for one recognized environment variable."""

    name: str
    kind: EnvKind
    description: str
    default: object = None
    required: bool = False
    allowed: tuple[str, ...] = ()
    minimum: int | None = None
    maximum: int | None = None
    min_length: int | None = None
    pattern: re.Pattern[str] | None = None
    required_with: str | None = None


ENV_RULES: Final[tuple[EnvVarRule, ...]] = (
    EnvVarRule("NODE_ENV", "enum", "Application environment", "development", allowed=ENVIRONMENTS),
    EnvVarRule("LOG_LEVEL", "enum", "Logging level", "info", allowed=LOG_LEVELS),
    EnvVarRule("PORT", "int", "Server port", 3000, minimum=1, maximum=65535),
    EnvVarRule(
        "GITHUB_TOKEN",
        "str",
        "GitHub personal access token",
        required=True,
        pattern=GITHUB_TOKEN_PATTERN,
    ),
    EnvVarRule("GITHUB_WEBHOOK_SECRET", "str", "GitHub webhook secret", min_length=8),
    EnvVarRule("GITHUB_APP_ID", "int", "GitHub App ID"),
    EnvVarRule("GITHUB_PRIVATE_KEY", "str", "GitHub App private key"),
    EnvVarRule("CACHE_TTL", "int", "Cache TTL in seconds", 300, minimum=1),
    EnvVarRule("CACHE_CHECK_PERIOD", "int", "Cache check period in seconds", 60, minimum=1),
    EnvVarRule(
        "RATE_LIMIT_WINDOW", "int", "Rate limit window in milliseconds", 3_600_000, minimum=1
    ),
    EnvVarRule("RATE_LIMIT_MAX_REQUESTS", "int", "Maximum requests per window", 5000, minimum=1),
    EnvVarRule("WEBHOOK_SECRET", "str", "General webhook secret", min_length=8),
    EnvVarRule("JWT_SECRET", "str", "JWT signing secret", min_length=32),
    EnvVarRule("SESSION_SECRET", "str", "Session signing secret", min_length=16),
    EnvVarRule("ENABLE_HOT_RELOAD", "bool", "Enable configuration hot reloading", True),
    EnvVarRule("ENABLE_METRICS", "bool", "Enable metrics collection", True),
    EnvVarRule("ENABLE_WEBHOOKS", "bool", "Enable webhook processing", True),
    EnvVarRule("SMTP_HOST", "hostname", "SMTP server hostname"),
    EnvVarRule(
        "SMTP_PORT",
        "int",
        "SMTP server port",
        587,
        minimum=1,
        maximum=65535,
        required_with="SMTP_HOST",
    ),
    EnvVarRule("SMTP_USER", "email", "SMTP username"),
    EnvVarRule("SMTP_PASS", "str", "SMTP password"),
    EnvVarRule("SMTP_SECURE", "bool", "Use TLS for SMTP", False),
    EnvVarRule("EMAIL_FROM", "email", "Default from email address", "noreply@devflow.com"),
    EnvVarRule("ALLOWED_ORIGINS", "str", "Comma-separated list of allowed CORS origins"),
)
ENV_VAR_NAMES: Final[tuple[str, ...]] = tuple(rule.name for rule in ENV_RULES)


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Outcome of one validation call; ``value`` carries defaults even when invalid."""

    value: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]
    section: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.value is not None and not self.issues

    @property
    def error(self) -> ConfigValidationError | None:
        if not self.issues:
            return None
        return ConfigValidationError(self.issues, section=self.section)


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


_SectionValidator = Callable[[Mapping[str, object], str, _IssueCollector], dict[str, Any]]


def validate_config(
    config: Mapping[str, object] | object,
    section: str | None = None,
) -> ConfigValidationResult:
    """Validate ``config`` against one section schema, or the full-config schema."""

    validator = _full_config_validator() if section is None else _section_validator(section)
    issues = _IssueCollector()
    root = _as_object(config, "", issues)
    if root is None:
        return ConfigValidationResult(value=None, issues=issues.items(), section=section)
    value = validator(root, "", issues)
    return ConfigValidationResult(value=value, issues=issues.items(), section=section)


def validate_env(env_vars: Mapping[str, object] | None = None) -> ConfigValidationResult:
    """Validate environment variables (``os.environ`` when omitted) and apply defaults."""

    payload: Mapping[str, object] = dict(os.environ) if env_vars is None else env_vars
    return validate_config(payload, "env")


def assert_valid_config(
    config: Mapping[str, object] | object,
    section: str | None = None,
) -> dict[str, Any]:
    """Validate and return the normalized value, raising ``ConfigValidationError``."""

    result = validate_config(config, section)
    if result.error is not None:
        raise result.error
    assert result.value is not None
    return result.value


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base``; overlay wins key by key, lists are replaced."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def redact_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Return a copy with secret-looking values replaced by ``<redacted>``."""

    if not isinstance(config, Mapping):
        return {}
    redacted = _redact_value(config, parent_key=None)
    if isinstance(redacted, dict):
        return redacted
    return {}


def _section_validator(section: str) -> _SectionValidator:
    validators: dict[str, _SectionValidator] = {
        "env": _validate_env,
        "app": _validate_app,
        "server": _validate_server,
        "github": _validate_github,
        "cache": _validate_cache,
        "logging": _validate_logging,
        "organization": _validate_organization,
        "projectTemplate": _validate_project_template,
    }
    validator = validators.get(section)
    if validator is None:
        raise UnknownSectionError(section, SECTION_NAMES)
    return validator


def _full_config_validator() -> _SectionValidator:
    return _validate_root


# ---------------------------------------------------------------------------
# Full config
# ---------------------------------------------------------------------------


def _validate_root(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(payload, ("env",), path, issues)

    for key, validator in (
        ("env", _validate_env),
        ("app", _validate_app),
        ("server", _validate_server),
        ("github", _validate_github),
        ("cache", _validate_cache),
        ("logging", _validate_logging),
    ):
        _section(payload, key=key, path=path, issues=issues, validator=validator, out=out)

    _collection(
        payload,
        key="organizations",
        path=path,
        issues=issues,
        validator=_validate_organization,
        out=out,
    )
    _collection(
        payload,
        key="projectTemplates",
        path=path,
        issues=issues,
        validator=_validate_project_template,
        out=out,
    )

    features = payload.get("features")
    if features is not None:
        features_path = _join(path, "features")
        features_obj = _as_object(features, features_path, issues)
        if features_obj is not None:
            for name, flag in features_obj.items():
                _as_bool(flag, _join(features_path, name), issues)
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    path: str,
    issues: _IssueCollector,
    validator: _SectionValidator,
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_path = _join(path, key)
    section_obj = _as_object(raw, section_path, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, section_path, issues)


def _collection(
    payload: Mapping[str, object],
    *,
    key: str,
    path: str,
    issues: _IssueCollector,
    validator: _SectionValidator,
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    collection_path = _join(path, key)
    collection = _as_object(raw, collection_path, issues)
    if collection is None:
        return
    validated: dict[str, Any] = {}
    for item_key, item in collection.items():
        item_path = _join(collection_path, item_key)
        item_obj = _as_object(item, item_path, issues)
        if item_obj is None:
            validated[item_key] = copy.deepcopy(item)
            continue
        validated[item_key] = validator(item_obj, item_path, issues)
    out[key] = validated


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


def _validate_env(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    present = {name for name in ENV_VAR_NAMES if not _is_blank(payload.get(name))}

    for rule in ENV_RULES:
        key_path = _join(path, rule.name)
        raw = payload.get(rule.name)
        if _is_blank(raw):
            if rule.required or (rule.required_with is not None and rule.required_with in present):
                if rule.required_with is not None and not rule.required:
                    issues.add(key_path, f"is required when {rule.required_with} is set")
                else:
                    issues.add(key_path, "is required")
                out.pop(rule.name, None)
                continue
            if rule.default is not None:
                out[rule.name] = rule.default
            else:
                out.pop(rule.name, None)
            continue

        parsed = _coerce_env_value(raw, rule, key_path, issues)
        if parsed is not None:
            out[rule.name] = parsed
    return out


def _coerce_env_value(
    raw: object, rule: EnvVarRule, path: str, issues: _IssueCollector
) -> object | None:
    if rule.kind == "int":
        return _as_int(
            _int_from_env(raw), path, issues, minimum=rule.minimum, maximum=rule.maximum
        )
    if rule.kind == "bool":
        return _as_bool(_bool_from_env(raw), path, issues)
    if rule.kind == "enum":
        return _as_enum(raw, path, issues, allowed_values=rule.allowed)
    if rule.kind == "hostname":
        return _as_hostname(raw, path, issues)
    if rule.kind == "email":
        return _as_email(raw, path, issues)

    parsed = _as_str(raw, path, issues)
    if parsed is None:
        return None
    if rule.min_length is not None and len(parsed) < rule.min_length:
        issues.add(path, f"length must be at least {rule.min_length} characters")
        return None
    if rule.pattern is not None and not rule.pattern.fullmatch(parsed):
        issues.add(path, f"does not match required pattern {rule.pattern.pattern}")
        return None
    return parsed


def _int_from_env(raw: object) -> object:
    if isinstance(raw, str):
        text = raw.strip()
        if re.fullmatch(r"[+-]?\d+", text):
            return int(text)
    return raw


def _bool_from_env(raw: object) -> object:
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _BOOLEAN_TRUE:
            return True
        if lowered in _BOOLEAN_FALSE:
            return False
    return raw


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Application sections
# ---------------------------------------------------------------------------


def _validate_app(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(payload, ("name", "version", "description"), path, issues)
    if "name" in payload:
        _as_str(payload["name"], _join(path, "name"), issues)
    if "description" in payload:
        _as_str(payload["description"], _join(path, "description"), issues)
    if "version" in payload:
        version = _as_str(payload["version"], _join(path, "version"), issues)
        if version is not None and not _SEMVER_PATTERN.fullmatch(version):
            issues.add(_join(path, "version"), "must be a semantic version (example: 1.0.0)")
    if "homepage" in payload:
        _as_uri(payload["homepage"], _join(path, "homepage"), issues)
    return out


def _validate_server(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(payload, ("port", "host", "timeout", "cors"), path, issues)
    if "port" in payload:
        _as_int(payload["port"], _join(path, "port"), issues, minimum=1, maximum=65535)
    if "host" in payload:
        _as_str(payload["host"], _join(path, "host"), issues)
    if "timeout" in payload:
        _as_positive_number(payload["timeout"], _join(path, "timeout"), issues)
    if "maxRequestSize" in payload:
        _as_str(payload["maxRequestSize"], _join(path, "maxRequestSize"), issues)

    cors_raw = payload.get("cors")
    if cors_raw is not None:
        cors_path = _join(path, "cors")
        cors = _as_object(cors_raw, cors_path, issues)
        if cors is not None:
            _require_keys(cors, ("enabled", "origins", "credentials"), cors_path, issues)
            if "enabled" in cors:
                _as_bool(cors["enabled"], _join(cors_path, "enabled"), issues)
            if "credentials" in cors:
                _as_bool(cors["credentials"], _join(cors_path, "credentials"), issues)
            origins = _as_list(cors.get("origins"), _join(cors_path, "origins"), issues)
            for index, origin in enumerate(origins or ()):
                _as_uri(origin, f"{_join(cors_path, 'origins')}[{index}]", issues)
    return out


def _validate_github(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(
        payload, ("apiVersion", "userAgent", "timeout", "retryConfig", "rateLimit"), path, issues
    )
    if "apiVersion" in payload:
        _as_str(payload["apiVersion"], _join(path, "apiVersion"), issues)
    if "userAgent" in payload:
        _as_str(payload["userAgent"], _join(path, "userAgent"), issues)
    if "timeout" in payload:
        _as_positive_number(payload["timeout"], _join(path, "timeout"), issues)

    retry = _child_object(payload, "retryConfig", path, issues)
    if retry is not None:
        retry_path = _join(path, "retryConfig")
        _require_keys(retry, ("retries", "retryDelay", "retryDelayMultiplier"), retry_path, issues)
        if "retries" in retry:
            _as_int(retry["retries"], _join(retry_path, "retries"), issues, minimum=0, maximum=10)
        if "retryDelay" in retry:
            _as_positive_number(retry["retryDelay"], _join(retry_path, "retryDelay"), issues)
        if "retryDelayMultiplier" in retry:
            _as_float(
                retry["retryDelayMultiplier"],
                _join(retry_path, "retryDelayMultiplier"),
                issues,
                minimum=1.0,
                maximum=5.0,
            )

    rate_limit = _child_object(payload, "rateLimit", path, issues)
    if rate_limit is not None:
        rate_path = _join(path, "rateLimit")
        _require_keys(rate_limit, ("core", "graphql"), rate_path, issues)
        for bucket_name in ("core", "graphql"):
            bucket = _child_object(rate_limit, bucket_name, rate_path, issues)
            if bucket is None:
                continue
            bucket_path = _join(rate_path, bucket_name)
            _require_keys(bucket, ("limit", "remaining", "windowMs"), bucket_path, issues)
            if "limit" in bucket:
                _as_positive_number(bucket["limit"], _join(bucket_path, "limit"), issues)
            if "remaining" in bucket:
                _as_int(bucket["remaining"], _join(bucket_path, "remaining"), issues, minimum=0)
            if "windowMs" in bucket:
                _as_positive_number(bucket["windowMs"], _join(bucket_path, "windowMs"), issues)
            reset = bucket.get("reset")
            if reset is not None and not isinstance(reset, (datetime, date, str)):
                issues.add(_join(bucket_path, "reset"), "expected date or null")
    return out


def _validate_cache(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    flags = ("enabled", "useClones", "deleteOnExpire", "enableLegacyCallbacks", "errorOnMissing")
    numbers = ("ttl", "checkPeriod", "maxKeys")
    _require_keys(payload, (*flags, *numbers), path, issues)
    for key in numbers:
        if key in payload:
            _as_positive_number(payload[key], _join(path, key), issues)
    for key in flags:
        if key in payload:
            _as_bool(payload[key], _join(path, key), issues)
    return out


def _validate_logging(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    flags = (
        "colorize",
        "timestamp",
        "handleExceptions",
        "handleRejections",
        "exitOnError",
    )
    _require_keys(payload, ("level", "format", *flags, "transports"), path, issues)
    if "level" in payload:
        _as_enum(payload["level"], _join(path, "level"), issues, allowed_values=LOG_LEVELS)
    if "format" in payload:
        _as_enum(payload["format"], _join(path, "format"), issues, allowed_values=LOG_FORMATS)
    for key in flags:
        if key in payload:
            _as_bool(payload[key], _join(path, key), issues)
    if "maxsize" in payload:
        _as_str(payload["maxsize"], _join(path, "maxsize"), issues)
    if "maxFiles" in payload:
        _as_int(payload["maxFiles"], _join(path, "maxFiles"), issues, minimum=1)

    transports_path = _join(path, "transports")
    transports = _as_list(payload.get("transports"), transports_path, issues, min_items=1)
    for index, raw in enumerate(transports or ()):
        transport_path = f"{transports_path}[{index}]"
        transport = _as_object(raw, transport_path, issues)
        if transport is None:
            continue
        _require_keys(transport, ("type", "enabled"), transport_path, issues)
        kind = None
        if "type" in transport:
            kind = _as_enum(
                transport["type"],
                _join(transport_path, "type"),
                issues,
                allowed_values=TRANSPORT_TYPES,
            )
        if "enabled" in transport:
            _as_bool(transport["enabled"], _join(transport_path, "enabled"), issues)
        if "level" in transport:
            _as_enum(
                transport["level"],
                _join(transport_path, "level"),
                issues,
                allowed_values=LOG_LEVELS,
            )
        if kind == "file":
            if "filename" not in transport:
                issues.add(_join(transport_path, "filename"), "is required for file transports")
            else:
                _as_str(transport["filename"], _join(transport_path, "filename"), issues)
            if "colorize" in transport:
                issues.add(_join(transport_path, "colorize"), "is not allowed for file transports")
        elif kind == "console":
            if "filename" in transport:
                issues.add(
                    _join(transport_path, "filename"), "is not allowed for console transports"
                )
            if "colorize" in transport:
                _as_bool(transport["colorize"], _join(transport_path, "colorize"), issues)
    return out


# ---------------------------------------------------------------------------
# Organizations and project templates
# ---------------------------------------------------------------------------


def _validate_organization(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(
        payload,
        (
            "id",
            "name",
            "type",
            "description",
            "settings",
            "projectFields",
            "projectViews",
            "workflows",
            "automation",
        ),
        path,
        issues,
    )
    for key in ("id", "name", "description"):
        if key in payload:
            _as_str(payload[key], _join(path, key), issues)
    if "type" in payload:
        _as_enum(
            payload["type"],
            _join(path, "type"),
            issues,
            allowed_values=(*ORGANIZATION_TYPES, UNKNOWN_ORGANIZATION_TYPE),
        )

    settings = _child_object(payload, "settings", path, issues)
    if settings is not None:
        settings_path = _join(path, "settings")
        _require_keys(
            settings,
            ("projectTemplate", "approvalRequired", "autoDeployment", "securityLevel",
             "qualityGates"),
            settings_path,
            issues,
        )
        if "projectTemplate" in settings:
            _as_str(settings["projectTemplate"], _join(settings_path, "projectTemplate"), issues)
        for key in ("approvalRequired", "autoDeployment"):
            if key in settings:
                _as_bool(settings[key], _join(settings_path, key), issues)
        if "securityLevel" in settings:
            _as_enum(
                settings["securityLevel"],
                _join(settings_path, "securityLevel"),
                issues,
                allowed_values=SECURITY_LEVELS,
            )
        if "qualityGates" in settings:
            _as_str_list(settings["qualityGates"], _join(settings_path, "qualityGates"), issues)

    _validate_fields(
        payload.get("projectFields"),
        _join(path, "projectFields"),
        issues,
        option_objects=False,
        min_items=0,
    )
    _validate_views(payload.get("projectViews"), _join(path, "projectViews"), issues, min_items=0)
    if "workflows" in payload:
        _as_str_list(payload["workflows"], _join(path, "workflows"), issues)
    _validate_automation(payload, "automation", path, issues)
    return out


def _validate_project_template(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out = _deep_copy_mapping(payload)
    _require_keys(
        payload,
        (
            "id",
            "name",
            "description",
            "organizationType",
            "settings",
            "fields",
            "views",
            "workflows",
            "automationRules",
        ),
        path,
        issues,
    )
    for key in ("id", "name", "description"):
        if key in payload:
            _as_str(payload[key], _join(path, key), issues)
    if "organizationType" in payload:
        _as_enum(
            payload["organizationType"],
            _join(path, "organizationType"),
            issues,
            allowed_values=ORGANIZATION_TYPES,
        )

    settings = _child_object(payload, "settings", path, issues)
    if settings is not None:
        settings_path = _join(path, "settings")
        _require_keys(
            settings,
            ("public", "securityLevel", "approvalRequired", "autoDeployment"),
            settings_path,
            issues,
        )
        for key in ("public", "approvalRequired", "autoDeployment"):
            if key in settings:
                _as_bool(settings[key], _join(settings_path, key), issues)
        if "securityLevel" in settings:
            _as_enum(
                settings["securityLevel"],
                _join(settings_path, "securityLevel"),
                issues,
                allowed_values=SECURITY_LEVELS,
            )

    _validate_fields(
        payload.get("fields"), _join(path, "fields"), issues, option_objects=True, min_items=1
    )
    _validate_views(payload.get("views"), _join(path, "views"), issues, min_items=1)
    if "workflows" in payload:
        _as_str_list(payload["workflows"], _join(path, "workflows"), issues)
    _validate_automation(payload, "automationRules", path, issues)
    return out


def _validate_fields(
    raw: object,
    path: str,
    issues: _IssueCollector,
    *,
    option_objects: bool,
    min_items: int,
) -> None:
    if raw is None:
        return
    fields = _as_list(raw, path, issues, min_items=min_items)
    for index, item in enumerate(fields or ()):
        field_path = f"{path}[{index}]"
        field = _as_object(item, field_path, issues)
        if field is None:
            continue
        _require_keys(field, ("name", "type"), field_path, issues)
        if "name" in field:
            _as_str(field["name"], _join(field_path, "name"), issues)
        kind = None
        if "type" in field:
            kind = _as_enum(
                field["type"], _join(field_path, "type"), issues, allowed_values=FIELD_TYPES
            )
        options_path = _join(field_path, "options")
        if "options" not in field:
            if kind == "single_select":
                issues.add(options_path, "is required for single_select fields")
            continue
        if option_objects:
            options = _as_list(field["options"], options_path, issues)
            for option_index, option_raw in enumerate(options or ()):
                option_path = f"{options_path}[{option_index}]"
                option = _as_object(option_raw, option_path, issues)
                if option is None:
                    continue
                _require_keys(option, ("name", "color"), option_path, issues)
                if "name" in option:
                    _as_str(option["name"], _join(option_path, "name"), issues)
                if "color" in option:
                    _as_enum(
                        option["color"],
                        _join(option_path, "color"),
                        issues,
                        allowed_values=OPTION_COLORS,
                    )
        else:
            _as_str_list(field["options"], options_path, issues)


def _validate_views(raw: object, path: str, issues: _IssueCollector, *, min_items: int) -> None:
    if raw is None:
        return
    views = _as_list(raw, path, issues, min_items=min_items)
    for index, item in enumerate(views or ()):
        view_path = f"{path}[{index}]"
        view = _as_object(item, view_path, issues)
        if view is None:
            continue
        _require_keys(view, ("name", "layout"), view_path, issues)
        if "name" in view:
            _as_str(view["name"], _join(view_path, "name"), issues)
        if "layout" in view:
            _as_enum(
                view["layout"], _join(view_path, "layout"), issues, allowed_values=VIEW_LAYOUTS
            )
        for key in ("groupBy", "sortBy", "filterBy"):
            if key in view:
                _as_str(view[key], _join(view_path, key), issues)


def _validate_automation(
    payload: Mapping[str, object], key: str, path: str, issues: _IssueCollector
) -> None:
    automation = _child_object(payload, key, path, issues)
    if automation is None:
        return
    automation_path = _join(path, key)
    flags = ("issueLabeling", "projectRouting", "deploymentTriggers")
    _require_keys(automation, (*flags, "notificationRules"), automation_path, issues)
    for flag in flags:
        if flag in automation:
            _as_bool(automation[flag], _join(automation_path, flag), issues)
    if "notificationRules" in automation:
        _as_str_list(
            automation["notificationRules"], _join(automation_path, "notificationRules"), issues
        )


# ---------------------------------------------------------------------------
# Primitive checks
# ---------------------------------------------------------------------------


def _child_object(
    payload: Mapping[str, object], key: str, path: str, issues: _IssueCollector
) -> dict[str, object] | None:
    raw = payload.get(key)
    if raw is None:
        return None
    return _as_object(raw, _join(path, key), issues)


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path or "<root>", f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path or "<root>", f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_list(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    min_items: int = 0,
) -> list[object] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array, got {type(value).__name__}")
        return None
    if len(value) < min_items:
        issues.add(path, f"must contain at least {min_items} item(s)")
    return list(value)


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    items = _as_list(value, path, issues)
    if items is None:
        return None
    parsed: list[str] = []
    for index, item in enumerate(items):
        text = _as_str(item, f"{path}[{index}]", issues)
        if text is not None:
            parsed.append(text)
    return parsed


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if maximum is not None and value > maximum:
        issues.add(path, f"must be <= {maximum}")
        return None
    return value


def _as_float(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    if minimum is not None and parsed < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if maximum is not None and parsed > maximum:
        issues.add(path, f"must be <= {maximum}")
        return None
    return parsed


def _as_positive_number(value: object, path: str, issues: _IssueCollector) -> float | None:
    parsed = _as_float(value, path, issues)
    if parsed is None:
        return None
    if parsed <= 0:
        issues.add(path, "must be a positive number")
        return None
    return parsed


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(allowed_values)
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _as_uri(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    split = urlparse(parsed)
    if not split.scheme or not split.netloc:
        issues.add(path, "must be a valid URI")
        return None
    return parsed


def _as_hostname(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if not _HOSTNAME_PATTERN.fullmatch(parsed):
        issues.add(path, "must be a valid hostname")
        return None
    return parsed


def _as_email(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if not _EMAIL_PATTERN.fullmatch(parsed):
        issues.add(path, "must be a valid email address")
        return None
    return parsed


def _require_keys(
    payload: Mapping[str, object],
    required: tuple[str, ...],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in required:
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


# ---------------------------------------------------------------------------
# Merge and redaction helpers
# ---------------------------------------------------------------------------


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key, value in overlay.items():
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(item) for key, item in value.items()}


def _redact_value(value: object, parent_key: str | None) -> object:
    if isinstance(value, Mapping):
        out: dict[str, object] = {}
        for key, item in value.items():
            if (
                isinstance(key, str)
                and _looks_sensitive_key(key)
                and not isinstance(item, (Mapping, bool))
            ):
                out[key] = _REDACTED
            else:
                out[key] = _redact_value(item, key)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, parent_key) for item in value]
    return value


def _looks_sensitive_key(key: str) -> bool:
    with_boundaries = _CAMEL_CASE_BOUNDARY.sub(r"\1_\2", key.strip())
    normalized = _NON_ALNUM.sub("_", with_boundaries.lower()).strip("_")
    tokens = tuple(token for token in normalized.split("_") if token)
    return any(token in _SENSITIVE_KEY_TOKENS for token in tokens)


__all__ = [
    "ENV_RULES",
    "ENV_VAR_NAMES",
    "GITHUB_TOKEN_PATTERN",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "SECTION_NAMES",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "EnvVarRule",
    "UnknownSectionError",
    "assert_valid_config",
    "merge_config",
    "redact_config",
    "validate_config",
    "validate_env",
]
