"""
devflow-orchestrator — error taxonomy and failure presentation.

File: src/devflow_orchestrator/errors.py

Purpose
- Define every error type raised by the configuration core.
- Map failures to a user-facing report for downstream HTTP/CLI layers.

Functional requirements
- Validation errors carry the complete list of structured issues.
- Failure reports never expose a traceback outside ``development``.
"""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

_DEVELOPMENT: Final[str] = "development"


class DevflowError(Exception):
    """Base class for configuration-core failures."""


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str

    def render(self) -> str:
        if not self.path:
            return self.message
        return f"{self.path}: {self.message}"


class ConfigValidationError(DevflowError, ValueError):
    """Raised when one or more config values violate their schema."""

    def __init__(self, issues: Sequence[ConfigValidationIssue], *, section: str | None = None):
        self.issues = tuple(issues)
        self.section = section
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.render()}" for item in self.issues)
        scope = f" ({section})" if section else ""
        super().__init__(f"configuration validation failed{scope}:\n{rendered}")

    @property
    def details(self) -> tuple[ConfigValidationIssue, ...]:
        return self.issues


class ConfigLoadError(DevflowError, ValueError):
    """Raised when a config source exists but cannot be read or parsed."""


class MissingRequiredFileError(ConfigLoadError):
    """Raised when a required configuration file is absent."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"required configuration file not found: {self.path}")


class UnknownSectionError(DevflowError, KeyError):
    """Raised when validation is requested for an unrecognized section name."""

    def __init__(self, section: str, known: Sequence[str]) -> None:
        self.section = section
        self.known = tuple(known)
        super().__init__(section)

    def __str__(self) -> str:
        expected = ", ".join(self.known)
        return f"unknown configuration section {self.section!r}; expected one of: {expected}"


class TemplateNotFoundError(DevflowError, LookupError):
    """Raised when a template id is not registered in the catalog."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"template not found: {template_id}")


class OrganizationNotFoundError(DevflowError, LookupError):
    """Raised by strict organization lookups only; plain lookups fall back to a default."""

    def __init__(self, organization_id: str) -> None:
        self.organization_id = organization_id
        super().__init__(f"organization not registered: {organization_id}")


class NotInitializedError(DevflowError, RuntimeError):
    """Raised when a query runs before ``initialize()`` completed."""

    def __init__(self, component: str) -> None:
        self.component = component
        super().__init__(f"{component} not initialized; call initialize() first")


@dataclass(frozen=True, slots=True)
class FailureReport:
    """User-facing description of a failure."""

    status_code: int
    message: str
    detail: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"status": self.status_code, "error": self.message}
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


def describe_failure(exc: BaseException, *, environment: str) -> FailureReport:
    """Map ``exc`` to a 5xx-class report; tracebacks are included in development only."""

    detail: str | None = None
    if environment == _DEVELOPMENT:
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    if isinstance(exc, ConfigValidationError):
        count = len(exc.issues)
        noun = "issue" if count == 1 else "issues"
        return FailureReport(500, f"configuration is invalid ({count} {noun})", detail)
    if isinstance(exc, MissingRequiredFileError):
        return FailureReport(500, f"configuration file missing: {exc.path.name}", detail)
    if isinstance(exc, ConfigLoadError):
        return FailureReport(500, "configuration could not be loaded", detail)
    if isinstance(exc, NotInitializedError):
        return FailureReport(503, "configuration is not ready yet", detail)
    if isinstance(exc, UnknownSectionError):
        return FailureReport(500, "configuration validation was misconfigured", detail)
    if isinstance(exc, TemplateNotFoundError):
        return FailureReport(500, f"project template {exc.template_id!r} is not available", detail)
    if isinstance(exc, OrganizationNotFoundError):
        return FailureReport(
            500, f"organization {exc.organization_id!r} is not registered", detail
        )
    return FailureReport(500, "internal error", detail)


__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DevflowError",
    "FailureReport",
    "MissingRequiredFileError",
    "NotInitializedError",
    "OrganizationNotFoundError",
    "TemplateNotFoundError",
    "UnknownSectionError",
    "describe_failure",
]
