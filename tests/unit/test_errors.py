"""
devflow-orchestrator — unit tests for the error taxonomy

File: tests/unit/test_errors.py

Purpose
- Validate error rendering and the failure-report mapping used by CLI and HTTP layers.
"""

from __future__ import annotations

import pytest

from devflow_orchestrator.errors import (
    ConfigLoadError,
    ConfigValidationError,
    ConfigValidationIssue,
    DevflowError,
    MissingRequiredFileError,
    NotInitializedError,
    OrganizationNotFoundError,
    TemplateNotFoundError,
    UnknownSectionError,
    describe_failure,
)


def _raised(exc: BaseException) -> BaseException:
    try:
        raise exc
    except BaseException as caught:  # noqa: BLE001
        return caught


def test_validation_error_renders_every_issue() -> None:
    error = ConfigValidationError(
        [
            ConfigValidationIssue("server.port", "must be <= 65535"),
            ConfigValidationIssue("", "value must be a mapping"),
        ],
        section="server",
    )

    assert str(error) == (
        "configuration validation failed (server):\n"
        "- server.port: must be <= 65535\n"
        "- value must be a mapping"
    )
    assert error.details == error.issues
    assert isinstance(error, ValueError)


def test_validation_error_without_issues() -> None:
    assert "unknown validation failure" in str(ConfigValidationError([]))


def test_unknown_section_lists_known_sections() -> None:
    error = UnknownSectionError("nope", ["env", "app"])

    assert str(error) == "unknown configuration section 'nope'; expected one of: env, app"
    assert isinstance(error, KeyError)


@pytest.mark.parametrize(
    ("exc", "status", "message"),
    [
        (
            ConfigValidationError([ConfigValidationIssue("a", "bad")]),
            500,
            "configuration is invalid (1 issue)",
        ),
        (
            ConfigValidationError(
                [ConfigValidationIssue("a", "bad"), ConfigValidationIssue("b", "bad")]
            ),
            500,
            "configuration is invalid (2 issues)",
        ),
        (
            MissingRequiredFileError("/etc/devflow/defaults.toml"),
            500,
            "configuration file missing: defaults.toml",
        ),
        (ConfigLoadError("broken toml"), 500, "configuration could not be loaded"),
        (NotInitializedError("configuration manager"), 503, "configuration is not ready yet"),
        (TemplateNotFoundError("basic"), 500, "project template 'basic' is not available"),
        (OrganizationNotFoundError("Acme"), 500, "organization 'Acme' is not registered"),
        (RuntimeError("boom"), 500, "internal error"),
    ],
)
def test_failure_mapping(exc: BaseException, status: int, message: str) -> None:
    report = describe_failure(exc, environment="production")

    assert report.status_code == status
    assert report.message == message
    assert report.detail is None
    assert report.to_dict() == {"status": status, "error": message}


def test_traceback_only_in_development() -> None:
    exc = _raised(ConfigLoadError("broken toml"))

    development = describe_failure(exc, environment="development")
    staging = describe_failure(exc, environment="staging")

    assert development.detail is not None
    assert "Traceback" in development.detail
    assert "broken toml" in development.detail
    assert development.to_dict()["detail"] == development.detail
    assert staging.detail is None


def test_all_core_errors_share_base_class() -> None:
    for error in (
        ConfigLoadError("x"),
        MissingRequiredFileError("x"),
        TemplateNotFoundError("x"),
        OrganizationNotFoundError("x"),
        NotInitializedError("x"),
        UnknownSectionError("x", ()),
    ):
        assert isinstance(error, DevflowError)
