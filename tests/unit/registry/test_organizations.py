"""
devflow-orchestrator — unit tests for the organization registry

File: tests/unit/registry/test_organizations.py

Purpose
- Validate catalog loading, lookups, strict lookups and the unknown-organization profile.

Functional requirements
- Offline and deterministic.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from devflow_orchestrator.config.schema import validate_config
from devflow_orchestrator.errors import (
    ConfigValidationError,
    NotInitializedError,
    OrganizationNotFoundError,
)
from devflow_orchestrator.registry import (
    OrganizationProfile,
    OrganizationRegistry,
    unknown_organization_profile,
)


def _loaded() -> OrganizationRegistry:
    registry = OrganizationRegistry()
    registry.initialize()
    return registry


def _profile_payload(org_id: str) -> dict[str, Any]:
    return _loaded().get_organization_config("DevPersonalHub") | {"id": org_id, "name": org_id}


def test_packaged_catalog_loads_in_declaration_order() -> None:
    registry = _loaded()

    assert tuple(registry.load_profiles()) == (
        "DevBusinessHub",
        "DevPersonalHub",
        "DevAcademicHub",
        "DevEcosystem",
    )
    assert registry.is_initialized


def test_lookup_returns_camel_case_profile() -> None:
    profile = _loaded().get_organization_config("DevEcosystem")

    assert profile["type"] == "infrastructure"
    assert profile["settings"]["projectTemplate"] == "infrastructure"
    assert {"projectFields", "projectViews", "workflows", "automation"} <= set(profile)
    assert all("layout" in view for view in profile["projectViews"])


def test_lookups_are_isolated_copies() -> None:
    registry = _loaded()
    profile = registry.get_organization_config("DevBusinessHub")
    profile["workflows"].append("tampered")

    assert "tampered" not in registry.get_organization_config("DevBusinessHub")["workflows"]


def test_unknown_organization_gets_synthesized_profile() -> None:
    profile = _loaded().get_organization_config("Stranger")

    assert profile == unknown_organization_profile("Stranger").to_dict()
    assert profile["name"] == "Stranger"
    assert profile["description"] == "Default configuration for unknown organization"


def test_unknown_profile_satisfies_the_organization_schema() -> None:
    result = validate_config(unknown_organization_profile("Stranger").to_dict(), "organization")

    assert result.is_valid, result.issues


def test_strict_lookup() -> None:
    registry = _loaded()

    profile = registry.get_profile("DevAcademicHub")
    assert isinstance(profile, OrganizationProfile)
    assert profile.settings.security_level in {"low", "medium", "high"}

    with pytest.raises(OrganizationNotFoundError, match="Stranger"):
        registry.get_profile("Stranger")


def test_queries_require_initialize() -> None:
    registry = OrganizationRegistry()

    with pytest.raises(NotInitializedError):
        registry.get_organization_config("DevBusinessHub")
    assert not registry.is_initialized


def test_empty_id_is_rejected() -> None:
    with pytest.raises(ValueError):
        _loaded().get_organization_config("")


def test_mapping_source_with_extra_keys_round_trips() -> None:
    payload = _profile_payload("Acme")
    payload["owner"] = {"team": "platform"}
    registry = OrganizationRegistry({"Acme": payload})
    registry.initialize()

    assert registry.get_organization_config("Acme")["owner"] == {"team": "platform"}


def test_invalid_catalog_reports_prefixed_issues() -> None:
    good = _profile_payload("Good")
    bad = copy.deepcopy(good) | {"id": "Other", "type": "corporate"}
    registry = OrganizationRegistry({"Good": good, "Bad": bad})

    with pytest.raises(ConfigValidationError) as excinfo:
        registry.initialize()

    messages = {issue.path: issue.message for issue in excinfo.value.issues}
    assert messages["Bad.type"].startswith("invalid value 'corporate'")
    assert messages["Bad.id"] == "must match catalog key 'Bad'"
    assert excinfo.value.section == "organization"
    assert not registry.is_initialized
