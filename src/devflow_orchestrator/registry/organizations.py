"""Organization registry: validated, read-only view of the organization catalog."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from devflow_orchestrator.config.schema import validate_config
from devflow_orchestrator.config.sources import ConfigSource, MappingSource, YamlFileSource
from devflow_orchestrator.constants import UNKNOWN_ORGANIZATION_TYPE
from devflow_orchestrator.errors import (
    ConfigValidationError,
    ConfigValidationIssue,
    NotInitializedError,
    OrganizationNotFoundError,
)
from devflow_orchestrator.registry.models import (
    AutomationRules,
    FieldDef,
    OrganizationProfile,
    OrganizationSettings,
    ViewDef,
)

logger = logging.getLogger(__name__)

DEFAULT_ORGANIZATIONS_FILE: Final[Path] = (
    Path(__file__).resolve().parent / "data" / "organizations.yaml"
)


class OrganizationRegistry:
    """Organization id to profile lookups, loaded once by ``initialize()``."""

    __slots__ = ("_profiles", "_source")

    def __init__(self, source: ConfigSource | Mapping[str, object] | None = None) -> None:
        if source is None:
            source = YamlFileSource(DEFAULT_ORGANIZATIONS_FILE, name="organizations")
        elif not isinstance(source, ConfigSource):
            source = MappingSource(source, name="organizations")
        self._source = source
        self._profiles: dict[str, OrganizationProfile] | None = None

    @property
    def source(self) -> ConfigSource:
        return self._source

    @property
    def is_initialized(self) -> bool:
        return self._profiles is not None

    def watch_paths(self) -> tuple[Path, ...]:
        return self._source.watch_paths()

    def initialize(self) -> None:
        """Load and validate every profile; re-running reloads from the source."""

        self.commit_profiles(self.load_profiles())

    def load_profiles(self) -> dict[str, OrganizationProfile]:
        """Read and validate the catalog without touching the active profiles."""

        payload = self._source.load()
        issues: list[ConfigValidationIssue] = []
        validated: dict[str, dict[str, Any]] = {}
        for org_id, raw in payload.items():
            result = validate_config(raw, "organization")
            issues.extend(_prefixed(org_id, result.issues))
            if result.value is None:
                continue
            declared = result.value.get("id")
            if isinstance(declared, str) and declared != org_id:
                issues.append(
                    ConfigValidationIssue(
                        path=f"{org_id}.id", message=f"must match catalog key {org_id!r}"
                    )
                )
            validated[org_id] = result.value

        if issues:
            logger.error("organization catalog rejected with %d issue(s)", len(issues))
            raise ConfigValidationError(issues, section="organization")

        return {
            org_id: OrganizationProfile.from_dict(value) for org_id, value in validated.items()
        }

    def commit_profiles(self, profiles: Mapping[str, OrganizationProfile]) -> None:
        """Make ``profiles`` (from ``load_profiles``) the active catalog."""

        self._profiles = dict(profiles)
        logger.info(
            "organization profiles loaded: %s", ", ".join(self._profiles) or "<none>"
        )

    def get_organization_config(self, organization_id: str) -> dict[str, Any]:
        """Return the profile for ``organization_id``, or a synthesized default for unknown ids."""

        profiles = self._require_profiles()
        key = _require_id(organization_id)
        profile = profiles.get(key)
        if profile is None:
            logger.warning("organization config not found, using default: %s", key)
            return unknown_organization_profile(key).to_dict()
        logger.debug("retrieved organization config: %s", key)
        return profile.to_dict()

    def get_profile(self, organization_id: str) -> OrganizationProfile:
        """Strict typed lookup."""

        profiles = self._require_profiles()
        key = _require_id(organization_id)
        profile = profiles.get(key)
        if profile is None:
            raise OrganizationNotFoundError(key)
        return profile

    def _require_profiles(self) -> dict[str, OrganizationProfile]:
        if self._profiles is None:
            raise NotInitializedError("organization registry")
        return self._profiles


def unknown_organization_profile(organization_id: str) -> OrganizationProfile:
    """Basic profile handed out for organizations missing from the catalog."""

    return OrganizationProfile(
        id=organization_id,
        name=organization_id,
        type=UNKNOWN_ORGANIZATION_TYPE,
        description="Default configuration for unknown organization",
        settings=OrganizationSettings(
            project_template="basic",
            approval_required=False,
            auto_deployment=False,
            security_level="medium",
            quality_gates=("basic-test",),
        ),
        project_fields=(
            FieldDef("Status", "single_select", ("To Do", "In Progress", "Done")),
            FieldDef("Priority", "single_select", ("High", "Medium", "Low")),
            FieldDef("Assignee", "assignees"),
        ),
        project_views=(ViewDef("Basic Board", "board", group_by="Status"),),
        workflows=("basic-workflow",),
        automation=AutomationRules(
            issue_labeling=True,
            project_routing=False,
            deployment_triggers=False,
            notification_rules=(),
        ),
    )


def _require_id(organization_id: object) -> str:
    if not isinstance(organization_id, str) or not organization_id.strip():
        raise ValueError("organization id must be a non-empty string")
    return organization_id


def _prefixed(
    prefix: str, issues: tuple[ConfigValidationIssue, ...]
) -> list[ConfigValidationIssue]:
    out: list[ConfigValidationIssue] = []
    for issue in issues:
        path = prefix if issue.path in ("", "<root>") else f"{prefix}.{issue.path}"
        out.append(ConfigValidationIssue(path=path, message=issue.message))
    return out


__all__ = [
    "DEFAULT_ORGANIZATIONS_FILE",
    "OrganizationRegistry",
    "unknown_organization_profile",
]
