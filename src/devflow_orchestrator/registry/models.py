"""Immutable catalog records for organization profiles and project templates.

Payloads are validated by ``config.schema`` before they reach ``from_dict``; the
constructors here only reshape them into frozen records. ``to_dict`` produces the
camelCase wire shape used by the config tree and the CLI, as a fresh copy every call.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class SelectOption:
    name: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color}


@dataclass(frozen=True, slots=True)
class FieldDef:
    """Project field; ``options`` is set only for ``single_select`` fields."""

    name: str
    type: str
    options: tuple[str | SelectOption, ...] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDef:
        raw_options = data.get("options")
        options: tuple[str | SelectOption, ...] | None = None
        if raw_options is not None:
            options = tuple(_option_from(item) for item in raw_options)
        return cls(name=str(data["name"]), type=str(data["type"]), options=options)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.options is not None:
            payload["options"] = [
                item.to_dict() if isinstance(item, SelectOption) else item
                for item in self.options
            ]
        return payload


@dataclass(frozen=True, slots=True)
class ViewDef:
    name: str
    layout: str
    group_by: str | None = None
    sort_by: str | None = None
    filter_by: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewDef:
        return cls(
            name=str(data["name"]),
            layout=str(data["layout"]),
            group_by=data.get("groupBy"),
            sort_by=data.get("sortBy"),
            filter_by=data.get("filterBy"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "layout": self.layout}
        if self.group_by is not None:
            payload["groupBy"] = self.group_by
        if self.sort_by is not None:
            payload["sortBy"] = self.sort_by
        if self.filter_by is not None:
            payload["filterBy"] = self.filter_by
        return payload


@dataclass(frozen=True, slots=True)
class AutomationRules:
    issue_labeling: bool
    project_routing: bool
    deployment_triggers: bool
    notification_rules: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AutomationRules:
        return cls(
            issue_labeling=bool(data["issueLabeling"]),
            project_routing=bool(data["projectRouting"]),
            deployment_triggers=bool(data["deploymentTriggers"]),
            notification_rules=tuple(data.get("notificationRules", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "issueLabeling": self.issue_labeling,
            "projectRouting": self.project_routing,
            "deploymentTriggers": self.deployment_triggers,
            "notificationRules": list(self.notification_rules),
        }


@dataclass(frozen=True, slots=True)
class OrganizationSettings:
    project_template: str
    approval_required: bool
    auto_deployment: bool
    security_level: str
    quality_gates: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrganizationSettings:
        return cls(
            project_template=str(data["projectTemplate"]),
            approval_required=bool(data["approvalRequired"]),
            auto_deployment=bool(data["autoDeployment"]),
            security_level=str(data["securityLevel"]),
            quality_gates=tuple(data.get("qualityGates", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectTemplate": self.project_template,
            "approvalRequired": self.approval_required,
            "autoDeployment": self.auto_deployment,
            "securityLevel": self.security_level,
            "qualityGates": list(self.quality_gates),
        }


@dataclass(frozen=True, slots=True)
class OrganizationProfile:
    """Configuration record for one GitHub organization."""

    id: str
    name: str
    type: str
    description: str
    settings: OrganizationSettings
    project_fields: tuple[FieldDef, ...]
    project_views: tuple[ViewDef, ...]
    workflows: tuple[str, ...]
    automation: AutomationRules
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrganizationProfile:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=str(data["type"]),
            description=str(data["description"]),
            settings=OrganizationSettings.from_dict(data["settings"]),
            project_fields=tuple(FieldDef.from_dict(item) for item in data["projectFields"]),
            project_views=tuple(ViewDef.from_dict(item) for item in data["projectViews"]),
            workflows=tuple(data["workflows"]),
            automation=AutomationRules.from_dict(data["automation"]),
            extras=_extras(data, _ORGANIZATION_KEYS),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "settings": self.settings.to_dict(),
            "projectFields": [item.to_dict() for item in self.project_fields],
            "projectViews": [item.to_dict() for item in self.project_views],
            "workflows": list(self.workflows),
            "automation": self.automation.to_dict(),
        }
        payload.update(copy.deepcopy(dict(self.extras)))
        return payload


@dataclass(frozen=True, slots=True)
class TemplateSettings:
    public: bool
    security_level: str
    approval_required: bool
    auto_deployment: bool

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TemplateSettings:
        return cls(
            public=bool(data["public"]),
            security_level=str(data["securityLevel"]),
            approval_required=bool(data["approvalRequired"]),
            auto_deployment=bool(data["autoDeployment"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "public": self.public,
            "securityLevel": self.security_level,
            "approvalRequired": self.approval_required,
            "autoDeployment": self.auto_deployment,
        }


@dataclass(frozen=True, slots=True)
class ProjectTemplate:
    """Reusable GitHub Projects V2 blueprint."""

    id: str
    name: str
    description: str
    organization_type: str
    settings: TemplateSettings
    fields: tuple[FieldDef, ...]
    views: tuple[ViewDef, ...]
    workflows: tuple[str, ...]
    automation_rules: AutomationRules
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectTemplate:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data["description"]),
            organization_type=str(data["organizationType"]),
            settings=TemplateSettings.from_dict(data["settings"]),
            fields=tuple(FieldDef.from_dict(item) for item in data["fields"]),
            views=tuple(ViewDef.from_dict(item) for item in data["views"]),
            workflows=tuple(data["workflows"]),
            automation_rules=AutomationRules.from_dict(data["automationRules"]),
            extras=_extras(data, _TEMPLATE_KEYS),
        )

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "organizationType": self.organization_type,
        }

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "organizationType": self.organization_type,
            "settings": self.settings.to_dict(),
            "fields": [item.to_dict() for item in self.fields],
            "views": [item.to_dict() for item in self.views],
            "workflows": list(self.workflows),
            "automationRules": self.automation_rules.to_dict(),
        }
        payload.update(copy.deepcopy(dict(self.extras)))
        return payload


_ORGANIZATION_KEYS = frozenset(
    {
        "id",
        "name",
        "type",
        "description",
        "settings",
        "projectFields",
        "projectViews",
        "workflows",
        "automation",
    }
)
_TEMPLATE_KEYS = frozenset(
    {
        "id",
        "name",
        "description",
        "organizationType",
        "settings",
        "fields",
        "views",
        "workflows",
        "automationRules",
    }
)


def _option_from(item: object) -> str | SelectOption:
    if isinstance(item, Mapping):
        return SelectOption(name=str(item["name"]), color=str(item["color"]))
    return str(item)


def _extras(data: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {key: copy.deepcopy(value) for key, value in data.items() if key not in known}


__all__ = [
    "AutomationRules",
    "FieldDef",
    "OrganizationProfile",
    "OrganizationSettings",
    "ProjectTemplate",
    "SelectOption",
    "TemplateSettings",
    "ViewDef",
]
