"""Organization registry, project template catalog, and their record types."""

from devflow_orchestrator.registry.models import (
    AutomationRules,
    FieldDef,
    OrganizationProfile,
    OrganizationSettings,
    ProjectTemplate,
    SelectOption,
    TemplateSettings,
    ViewDef,
)
from devflow_orchestrator.registry.organizations import (
    OrganizationRegistry,
    unknown_organization_profile,
)
from devflow_orchestrator.registry.templates import ProjectTemplateCatalog

__all__ = [
    "AutomationRules",
    "FieldDef",
    "OrganizationProfile",
    "OrganizationRegistry",
    "OrganizationSettings",
    "ProjectTemplate",
    "ProjectTemplateCatalog",
    "SelectOption",
    "TemplateSettings",
    "ViewDef",
    "unknown_organization_profile",
]
