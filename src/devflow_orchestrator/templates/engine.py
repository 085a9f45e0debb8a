"""
devflow-orchestrator — project template application engine.

File: src/devflow_orchestrator/templates/engine.py

Purpose
- Turn a project template plus an application context into a concrete project
  configuration: title, description, README, customized fields and views.

Functional requirements
- Output depends only on (template, context) except for ``appliedAt``.
- Field and view order follows the template's declaration order.
- The template passed in is never mutated.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final, Protocol

logger = logging.getLogger(__name__)

PRODUCT_NAME: Final[str] = "DevFlow Orchestrator"


@dataclass(frozen=True, slots=True)
class TemplateContext:
    """Where a template is being applied."""

    repository: str | None = None
    organization: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: TemplateContext | Mapping[str, Any] | None) -> TemplateContext:
        if value is None:
            return cls()
        if isinstance(value, TemplateContext):
            return value
        repository = value.get("repository")
        organization = value.get("organization")
        extra = {
            key: copy.deepcopy(item)
            for key, item in value.items()
            if key not in ("repository", "organization")
        }
        return cls(
            repository=repository or None,
            organization=organization or None,
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = copy.deepcopy(dict(self.extra))
        if self.repository is not None:
            payload["repository"] = self.repository
        if self.organization is not None:
            payload["organization"] = self.organization
        return payload


class TemplateCustomizer(Protocol):
    """Hook for context-dependent adjustments to a template's fields and views."""

    def customize_fields(
        self, fields: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]: ...

    def customize_views(
        self, views: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]: ...


class PassthroughCustomizer:
    """Default customizer: returns independent copies, unchanged."""

    def customize_fields(
        self, fields: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]:
        return [copy.deepcopy(dict(item)) for item in fields]

    def customize_views(
        self, views: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]:
        return [copy.deepcopy(dict(item)) for item in views]


def apply_template(
    template: Mapping[str, Any],
    context: TemplateContext | Mapping[str, Any] | None = None,
    customizer: TemplateCustomizer | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Return the applied project configuration for ``template`` in ``context``."""

    resolved_context = TemplateContext.from_value(context)
    hooks: TemplateCustomizer = customizer if customizer is not None else PassthroughCustomizer()
    timestamp = now if now is not None else datetime.now(timezone.utc)

    logger.info(
        "applying project template %s (repository=%s, organization=%s)",
        template.get("id"),
        resolved_context.repository,
        resolved_context.organization,
    )

    applied: dict[str, Any] = copy.deepcopy(dict(template))
    applied["title"] = generate_title(template, resolved_context)
    applied["description"] = generate_description(template, resolved_context)
    applied["readme"] = generate_readme(template, resolved_context)
    applied["fields"] = hooks.customize_fields(template.get("fields", ()), resolved_context)
    applied["views"] = hooks.customize_views(template.get("views", ()), resolved_context)
    applied["appliedAt"] = _iso_utc(timestamp)
    applied["context"] = resolved_context.to_dict()

    logger.info(
        "template applied: %s (%d fields, %d views)",
        template.get("id"),
        len(applied["fields"]),
        len(applied["views"]),
    )
    return applied


def generate_title(template: Mapping[str, Any], context: TemplateContext) -> str:
    if context.repository and context.organization:
        return f"{context.repository} - {context.organization}"
    return str(template.get("name", ""))


def generate_description(template: Mapping[str, Any], context: TemplateContext) -> str:
    base = str(template.get("description", ""))
    if context.repository:
        return f"{base} - Managing {context.repository} repository with {PRODUCT_NAME}"
    return base


def generate_readme(template: Mapping[str, Any], context: TemplateContext) -> str:
    """Markdown overview of the applied project; deterministic for a given input."""

    field_lines = [
        f"- **{item.get('name')}**: {item.get('type')}" for item in template.get("fields", ())
    ]
    view_lines = [
        f"- **{item.get('name')}**: {item.get('layout')} grouped by "
        f"{item.get('groupBy') or 'default'}"
        for item in template.get("views", ())
    ]
    workflow_lines = [f"- {workflow}" for workflow in template.get("workflows", ())]

    lines = [
        f"# {generate_title(template, context)}",
        "",
        generate_description(template, context),
        "",
        "## Project Configuration",
        "",
        f"**Template**: {template.get('name')}  ",
        f"**Organization Type**: {template.get('organizationType')}  ",
        f"**Managed by**: {PRODUCT_NAME}  ",
        "",
        "### Project Fields",
        *field_lines,
        "",
        "### Project Views",
        *view_lines,
        "",
        "### Automation",
        *workflow_lines,
        "",
        "---",
        f"*Auto-generated by {PRODUCT_NAME} Project Template Manager*  ",
        f"*Template: {template.get('id')}*",
        "",
    ]
    return "\n".join(lines)


def _iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc_value = value.astimezone(timezone.utc)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "PRODUCT_NAME",
    "PassthroughCustomizer",
    "TemplateContext",
    "TemplateCustomizer",
    "apply_template",
    "generate_description",
    "generate_readme",
    "generate_title",
]
