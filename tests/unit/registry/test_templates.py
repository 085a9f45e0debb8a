"""
devflow-orchestrator — unit tests for the project template catalog

File: tests/unit/registry/test_templates.py

Purpose
- Validate catalog loading, summaries, lookups and template application hooks.

Functional requirements
- Offline and deterministic (fixed application timestamps).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import pytest

from devflow_orchestrator.config.sources import ConfigSource
from devflow_orchestrator.errors import ConfigValidationError, TemplateNotFoundError
from devflow_orchestrator.registry import ProjectTemplate, ProjectTemplateCatalog
from devflow_orchestrator.templates import TemplateContext

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class _SwappableSource(ConfigSource):
    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload
        self.name = "swappable"

    def load(self) -> dict[str, Any]:
        return dict(self.payload)


class _BoardsOnly:
    """Customizer that keeps board views and tags fields with the repository."""

    def customize_fields(
        self, fields: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]:
        return [dict(item, repository=context.repository) for item in fields]

    def customize_views(
        self, views: Sequence[Mapping[str, Any]], context: TemplateContext
    ) -> list[dict[str, Any]]:
        return [dict(item) for item in views if item.get("layout") == "board"]


def test_packaged_catalog_summaries() -> None:
    catalog = ProjectTemplateCatalog()

    summaries = catalog.get_available_templates()

    assert [item["id"] for item in summaries] == list(catalog.load_templates())
    assert summaries[0] == {
        "id": "production-ready",
        "name": "Production Ready Project",
        "description": "Enterprise-grade project template with comprehensive workflow management",
        "organizationType": "production",
    }


def test_template_lookup_and_records() -> None:
    catalog = ProjectTemplateCatalog()

    template = catalog.get_template("research-focused")
    record = catalog.load_templates()["research-focused"]

    assert template is not None
    assert template["organizationType"] == "research"
    assert isinstance(record, ProjectTemplate)
    assert record.to_dict() == template
    assert catalog.get_template("missing") is None


def test_single_select_options_keep_colors() -> None:
    template = ProjectTemplateCatalog().get_template("production-ready")

    assert template is not None
    status = template["fields"][0]
    assert status["name"] == "Status"
    assert status["options"][0] == {"name": "Backlog", "color": "GRAY"}
    assert "options" not in template["fields"][3]


def test_apply_template_uses_fixed_timestamp() -> None:
    applied = ProjectTemplateCatalog().apply_template(
        "lightweight", {"repository": "playground"}, now=FIXED_NOW
    )

    assert applied["appliedAt"] == "2024-01-02T03:04:05.000Z"
    assert applied["title"] == "Lightweight Experimentation"
    assert applied["context"] == {"repository": "playground"}


def test_apply_unknown_template_raises() -> None:
    with pytest.raises(TemplateNotFoundError) as excinfo:
        ProjectTemplateCatalog().apply_template("basic")

    assert excinfo.value.template_id == "basic"


def test_customizer_hook_is_applied() -> None:
    catalog = ProjectTemplateCatalog(customizer=_BoardsOnly())

    applied = catalog.apply_template("production-ready", {"repository": "api"}, now=FIXED_NOW)

    assert [view["layout"] for view in applied["views"]] == ["board"]
    assert all(item["repository"] == "api" for item in applied["fields"])
    assert "Priority Matrix" in applied["readme"]


def test_invalid_catalog_is_rejected_and_previous_contents_survive() -> None:
    source = _SwappableSource({})
    source.payload = {"lightweight": ProjectTemplateCatalog().get_template("lightweight")}
    catalog = ProjectTemplateCatalog(source)

    broken = dict(source.payload["lightweight"])
    broken["fields"] = [{"name": "Status", "type": "single_select"}]
    source.payload = {"lightweight": broken}

    with pytest.raises(ConfigValidationError) as excinfo:
        catalog.load()

    assert [issue.path for issue in excinfo.value.issues] == ["lightweight.fields[0].options"]
    assert excinfo.value.section == "projectTemplate"
    assert [item["id"] for item in catalog.get_available_templates()] == ["lightweight"]
    assert catalog.get_template("lightweight")["fields"][0]["options"]


def test_template_lookups_are_independent_copies() -> None:
    catalog = ProjectTemplateCatalog()
    template = catalog.get_template("infrastructure")
    template["workflows"].clear()

    assert catalog.get_template("infrastructure")["workflows"]
