"""Project template catalog: validated lookup plus application through the engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any, Final

from devflow_orchestrator.config.schema import validate_config
from devflow_orchestrator.config.sources import ConfigSource, MappingSource, YamlFileSource
from devflow_orchestrator.errors import (
    ConfigValidationError,
    ConfigValidationIssue,
    TemplateNotFoundError,
)
from devflow_orchestrator.registry.models import ProjectTemplate
from devflow_orchestrator.templates.engine import (
    TemplateContext,
    TemplateCustomizer,
)
from devflow_orchestrator.templates.engine import (
    apply_template as apply_project_template,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_FILE: Final[Path] = (
    Path(__file__).resolve().parent / "data" / "project_templates.yaml"
)


class ProjectTemplateCatalog:
    """Template id to ProjectTemplate lookups; loaded and validated at construction."""

    __slots__ = ("_customizer", "_source", "_templates")

    def __init__(
        self,
        source: ConfigSource | Mapping[str, object] | None = None,
        *,
        customizer: TemplateCustomizer | None = None,
    ) -> None:
        if source is None:
            source = YamlFileSource(DEFAULT_TEMPLATES_FILE, name="project_templates")
        elif not isinstance(source, ConfigSource):
            source = MappingSource(source, name="project_templates")
        self._source = source
        self._customizer = customizer
        self._templates: dict[str, ProjectTemplate] = {}
        self.load()

    @property
    def source(self) -> ConfigSource:
        return self._source

    @property
    def customizer(self) -> TemplateCustomizer | None:
        return self._customizer

    def watch_paths(self) -> tuple[Path, ...]:
        return self._source.watch_paths()

    def load(self) -> None:
        """(Re)read the catalog; the previous contents survive a failed load."""

        self.commit_templates(self.load_templates())

    def load_templates(self) -> dict[str, ProjectTemplate]:
        """Read and validate the catalog without touching the active templates."""

        payload = self._source.load()
        issues: list[ConfigValidationIssue] = []
        validated: dict[str, dict[str, Any]] = {}
        for template_id, raw in payload.items():
            result = validate_config(raw, "projectTemplate")
            for issue in result.issues:
                path = (
                    template_id
                    if issue.path in ("", "<root>")
                    else f"{template_id}.{issue.path}"
                )
                issues.append(ConfigValidationIssue(path=path, message=issue.message))
            if result.value is None:
                continue
            declared = result.value.get("id")
            if isinstance(declared, str) and declared != template_id:
                issues.append(
                    ConfigValidationIssue(
                        path=f"{template_id}.id",
                        message=f"must match catalog key {template_id!r}",
                    )
                )
            validated[template_id] = result.value

        if issues:
            logger.error("project template catalog rejected with %d issue(s)", len(issues))
            raise ConfigValidationError(issues, section="projectTemplate")

        return {
            template_id: ProjectTemplate.from_dict(value)
            for template_id, value in validated.items()
        }

    def commit_templates(self, templates: Mapping[str, ProjectTemplate]) -> None:
        """Make ``templates`` (from ``load_templates``) the active catalog."""

        self._templates = dict(templates)
        logger.info("project templates loaded: %s", ", ".join(self._templates) or "<none>")

    def get_template(self, template_id: str) -> dict[str, Any] | None:
        template = self._templates.get(template_id)
        if template is None:
            logger.warning("template not found: %s", template_id)
            return None
        logger.debug("template retrieved: %s", template_id)
        return template.to_dict()

    def get_available_templates(self) -> list[dict[str, Any]]:
        return [template.summary() for template in self._templates.values()]

    def apply_template(
        self,
        template_id: str,
        context: TemplateContext | Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Apply ``template_id`` in ``context``; raises ``TemplateNotFoundError`` on a miss."""

        template = self._templates.get(template_id)
        if template is None:
            logger.warning("template not found: %s", template_id)
            raise TemplateNotFoundError(template_id)
        return apply_project_template(
            template.to_dict(), context, self._customizer, now=now
        )


__all__ = ["DEFAULT_TEMPLATES_FILE", "ProjectTemplateCatalog"]
