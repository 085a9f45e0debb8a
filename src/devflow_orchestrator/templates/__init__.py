"""Project template application engine."""

from devflow_orchestrator.templates.engine import (
    PassthroughCustomizer,
    TemplateContext,
    TemplateCustomizer,
    apply_template,
    generate_readme,
)

__all__ = [
    "PassthroughCustomizer",
    "TemplateContext",
    "TemplateCustomizer",
    "apply_template",
    "generate_readme",
]
