"""
devflow-orchestrator — unit tests for the template application engine

File: tests/unit/templates/test_engine.py

Purpose
- Validate generated titles, descriptions, READMEs and determinism of application.

What this test file should cover
- Title/description rules for every context combination.
- README layout: fields and views in declaration order, footer with the template id.
- Application never mutates the template; output depends only on inputs and ``now``.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from devflow_orchestrator.templates.engine import (
    PRODUCT_NAME,
    TemplateContext,
    apply_template,
    generate_description,
    generate_readme,
    generate_title,
)

FIXED_NOW = datetime(2025, 6, 30, 12, 0, 0, 123456, tzinfo=timezone.utc)


def _template() -> dict[str, Any]:
    return {
        "id": "mini",
        "name": "Mini Project",
        "description": "Small template",
        "organizationType": "experimental",
        "fields": [
            {
                "name": "Status",
                "type": "single_select",
                "options": [{"name": "Todo", "color": "GRAY"}],
            },
            {"name": "Estimate", "type": "number"},
        ],
        "views": [
            {"name": "Board", "layout": "board", "groupBy": "Status"},
            {"name": "All", "layout": "table"},
        ],
        "workflows": ["ci", "release"],
    }


def test_title_rules() -> None:
    template = _template()

    assert generate_title(template, TemplateContext("api", "Acme")) == "api - Acme"
    assert generate_title(template, TemplateContext("api", None)) == "Mini Project"
    assert generate_title(template, TemplateContext(None, "Acme")) == "Mini Project"


def test_description_rules() -> None:
    template = _template()

    assert generate_description(template, TemplateContext()) == "Small template"
    assert generate_description(template, TemplateContext(repository="api")) == (
        f"Small template - Managing api repository with {PRODUCT_NAME}"
    )


def test_readme_layout() -> None:
    readme = generate_readme(_template(), TemplateContext("api", "Acme"))
    lines = readme.splitlines()

    assert lines[0] == "# api - Acme"
    assert "**Template**: Mini Project  " in lines
    assert "**Organization Type**: experimental  " in lines
    assert f"**Managed by**: {PRODUCT_NAME}  " in lines
    fields_at = lines.index("### Project Fields")
    assert lines[fields_at + 1 : fields_at + 3] == [
        "- **Status**: single_select",
        "- **Estimate**: number",
    ]
    views_at = lines.index("### Project Views")
    assert lines[views_at + 1 : views_at + 3] == [
        "- **Board**: board grouped by Status",
        "- **All**: table grouped by default",
    ]
    automation_at = lines.index("### Automation")
    assert lines[automation_at + 1 : automation_at + 3] == ["- ci", "- release"]
    assert lines[-1] == "*Template: mini*"


def test_apply_sets_generated_keys() -> None:
    applied = apply_template(
        _template(), {"repository": "api", "organization": "Acme"}, now=FIXED_NOW
    )

    assert applied["id"] == "mini"
    assert applied["title"] == "api - Acme"
    assert applied["appliedAt"] == "2025-06-30T12:00:00.123Z"
    assert applied["fields"] == _template()["fields"]
    assert applied["views"] == _template()["views"]
    assert applied["context"] == {"repository": "api", "organization": "Acme"}


def test_context_extras_are_carried() -> None:
    applied = apply_template(
        _template(), {"repository": "api", "requestedBy": "ops"}, now=FIXED_NOW
    )

    assert applied["context"] == {"requestedBy": "ops", "repository": "api"}


def test_naive_and_offset_timestamps_normalize_to_utc() -> None:
    naive = apply_template(_template(), now=datetime(2025, 1, 1, 8, 30))
    shifted = apply_template(
        _template(), now=datetime(2025, 1, 1, 10, 30, tzinfo=timezone(timedelta(hours=2)))
    )

    assert naive["appliedAt"] == "2025-01-01T08:30:00.000Z"
    assert shifted["appliedAt"] == "2025-01-01T08:30:00.000Z"


def test_output_does_not_alias_template() -> None:
    template = _template()
    applied = apply_template(template, now=FIXED_NOW)

    applied["fields"][0]["options"].append({"name": "Done", "color": "GREEN"})
    applied["workflows"].append("extra")

    assert template == _template()


_NAMES = st.one_of(st.none(), st.text(alphabet="abcdefghij-_0123", min_size=1, max_size=12))


@given(repository=_NAMES, organization=_NAMES)
def test_application_is_deterministic(repository: str | None, organization: str | None) -> None:
    template = _template()
    before = copy.deepcopy(template)
    context = {"repository": repository, "organization": organization}

    first = apply_template(template, context, now=FIXED_NOW)
    second = apply_template(template, TemplateContext(repository, organization), now=FIXED_NOW)

    assert first == second
    assert template == before
    assert first["readme"].startswith(f"# {first['title']}\n")
