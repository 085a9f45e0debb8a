"""Command-line interface router for devflow-orchestrator."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

from devflow_orchestrator.config.manager import ConfigManager, ConfigManagerOptions
from devflow_orchestrator.config.schema import redact_config
from devflow_orchestrator.constants import (
    DEFAULT_ORGANIZATION_KEY,
    ENVIRONMENTS,
    SECTION_ORGANIZATIONS,
)
from devflow_orchestrator.errors import (
    ConfigValidationError,
    MissingRequiredFileError,
    OrganizationNotFoundError,
    TemplateNotFoundError,
)
from devflow_orchestrator.observability.logging import (
    LoggingConfig,
    logging_config_from_tree,
    setup_logging,
    shutdown_logging,
)
from devflow_orchestrator.registry.organizations import OrganizationRegistry
from devflow_orchestrator.ui.render import CLIRenderer, create_renderer

_MISSING: Final[object] = object()


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="devflow",
        description=(
            "devflow-orchestrator — configuration and project-template manager.\n\n"
            "Common workflows:\n"
            "  devflow config validate --env production   Check a deployment's config\n"
            "  devflow config get cache.ttl                Read one config value\n"
            "  devflow orgs list                           Show organization profiles\n"
            "  devflow templates apply lightweight --repository api\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--env",
        dest="environment",
        choices=ENVIRONMENTS,
        default=None,
        help="Deployment environment (default: NODE_ENV or development).",
    )
    common.add_argument(
        "--config-dir",
        default=None,
        help="Directory holding defaults.toml and environments/ (default: packaged data).",
    )
    common.add_argument(
        "--env-dir",
        default=None,
        help="Directory holding .env files (default: current working directory).",
    )
    common.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Emit machine-readable JSON.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show debug logging on stderr.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser("config", help="Inspect the resolved configuration")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)

    show_parser = config_sub.add_parser(
        "show", parents=[common], help="Print the merged configuration with secrets redacted"
    )
    show_parser.add_argument("--section", default=None, help="Only print one top-level section.")
    show_parser.set_defaults(handler=_cmd_config_show)

    get_parser = config_sub.add_parser(
        "get", parents=[common], help="Print one value by dotted path"
    )
    get_parser.add_argument("path", help="Dotted path, e.g. cache.ttl or logging.transports.0")
    get_parser.set_defaults(handler=_cmd_config_get)

    health_parser = config_sub.add_parser(
        "health", parents=[common], help="Print configuration health"
    )
    health_parser.set_defaults(handler=_cmd_config_health)

    validate_parser = config_sub.add_parser(
        "validate", parents=[common], help="Load and validate every configuration source"
    )
    validate_parser.set_defaults(handler=_cmd_config_validate)

    # orgs ----------------------------------------------------------------
    orgs_parser = subparsers.add_parser("orgs", help="Organization profiles")
    orgs_sub = orgs_parser.add_subparsers(dest="orgs_command", required=True)

    orgs_list = orgs_sub.add_parser("list", parents=[common], help="List registered organizations")
    orgs_list.set_defaults(handler=_cmd_orgs_list)

    orgs_show = orgs_sub.add_parser("show", parents=[common], help="Show one organization")
    orgs_show.add_argument("organization", help="Organization id")
    orgs_show.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail for unregistered organizations instead of printing the fallback profile.",
    )
    orgs_show.set_defaults(handler=_cmd_orgs_show)

    orgs_apply = orgs_sub.add_parser(
        "apply", parents=[common], help="Apply an organization's configured project template"
    )
    orgs_apply.add_argument("organization", help="Organization id")
    orgs_apply.add_argument("--repository", default=None, help="Repository name.")
    orgs_apply.set_defaults(handler=_cmd_orgs_apply)

    # templates -----------------------------------------------------------
    templates_parser = subparsers.add_parser("templates", help="Project templates")
    templates_sub = templates_parser.add_subparsers(dest="templates_command", required=True)

    templates_list = templates_sub.add_parser(
        "list", parents=[common], help="List available project templates"
    )
    templates_list.set_defaults(handler=_cmd_templates_list)

    templates_show = templates_sub.add_parser(
        "show", parents=[common], help="Show one project template"
    )
    templates_show.add_argument("template", help="Template id")
    templates_show.set_defaults(handler=_cmd_templates_show)

    templates_apply = templates_sub.add_parser(
        "apply", parents=[common], help="Apply a project template"
    )
    templates_apply.add_argument("template", help="Template id")
    templates_apply.add_argument("--repository", default=None, help="Repository name.")
    templates_apply.add_argument("--organization", default=None, help="Organization id.")
    templates_apply.set_defaults(handler=_cmd_templates_apply)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    _configure_logging(namespace)
    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_config_show(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    tree = manager.dump_redacted()
    section = _optional_str(getattr(args, "section", None))
    if section is not None:
        if section not in tree:
            raise CLIError(f"unknown configuration section: {section}", exit_code=1)
        tree = {section: tree[section]}

    payload: dict[str, object] = {
        "command": "config show",
        "environment": manager.environment,
        "config": tree,
    }
    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Environment", manager.environment)
    renderer.document(tree)
    return 0


def _cmd_config_get(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    path = str(args.path)
    value = manager.get(path, _MISSING)
    if value is _MISSING:
        raise CLIError(f"configuration path not found: {path}", exit_code=1)
    value = _redact_leaf(path, value)

    if _flag(args, "json"):
        _emit_json({"command": "config get", "path": path, "value": value})
        return 0

    renderer = _get_renderer(args)
    if isinstance(value, (Mapping, list)):
        renderer.document(value)
    else:
        renderer.text(str(value))
    return 0


def _cmd_config_health(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    health = manager.get_health()

    if _flag(args, "json"):
        _emit_json({"command": "config health", "health": health})
        return 0

    renderer = _get_renderer(args)
    renderer.heading("Configuration health")
    renderer.kv("Environment", health["environment"])
    renderer.kv("State", health["state"])
    renderer.kv("Initialized", "yes" if health["isInitialized"] else "no")
    renderer.kv("Last load", health["lastLoadTime"] or "never")
    renderer.kv("Sections", ", ".join(health["configSections"]))
    return 0


def _cmd_config_validate(args: argparse.Namespace) -> int:
    try:
        manager = _open_manager(args)
    except ConfigValidationError as exc:
        issues = [{"path": issue.path, "message": issue.message} for issue in exc.issues]
        if _flag(args, "json"):
            _emit_json(
                {
                    "command": "config validate",
                    "valid": False,
                    "section": exc.section,
                    "issues": issues,
                }
            )
        else:
            renderer = _get_renderer(args)
            renderer.heading("Configuration is invalid")
            for issue in exc.issues:
                renderer.fail(issue.render())
        return 2

    sections = [name for name in manager.get_all() if name != "env"]
    if _flag(args, "json"):
        _emit_json(
            {
                "command": "config validate",
                "valid": True,
                "environment": manager.environment,
                "sections": sections,
            }
        )
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"Configuration is valid ({manager.environment})")
    renderer.ok("environment variables")
    for name in sections:
        renderer.ok(name)
    return 0


def _cmd_orgs_list(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    organizations = manager.get(SECTION_ORGANIZATIONS, {})
    rows: list[list[str]] = []
    entries: list[dict[str, object]] = []
    for org_id, profile in organizations.items():
        if org_id == DEFAULT_ORGANIZATION_KEY:
            continue
        settings = profile.get("settings", {})
        entry = {
            "id": org_id,
            "name": profile.get("name"),
            "type": profile.get("type"),
            "projectTemplate": settings.get("projectTemplate"),
            "securityLevel": settings.get("securityLevel"),
        }
        entries.append(entry)
        rows.append([str(entry[key]) for key in ("id", "type", "projectTemplate", "securityLevel")])

    if _flag(args, "json"):
        _emit_json({"command": "orgs list", "organizations": entries})
        return 0

    renderer = _get_renderer(args)
    if not rows:
        renderer.text("No organizations registered.")
        return 0
    renderer.table(["ID", "TYPE", "TEMPLATE", "SECURITY"], rows, title="Organizations")
    return 0


def _cmd_orgs_show(args: argparse.Namespace) -> int:
    org_id = str(args.organization)
    registry = OrganizationRegistry()
    manager = _open_manager(args, organization_registry=registry)
    if _flag(args, "strict"):
        try:
            profile = registry.get_profile(org_id).to_dict()
        except OrganizationNotFoundError as exc:
            raise CLIError(str(exc), exit_code=1) from exc
    else:
        profile = manager.get_organization_config(org_id)

    if _flag(args, "json"):
        _emit_json({"command": "orgs show", "organization": profile})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"{profile.get('name')} ({profile.get('id')})")
    renderer.kv("Type", profile.get("type"))
    renderer.kv("Description", profile.get("description"))
    settings = profile.get("settings", {})
    renderer.kv("Project template", settings.get("projectTemplate"))
    renderer.kv("Security level", settings.get("securityLevel"))
    workflows = profile.get("workflows", [])
    if workflows:
        renderer.section("Workflows")
        renderer.items([str(item) for item in workflows])
    return 0


def _cmd_orgs_apply(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    org_id = str(args.organization)
    try:
        applied = manager.apply_organization_template(
            org_id, _optional_str(getattr(args, "repository", None))
        )
    except TemplateNotFoundError as exc:
        raise CLIError(f"{exc} (configured for organization {org_id})", exit_code=1) from exc
    return _render_applied(args, "orgs apply", applied)


def _cmd_templates_list(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    templates = manager.get_available_templates()

    if _flag(args, "json"):
        _emit_json({"command": "templates list", "templates": templates})
        return 0

    renderer = _get_renderer(args)
    if not templates:
        renderer.text("No project templates available.")
        return 0
    rows = [
        [str(item.get("id")), str(item.get("organizationType")), str(item.get("name"))]
        for item in templates
    ]
    renderer.table(["ID", "ORGANIZATION TYPE", "NAME"], rows, title="Project templates")
    return 0


def _cmd_templates_show(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    template_id = str(args.template)
    template = manager.get_template(template_id)
    if template is None:
        raise CLIError(f"template not found: {template_id}", exit_code=1)

    if _flag(args, "json"):
        _emit_json({"command": "templates show", "template": template})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"{template.get('name')} ({template_id})")
    renderer.kv("Organization type", template.get("organizationType"))
    renderer.kv("Description", template.get("description"))
    renderer.section("Fields")
    renderer.items([f"{item.get('name')}: {item.get('type')}" for item in template["fields"]])
    renderer.section("Views")
    renderer.items([f"{item.get('name')}: {item.get('layout')}" for item in template["views"]])
    return 0


def _cmd_templates_apply(args: argparse.Namespace) -> int:
    manager = _open_manager(args)
    template_id = str(args.template)
    context = {
        "repository": _optional_str(getattr(args, "repository", None)),
        "organization": _optional_str(getattr(args, "organization", None)),
    }
    try:
        applied = manager.apply_template(template_id, context)
    except TemplateNotFoundError as exc:
        raise CLIError(str(exc), exit_code=1) from exc
    return _render_applied(args, "templates apply", applied)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _open_manager(
    args: argparse.Namespace,
    *,
    organization_registry: OrganizationRegistry | None = None,
) -> ConfigManager:
    """Initialize a manager for one command and log per its ``logging`` section.

    Hot reload stays off for CLI runs; ``--verbose`` keeps the debug handler.
    """

    options = ConfigManagerOptions(
        environment=_optional_str(getattr(args, "environment", None)),
        config_dir=_optional_str(getattr(args, "config_dir", None)),
        env_dir=_optional_str(getattr(args, "env_dir", None)),
        enable_hot_reload=False,
        organization_registry=organization_registry,
    )
    manager = ConfigManager(options)
    try:
        manager.initialize()
    except MissingRequiredFileError as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    if not _flag(args, "verbose"):
        setup_logging(logging_config_from_tree(manager.get_all(), stream=sys.stderr))
    return manager


def _render_applied(args: argparse.Namespace, command: str, applied: Mapping[str, Any]) -> int:
    if _flag(args, "json"):
        _emit_json({"command": command, "project": applied})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(str(applied.get("title")))
    renderer.kv("Template", applied.get("id"))
    renderer.kv("Applied at", applied.get("appliedAt"))
    renderer.blank()
    renderer.text(str(applied.get("readme", "")))
    return 0


def _redact_leaf(path: str, value: object) -> object:
    leaf = path.rsplit(".", 1)[-1]
    return redact_config({leaf: value})[leaf]


def _configure_logging(args: argparse.Namespace) -> None:
    setup_logging(
        LoggingConfig(
            level="debug" if _flag(args, "verbose") else "warn",
            json_lines=False,
            stream=sys.stderr,
        )
    )


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
