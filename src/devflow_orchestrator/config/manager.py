"""
devflow-orchestrator — environment-aware configuration manager.

File: src/devflow_orchestrator/config/manager.py

Purpose
- Own the merged configuration tree: env values, defaults, the active environment's
  overrides, the organization catalog and the project template catalog.
- Serve read-only queries and template application against that tree.

What should be included in this file
- Load order: env files, defaults, environment overrides, organizations,
  project templates, optional validation metadata, full-config validation.
- Hot reload through a polling watcher; reloads build a scratch tree and swap it in.
- Lifecycle notifications (initialized, reloaded, error) on an ``EventBus``.

Functional requirements
- Queries before the first successful ``initialize()`` raise ``NotInitializedError``.
- A failed reload never disturbs the active tree.
- Every container returned to callers is an independent deep copy.

Non-functional requirements
- Reads are lock-free against the published snapshot; reloads are serialized.
"""

from __future__ import annotations

import copy
import logging
import os
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Any, Final

from devflow_orchestrator.config.schema import (
    ENV_VAR_NAMES,
    merge_config,
    redact_config,
    validate_config,
    validate_env,
)
from devflow_orchestrator.config.sources import ConfigSource, EnvironmentSource, TomlFileSource
from devflow_orchestrator.config.watcher import FileWatcher
from devflow_orchestrator.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_ORGANIZATION_KEY,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULTS_FILE,
    ENVIRONMENT_VAR,
    ENVIRONMENTS,
    ENVIRONMENTS_DIR,
    SECTION_DEFAULTS,
    SECTION_ENV,
    SECTION_ENVIRONMENTS,
    SECTION_ORGANIZATIONS,
    SECTION_PROJECT_TEMPLATES,
    SECTION_VALIDATION,
    VALIDATION_FILE,
)
from devflow_orchestrator.errors import NotInitializedError, TemplateNotFoundError
from devflow_orchestrator.observability.events import (
    ConfigEventType,
    EventBus,
    Subscriber,
)
from devflow_orchestrator.registry.models import OrganizationProfile, ProjectTemplate
from devflow_orchestrator.registry.organizations import (
    OrganizationRegistry,
    unknown_organization_profile,
)
from devflow_orchestrator.registry.templates import ProjectTemplateCatalog
from devflow_orchestrator.templates.engine import TemplateContext
from devflow_orchestrator.templates.engine import apply_template as apply_project_template

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR: Final[Path] = Path(__file__).resolve().parent / "data"

_SOURCE_ENV: Final[str] = "env"
_SOURCE_DEFAULTS: Final[str] = "defaults"
_SOURCE_ENVIRONMENT: Final[str] = "environment"
_SOURCE_VALIDATION: Final[str] = "validation"
_SOURCE_KEYS: Final[frozenset[str]] = frozenset(
    {_SOURCE_ENV, _SOURCE_DEFAULTS, _SOURCE_ENVIRONMENT, _SOURCE_VALIDATION}
)


class ConfigState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    RELOADING = "reloading"
    FAILED = "failed"


@dataclass(slots=True)
class ConfigManagerOptions:
    """Construction options; every collaborator can be injected for tests."""

    environment: str | None = None
    config_dir: Path | str | None = None
    env_dir: Path | str | None = None
    enable_hot_reload: bool = True
    validate_on_load: bool = True
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    organization_registry: OrganizationRegistry | None = None
    template_catalog: ProjectTemplateCatalog | None = None
    environ: Mapping[str, str] | None = None
    sources: Mapping[str, ConfigSource] | None = None
    organization_default: Mapping[str, Any] | None = None
    event_bus: EventBus | None = None


@dataclass(frozen=True, slots=True)
class _Snapshot:
    tree: dict[str, Any]
    loaded_at: datetime
    loaded_monotonic: float


@dataclass(frozen=True, slots=True)
class _Pending:
    tree: dict[str, Any]
    profiles: dict[str, OrganizationProfile]
    templates: dict[str, ProjectTemplate]


class ConfigManager:
    """Loads, merges, validates and serves the configuration tree."""

    def __init__(self, options: ConfigManagerOptions | None = None) -> None:
        opts = options or ConfigManagerOptions()
        environ = os.environ if opts.environ is None else opts.environ

        environment = opts.environment or environ.get(ENVIRONMENT_VAR) or DEFAULT_ENVIRONMENT
        if environment not in ENVIRONMENTS:
            expected = ", ".join(ENVIRONMENTS)
            raise ValueError(f"unknown environment {environment!r}; expected one of: {expected}")
        if opts.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")

        unknown_sources = set(opts.sources or {}) - _SOURCE_KEYS
        if unknown_sources:
            raise ValueError(f"unknown source keys: {', '.join(sorted(unknown_sources))}")

        self._options = opts
        self._environment = environment
        self._config_dir = (
            DEFAULT_CONFIG_DIR if opts.config_dir is None else Path(opts.config_dir).expanduser()
        )
        self._sources = self._build_sources(opts)
        self._organization_registry = opts.organization_registry or OrganizationRegistry()
        self._template_catalog = opts.template_catalog
        self._organization_default = (
            copy.deepcopy(dict(opts.organization_default))
            if opts.organization_default is not None
            else None
        )
        self._events = opts.event_bus or EventBus()

        self._state = ConfigState.UNINITIALIZED
        self._snapshot: _Snapshot | None = None
        self._reload_lock = threading.Lock()
        self._watcher: FileWatcher | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def state(self) -> ConfigState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def events(self) -> EventBus:
        return self._events

    def initialize(self) -> None:
        """Load every source, validate, publish the tree, and start hot reload."""

        if self._snapshot is not None:
            logger.debug("configuration manager already initialized")
            return

        logger.info("initializing configuration manager (environment=%s)", self._environment)
        with self._reload_lock:
            self._state = ConfigState.INITIALIZING
            try:
                pending = self._build_tree()
            except Exception as exc:
                self._state = ConfigState.UNINITIALIZED
                logger.error("configuration initialization failed: %s", exc)
                self._events.emit(ConfigEventType.ERROR, {"error": exc, "phase": "initialize"})
                raise
            self._publish(pending)
            self._state = ConfigState.READY

        if self._options.enable_hot_reload:
            self._start_watcher()

        logger.info(
            "configuration manager initialized (sections=%s)", ", ".join(self._require_tree())
        )
        self._events.emit(
            ConfigEventType.INITIALIZED,
            {"environment": self._environment, "loadedAt": self._loaded_at_iso()},
        )

    def reload(self) -> None:
        """Rebuild the tree from every source; on failure the previous tree stays active."""

        self._require_tree()
        with self._reload_lock:
            self._reload_locked()

    def close(self) -> None:
        """Stop hot reload; the last tree stays queryable."""

        watcher = self._watcher
        self._watcher = None
        if watcher is not None:
            watcher.stop()
            logger.debug("configuration watcher stopped")

    def __enter__(self) -> ConfigManager:
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def subscribe(self, event_type: str | ConfigEventType | None, callback: Subscriber) -> int:
        return self._events.subscribe(event_type, callback)

    def unsubscribe(self, token: int) -> bool:
        return self._events.unsubscribe(token)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, path: str, default: Any = None) -> Any:
        """Dotted lookup (``cache.ttl``, ``logging.transports.0.type``); never raises on a miss."""

        tree = self._require_tree()
        value: Any = tree
        for segment in path.split("."):
            if isinstance(value, Mapping) and segment in value:
                value = value[segment]
                continue
            if isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
                value = value[int(segment)]
                continue
            logger.debug("configuration path not found: %s", path)
            return default
        return copy.deepcopy(value)

    def get_organization_config(self, organization_id: str) -> dict[str, Any]:
        """Registered profile, else the configured ``organizations.default``, else a basic one."""

        if not isinstance(organization_id, str) or not organization_id.strip():
            raise ValueError("organization id must be a non-empty string")
        tree = self._require_tree()
        organizations = tree.get(SECTION_ORGANIZATIONS, {})
        profile = organizations.get(organization_id)
        if isinstance(profile, Mapping) and organization_id != DEFAULT_ORGANIZATION_KEY:
            logger.debug("retrieved organization config: %s", organization_id)
            return copy.deepcopy(dict(profile))

        logger.warning("organization config not found, using default: %s", organization_id)
        configured_default = organizations.get(DEFAULT_ORGANIZATION_KEY)
        if isinstance(configured_default, Mapping):
            return copy.deepcopy(dict(configured_default))
        return unknown_organization_profile(organization_id).to_dict()

    def get_environment_config(self, section: str | None = None) -> dict[str, Any]:
        overrides = self.get(f"{SECTION_ENVIRONMENTS}.{self._environment}", {})
        if not isinstance(overrides, dict):
            return {}
        if section is None:
            return overrides
        value = overrides.get(section)
        return value if isinstance(value, dict) else {}

    def get_all(self) -> dict[str, Any]:
        return copy.deepcopy(self._require_tree())

    def get_health(self) -> dict[str, Any]:
        snapshot = self._snapshot
        watcher = self._watcher
        return {
            "isInitialized": snapshot is not None,
            "environment": self._environment,
            "state": self._state.value,
            "lastLoadTime": self._loaded_at_iso(),
            "watchedFiles": [str(path) for path in watcher.paths] if watcher is not None else [],
            "configSections": list(snapshot.tree) if snapshot is not None else [],
            "uptime": (
                int((time.monotonic() - snapshot.loaded_monotonic) * 1000)
                if snapshot is not None
                else 0
            ),
        }

    def dump_redacted(self) -> dict[str, Any]:
        return redact_config(self._require_tree())

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def get_template(self, template_id: str) -> dict[str, Any] | None:
        templates = self._require_tree().get(SECTION_PROJECT_TEMPLATES, {})
        template = templates.get(template_id)
        if not isinstance(template, Mapping):
            logger.warning("template not found: %s", template_id)
            return None
        return copy.deepcopy(dict(template))

    def get_available_templates(self) -> list[dict[str, Any]]:
        templates = self._require_tree().get(SECTION_PROJECT_TEMPLATES, {})
        return [
            {key: template.get(key) for key in ("id", "name", "description", "organizationType")}
            for template in templates.values()
        ]

    def apply_template(
        self,
        template_id: str,
        context: TemplateContext | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        template = self.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return apply_project_template(template, context, self._catalog().customizer)

    def apply_organization_template(
        self, organization_id: str, repository: str | None = None
    ) -> dict[str, Any]:
        """Apply the organization's configured template with ``{repository, organization}``."""

        profile = self.get_organization_config(organization_id)
        template_id = str(profile["settings"]["projectTemplate"])
        context = TemplateContext(repository=repository, organization=organization_id)
        return self.apply_template(template_id, context)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_sources(self, opts: ConfigManagerOptions) -> dict[str, ConfigSource]:
        sources: dict[str, ConfigSource] = {
            _SOURCE_ENV: EnvironmentSource(
                self._environment, env_dir=opts.env_dir, environ=opts.environ
            ),
            _SOURCE_DEFAULTS: TomlFileSource(self._config_dir / DEFAULTS_FILE, required=True),
            _SOURCE_ENVIRONMENT: TomlFileSource(
                self._config_dir / ENVIRONMENTS_DIR / f"{self._environment}.toml",
                required=True,
            ),
            _SOURCE_VALIDATION: TomlFileSource(self._config_dir / VALIDATION_FILE, required=False),
        }
        sources.update(opts.sources or {})
        return sources

    def _catalog(self) -> ProjectTemplateCatalog:
        if self._template_catalog is None:
            self._template_catalog = ProjectTemplateCatalog()
        return self._template_catalog

    def _build_tree(self) -> _Pending:
        tree: dict[str, Any] = {SECTION_ENV: self._load_env_section()}

        defaults = self._sources[_SOURCE_DEFAULTS].load()
        overrides = self._sources[_SOURCE_ENVIRONMENT].load()
        merged = merge_config(defaults, overrides)
        _apply_env_bindings(merged, tree[SECTION_ENV], self._environment)
        tree.update(merged)
        tree[SECTION_DEFAULTS] = copy.deepcopy(defaults)
        tree[SECTION_ENVIRONMENTS] = {self._environment: copy.deepcopy(overrides)}

        profiles = self._organization_registry.load_profiles()
        organizations: dict[str, Any] = {
            key: profile.to_dict() for key, profile in profiles.items()
        }
        if self._organization_default is not None:
            organizations[DEFAULT_ORGANIZATION_KEY] = copy.deepcopy(self._organization_default)
        tree[SECTION_ORGANIZATIONS] = organizations

        templates = self._catalog().load_templates()
        tree[SECTION_PROJECT_TEMPLATES] = {
            key: record.to_dict() for key, record in templates.items()
        }

        validation = self._sources[_SOURCE_VALIDATION].load()
        if validation:
            tree[SECTION_VALIDATION] = validation

        if self._options.validate_on_load:
            result = validate_config(tree)
            if result.error is not None:
                logger.error("configuration validation failed with %d issue(s)", len(result.issues))
                raise result.error
            logger.debug("configuration validation passed")
        return _Pending(tree=tree, profiles=profiles, templates=templates)

    def _load_env_section(self) -> dict[str, Any]:
        raw = self._sources[_SOURCE_ENV].load()
        recognized = {name: raw[name] for name in ENV_VAR_NAMES if name in raw}
        recognized.setdefault(ENVIRONMENT_VAR, self._environment)
        result = validate_env(recognized)
        if result.error is not None:
            logger.error("environment validation failed with %d issue(s)", len(result.issues))
            raise result.error
        assert result.value is not None
        logger.debug(
            "environment variables loaded (environment=%s, has_github_token=%s)",
            result.value.get(ENVIRONMENT_VAR),
            bool(result.value.get("GITHUB_TOKEN")),
        )
        return result.value

    def _publish(self, pending: _Pending) -> None:
        self._organization_registry.commit_profiles(pending.profiles)
        self._catalog().commit_templates(pending.templates)
        self._snapshot = _Snapshot(
            tree=pending.tree,
            loaded_at=datetime.now(timezone.utc),
            loaded_monotonic=time.monotonic(),
        )

    def _reload_locked(self) -> None:
        logger.info("reloading configuration")
        previous = self._snapshot
        self._state = ConfigState.RELOADING
        try:
            pending = self._build_tree()
        except Exception as exc:
            self._state = ConfigState.FAILED
            logger.error("configuration reload failed; keeping previous configuration: %s", exc)
            self._events.emit(ConfigEventType.ERROR, {"error": exc, "phase": "reload"})
            raise
        self._publish(pending)
        self._state = ConfigState.READY
        logger.info("configuration reloaded (loadedAt=%s)", self._loaded_at_iso())
        old_tree = copy.deepcopy(previous.tree) if previous is not None else {}
        self._events.emit(
            ConfigEventType.RELOADED, {"old": old_tree, "new": copy.deepcopy(pending.tree)}
        )

    def _on_files_changed(self, changed: tuple[Path, ...]) -> None:
        if not self._reload_lock.acquire(blocking=False):
            logger.debug("reload already running; dropping change notification")
            return
        try:
            self._reload_locked()
        except Exception:  # noqa: BLE001 - hot reload failures are reported via events.
            logger.warning("hot reload failed for %s", ", ".join(str(p) for p in changed))
        finally:
            self._reload_lock.release()

    def _start_watcher(self) -> None:
        paths: list[Path] = []
        for source in self._sources.values():
            paths.extend(source.watch_paths())
        paths.extend(self._organization_registry.watch_paths())
        paths.extend(self._catalog().watch_paths())
        self._watcher = FileWatcher(
            paths,
            self._on_files_changed,
            interval_seconds=self._options.poll_interval_seconds,
        )
        self._watcher.start()
        logger.info("hot reload enabled for %d file(s)", len(self._watcher.paths))

    def _require_tree(self) -> dict[str, Any]:
        snapshot = self._snapshot
        if snapshot is None:
            raise NotInitializedError("configuration manager")
        return snapshot.tree

    def _loaded_at_iso(self) -> str | None:
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.loaded_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _apply_env_bindings(
    merged: dict[str, Any], env: Mapping[str, Any], environment: str
) -> None:
    """Bind deployment-provided variables onto the merged tree outside development."""

    if environment == "development":
        return
    origins = env.get("ALLOWED_ORIGINS")
    origin_list: list[str] | None = None
    if isinstance(origins, str) and origins.strip():
        origin_list = [item.strip() for item in origins.split(",") if item.strip()]
    server = merged.get("server")
    if isinstance(server, dict):
        port = env.get("PORT")
        if isinstance(port, int):
            server["port"] = port
        if origin_list is not None:
            cors = server.setdefault("cors", {})
            if isinstance(cors, dict):
                cors["origins"] = list(origin_list)
    security = merged.get("security")
    if isinstance(security, dict):
        session_secret = env.get("SESSION_SECRET")
        session = security.get("session")
        if isinstance(session_secret, str) and isinstance(session, dict):
            session["secret"] = session_secret
        cors = security.get("cors")
        if origin_list is not None and isinstance(cors, dict):
            cors["origin"] = list(origin_list)
    _bind_email_channel(merged, env)


def _bind_email_channel(merged: dict[str, Any], env: Mapping[str, Any]) -> None:
    smtp_host = env.get("SMTP_HOST")
    if not isinstance(smtp_host, str) or not smtp_host:
        return
    notifications = merged.get("notifications")
    channels = notifications.get("channels") if isinstance(notifications, dict) else None
    if not isinstance(channels, dict):
        return
    email = channels.setdefault("email", {})
    if not isinstance(email, dict):
        return
    email["enabled"] = True
    email["from"] = env.get("EMAIL_FROM") or email.get("from")
    email["transport"] = "smtp"
    email["smtp"] = {
        "host": smtp_host,
        "port": env.get("SMTP_PORT", 587),
        "secure": bool(env.get("SMTP_SECURE", False)),
        "auth": {"user": env.get("SMTP_USER"), "pass": env.get("SMTP_PASS")},
    }


__all__ = [
    "DEFAULT_CONFIG_DIR",
    "ConfigManager",
    "ConfigManagerOptions",
    "ConfigState",
]
