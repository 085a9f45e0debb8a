"""Stable constants shared across the configuration core."""

from __future__ import annotations

from typing import Final

# Deployment environments recognized by the config manager and the env schema.
ENVIRONMENTS: Final[tuple[str, ...]] = ("development", "staging", "production")
DEFAULT_ENVIRONMENT: Final[str] = "development"
ENVIRONMENT_VAR: Final[str] = "NODE_ENV"

# Config file layout relative to the config directory.
DEFAULTS_FILE: Final[str] = "defaults.toml"
ENVIRONMENTS_DIR: Final[str] = "environments"
VALIDATION_FILE: Final[str] = "validation.toml"

# Env files are read in this order; later files override earlier ones key by key.
ENV_FILE_BASE: Final[str] = ".env"
ENV_FILE_LOCAL: Final[str] = ".env.local"

# Top-level sections owned by the config manager.
SECTION_ENV: Final[str] = "env"
SECTION_DEFAULTS: Final[str] = "defaults"
SECTION_ENVIRONMENTS: Final[str] = "environments"
SECTION_ORGANIZATIONS: Final[str] = "organizations"
SECTION_PROJECT_TEMPLATES: Final[str] = "projectTemplates"
SECTION_VALIDATION: Final[str] = "validation"

DEFAULT_ORGANIZATION_KEY: Final[str] = "default"
UNKNOWN_ORGANIZATION_TYPE: Final[str] = "unknown"

ORGANIZATION_TYPES: Final[tuple[str, ...]] = (
    "production",
    "experimental",
    "research",
    "infrastructure",
)
SECURITY_LEVELS: Final[tuple[str, ...]] = ("low", "medium", "high")
FIELD_TYPES: Final[tuple[str, ...]] = (
    "single_select",
    "assignees",
    "iteration",
    "number",
    "date",
    "text",
)
VIEW_LAYOUTS: Final[tuple[str, ...]] = ("board", "table")
OPTION_COLORS: Final[tuple[str, ...]] = (
    "RED",
    "ORANGE",
    "YELLOW",
    "GREEN",
    "BLUE",
    "PURPLE",
    "PINK",
    "GRAY",
)

DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 1.0

__all__ = [
    "DEFAULTS_FILE",
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_ORGANIZATION_KEY",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "ENVIRONMENTS",
    "ENVIRONMENTS_DIR",
    "ENVIRONMENT_VAR",
    "ENV_FILE_BASE",
    "ENV_FILE_LOCAL",
    "FIELD_TYPES",
    "OPTION_COLORS",
    "ORGANIZATION_TYPES",
    "SECTION_DEFAULTS",
    "SECTION_ENV",
    "SECTION_ENVIRONMENTS",
    "SECTION_ORGANIZATIONS",
    "SECTION_PROJECT_TEMPLATES",
    "SECTION_VALIDATION",
    "SECURITY_LEVELS",
    "UNKNOWN_ORGANIZATION_TYPE",
    "VALIDATION_FILE",
    "VIEW_LAYOUTS",
]
