"""
devflow-orchestrator config package public API.

File: src/devflow_orchestrator/config/__init__.py

Purpose
- Export validation entrypoints, config sources, and the file watcher.

Non-functional requirements
- Keep import-time surface small; the manager is imported from
  ``devflow_orchestrator.config.manager`` explicitly because it depends on the registries.
"""

from devflow_orchestrator.config.schema import (
    ENV_RULES,
    ENV_VAR_NAMES,
    SECTION_NAMES,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    EnvVarRule,
    assert_valid_config,
    merge_config,
    redact_config,
    validate_config,
    validate_env,
)
from devflow_orchestrator.config.sources import (
    ConfigSource,
    EnvironmentSource,
    MappingSource,
    TomlFileSource,
    YamlFileSource,
)
from devflow_orchestrator.config.watcher import FileWatcher, file_signature

__all__ = [
    "ENV_RULES",
    "ENV_VAR_NAMES",
    "SECTION_NAMES",
    "ConfigSource",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "EnvVarRule",
    "EnvironmentSource",
    "FileWatcher",
    "MappingSource",
    "TomlFileSource",
    "YamlFileSource",
    "assert_valid_config",
    "file_signature",
    "merge_config",
    "redact_config",
    "validate_config",
    "validate_env",
]
