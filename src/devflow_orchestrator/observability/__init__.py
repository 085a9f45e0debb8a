"""Public observability primitives: structured logging and lifecycle events."""

from devflow_orchestrator.observability.events import (
    ConfigEvent,
    ConfigEventType,
    DispatchError,
    EventBus,
    Subscriber,
)
from devflow_orchestrator.observability.logging import (
    LoggingConfig,
    LogRedactor,
    default_log_redactor,
    logging_config_from_tree,
    parse_log_level,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "ConfigEvent",
    "ConfigEventType",
    "DispatchError",
    "EventBus",
    "LogRedactor",
    "LoggingConfig",
    "Subscriber",
    "default_log_redactor",
    "logging_config_from_tree",
    "parse_log_level",
    "setup_logging",
    "shutdown_logging",
]
