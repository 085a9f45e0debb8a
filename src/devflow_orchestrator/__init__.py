"""
devflow-orchestrator — configuration resolution and project-template core.

File: src/devflow_orchestrator/__init__.py

Purpose
- Package root. Exposes the version and nothing else at import time.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
