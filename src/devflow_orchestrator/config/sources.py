"""
devflow-orchestrator — configuration sources.

File: src/devflow_orchestrator/config/sources.py

Purpose
- Read raw configuration payloads from TOML files, YAML catalogs, layered env files,
  and in-memory mappings behind one small interface.

Functional requirements
- Required files that are absent raise ``MissingRequiredFileError``.
- Optional files that are absent yield an empty payload and are logged.
- Files that exist but cannot be parsed raise ``ConfigLoadError``.
- Env files are layered ``.env`` < ``.env.<environment>`` < ``.env.local`` < process env.

Non-functional requirements
- Sources never cache; every ``load()`` re-reads its inputs so reloads see fresh data.
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from devflow_orchestrator.constants import ENV_FILE_BASE, ENV_FILE_LOCAL
from devflow_orchestrator.errors import ConfigLoadError, MissingRequiredFileError

logger = logging.getLogger(__name__)


class ConfigSource(ABC):
    """One contributor to the configuration tree."""

    name: str

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return a fresh payload for this source."""

    def watch_paths(self) -> tuple[Path, ...]:
        """Files whose changes should trigger a reload."""

        return ()


class TomlFileSource(ConfigSource):
    """TOML document on disk; ``required`` controls how a missing file is treated."""

    def __init__(self, path: str | Path, *, required: bool = True, name: str | None = None):
        self.path = Path(path).expanduser()
        self.required = required
        self.name = name or self.path.stem

    def load(self) -> dict[str, Any]:
        return _load_toml_file(self.path, required=self.required)

    def watch_paths(self) -> tuple[Path, ...]:
        return (self.path,)

    def __repr__(self) -> str:
        return f"TomlFileSource(path={str(self.path)!r}, required={self.required})"


class YamlFileSource(ConfigSource):
    """YAML document on disk, parsed with ``yaml.safe_load``."""

    def __init__(self, path: str | Path, *, required: bool = True, name: str | None = None):
        self.path = Path(path).expanduser()
        self.required = required
        self.name = name or self.path.stem

    def load(self) -> dict[str, Any]:
        return _load_yaml_file(self.path, required=self.required)

    def watch_paths(self) -> tuple[Path, ...]:
        return (self.path,)

    def __repr__(self) -> str:
        return f"YamlFileSource(path={str(self.path)!r}, required={self.required})"


class MappingSource(ConfigSource):
    """In-memory payload; ``load()`` hands out deep copies."""

    def __init__(self, payload: Mapping[str, object], *, name: str = "memory") -> None:
        self._payload = copy.deepcopy(dict(payload))
        self.name = name

    def load(self) -> dict[str, Any]:
        return copy.deepcopy(self._payload)


class EnvironmentSource(ConfigSource):
    """Layered env files for one environment, overlaid with the process environment."""

    def __init__(
        self,
        environment: str,
        *,
        env_dir: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.environment = environment
        self.env_dir = Path.cwd() if env_dir is None else Path(env_dir).expanduser()
        self._environ = environ
        self.name = "env"

    def env_files(self) -> tuple[Path, ...]:
        return (
            self.env_dir / ENV_FILE_BASE,
            self.env_dir / f"{ENV_FILE_BASE}.{self.environment}",
            self.env_dir / ENV_FILE_LOCAL,
        )

    def load(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for path in self.env_files():
            if not path.is_file():
                logger.debug("env file not present, skipping: %s", path)
                continue
            try:
                values = dotenv_values(path)
            except (OSError, UnicodeDecodeError) as exc:
                raise ConfigLoadError(f"unable to read env file {path}: {exc}") from exc
            for key, value in values.items():
                if value is not None:
                    merged[key] = value
            logger.debug("loaded env file %s (%d keys)", path, len(values))

        process_env = os.environ if self._environ is None else self._environ
        merged.update(process_env)
        return merged

    def watch_paths(self) -> tuple[Path, ...]:
        return self.env_files()

    def __repr__(self) -> str:
        return f"EnvironmentSource(environment={self.environment!r}, env_dir={str(self.env_dir)!r})"


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise MissingRequiredFileError(path)
        logger.info("optional config file not found, skipping: %s", path)
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigLoadError(f"config root must be an object: {path}")
    return parsed


def _load_yaml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise MissingRequiredFileError(path)
        logger.info("optional catalog file not found, skipping: %s", path)
        return {}

    try:
        with path.open("r", encoding="utf-8") as handle:
            parsed = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read catalog file {path}: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigLoadError(f"catalog root must be a mapping: {path}")
    return parsed


__all__ = [
    "ConfigSource",
    "EnvironmentSource",
    "MappingSource",
    "TomlFileSource",
    "YamlFileSource",
]
