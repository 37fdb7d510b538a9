"""Configuration helpers for the bulk lead importer."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from .models import User

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_MANAGER_MARKER = "anupriya"
DEFAULT_COUNSELOR_MARKER = "likitha"

_MODES = {"sequential", "concurrent"}


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' could not be parsed: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Configuration section '{name}' must be a mapping")
    return section


@dataclass(frozen=True)
class ImportSettings:
    """Run options read from the ``import`` and ``roster`` sections."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    mode: str = "sequential"
    max_workers: Optional[int] = None
    manager_marker: Optional[str] = DEFAULT_MANAGER_MARKER
    default_counselor_marker: Optional[str] = DEFAULT_COUNSELOR_MARKER

    @property
    def concurrent(self) -> bool:
        return self.mode == "concurrent"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ImportSettings":
        run = _section(config, "import")
        roster = _section(config, "roster")

        try:
            chunk_size = int(run.get("chunk_size", DEFAULT_CHUNK_SIZE))
            max_workers = run.get("max_workers")
            max_workers = int(max_workers) if max_workers is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric value in 'import' section: {exc}") from exc
        if chunk_size < 1:
            raise ConfigurationError("'import.chunk_size' must be a positive integer")

        mode = str(run.get("mode", "sequential")).lower()
        if mode not in _MODES:
            raise ConfigurationError(f"Unknown import mode '{mode}'. Expected one of {sorted(_MODES)}")

        return cls(
            chunk_size=chunk_size,
            mode=mode,
            max_workers=max_workers,
            manager_marker=roster.get("manager_marker", DEFAULT_MANAGER_MARKER),
            default_counselor_marker=roster.get("default_counselor_marker", DEFAULT_COUNSELOR_MARKER),
        )


def iter_roster_users(config: Mapping[str, Any]) -> Iterable[User]:
    users = config.get("users", []) or []
    for entry in users:
        if not isinstance(entry, Mapping) or entry.get("id") is None or not entry.get("name"):
            raise ConfigurationError(f"Roster entries need an 'id' and a 'name': {entry!r}")
        if entry.get("active", True) is False:
            LOGGER.debug("Skipping inactive user %s", entry.get("name"))
            continue
        yield User(id=int(entry["id"]), name=str(entry["name"]), role=str(entry.get("role", "counselor")))


__all__ = [
    "ConfigurationError",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_COUNSELOR_MARKER",
    "DEFAULT_MANAGER_MARKER",
    "ImportSettings",
    "iter_roster_users",
    "load_configuration",
]
