"""Helpers to load project-level configuration files."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping as ABCMapping
from pathlib import Path
from typing import Any

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from .errors import ConfigurationError


CONFIG_ENV_VAR = "OCULAR_MONITOR_CONFIG"
_PROJECT_FILENAME = "pyproject.toml"
_TOOL_SECTION = "ocular_monitor"


def _as_dict(payload: ABCMapping[str, Any]) -> dict[str, Any]:
    """Recursively coerce TOML mappings into regular dictionaries."""

    result: dict[str, Any] = {}
    for key, value in payload.items():
        key_str = str(key)
        if isinstance(value, ABCMapping):
            result[key_str] = _as_dict(value)
        elif isinstance(value, list):
            result[key_str] = [
                _as_dict(item) if isinstance(item, ABCMapping) else item for item in value
            ]
        else:
            result[key_str] = value
    return result


def _resolve_config_path(candidate: Path) -> Path:
    """Return the concrete file to read for ``candidate``.

    Directories resolve to their ``pyproject.toml``; any other path is used
    as given.
    """

    candidate = candidate.expanduser()
    if candidate.is_dir() or not candidate.suffix:
        return candidate / _PROJECT_FILENAME
    return candidate


def _iter_unique_paths(paths: Iterable[Path]) -> list[Path]:
    seen: dict[Path, None] = {}
    ordered: list[Path] = []
    for path in paths:
        resolved = path.expanduser().resolve(strict=False)
        if resolved in seen:
            continue
        seen[resolved] = None
        ordered.append(resolved)
    return ordered


def _load_toml_mapping(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {exc}") from exc
    if isinstance(data, ABCMapping):
        return _as_dict(data)
    return None


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Load the ``[tool.ocular_monitor]`` section from ``path``.

    Standalone TOML files that are not named ``pyproject.toml`` are read as
    the section itself.
    """

    config_path = _resolve_config_path(path).resolve(strict=False)
    payload = _load_toml_mapping(config_path)
    if not payload:
        return None

    if config_path.name != _PROJECT_FILENAME:
        return payload, config_path

    tool_section = payload.get("tool")
    if not isinstance(tool_section, ABCMapping):
        return None
    section = tool_section.get(_TOOL_SECTION)
    if not isinstance(section, ABCMapping):
        return None
    return _as_dict(section), config_path


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Resolve configuration from ``path``, or else the environment and the cwd.

    An explicit ``path`` is the only candidate considered.  The returned
    mapping always carries ``_config_path`` (``None`` when no file was found).
    """

    candidates: list[Path] = []
    if path is not None:
        candidates.append(path)
    else:
        env_config = os.environ.get(CONFIG_ENV_VAR)
        if env_config:
            candidates.append(Path(env_config))
        candidates.append(Path.cwd())

    for candidate in _iter_unique_paths(candidates):
        loaded = load_project_config(candidate)
        if loaded is None:
            continue
        payload, resolved = loaded
        payload["_config_path"] = resolved
        return payload

    if path is not None:
        raise ConfigurationError(f"No [tool.{_TOOL_SECTION}] configuration found at {path}")
    return {"_config_path": None}


__all__ = [
    "CONFIG_ENV_VAR",
    "load_config",
    "load_project_config",
]
