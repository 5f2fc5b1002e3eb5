"""Configuration loading utilities for the type profiler."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore


CONFIG_FILENAMES: tuple[str, ...] = (".typeprofile.toml", "typeprofile.toml")
DEFAULT_CONFIG_PATHS = (
    Path.home() / ".config" / "typeprofile" / "config.toml",
    Path.home() / ".typeprofile.toml",
)
ENV_PREFIX = "TYPEPROFILE_"


def find_config_in_parents(
    start_path: Path, config_name: str | Sequence[str] = ".typeprofile.toml"
) -> Optional[Path]:
    """Search parent directories starting from ``start_path`` for configuration files."""

    if isinstance(config_name, str):
        candidate_names: tuple[str, ...] = (config_name,)
    else:
        candidate_names = tuple(config_name)

    current = start_path.resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in candidate_names:
            candidate = current / name
            if candidate.is_file():
                return candidate.resolve()
        if current.parent == current:
            break
        current = current.parent
    return None


@dataclass
class Settings:
    """Runtime configuration shared by the CLI, the web app and the session driver."""

    node_executable: str = "node"
    node_options: tuple[str, ...] = ()
    source_url: str = "test"
    shutdown_timeout: float = 5.0
    host: str = "127.0.0.1"
    port: int = 8080
    template_path: Optional[Path] = None
    example_path: Optional[Path] = None
    log_level: str = "INFO"
    structured_logging: bool = False


_BOOL_FIELDS = {"structured_logging"}
_INT_FIELDS = {"port"}
_FLOAT_FIELDS = {"shutdown_timeout"}
_PATH_FIELDS = {"template_path", "example_path"}
_TUPLE_FIELDS = {"node_options"}


def _cast_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "on", "yes", "y"}
    return bool(value)


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(filter(None, (item.strip() for item in value.split(","))))


def _load_from_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    return {k.replace("-", "_"): v for k, v in data.items()}


def _load_from_env(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    env: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        field = key[len(prefix) :].lower()
        if field in _BOOL_FIELDS:
            env[field] = _cast_bool(value)
        elif field in _INT_FIELDS:
            env[field] = int(value)
        elif field in _FLOAT_FIELDS:
            env[field] = float(value)
        elif field in _TUPLE_FIELDS:
            env[field] = _split_list(value)
        else:
            env[field] = value
    return env


def _normalize(merged: Dict[str, Any]) -> Dict[str, Any]:
    for key in _PATH_FIELDS:
        value = merged.get(key)
        if isinstance(value, str):
            merged[key] = Path(value).expanduser() if value else None
    for key in _TUPLE_FIELDS:
        value = merged.get(key)
        if value is None or isinstance(value, tuple):
            continue
        if isinstance(value, str):
            merged[key] = _split_list(value)
        else:
            merged[key] = tuple(str(item) for item in value)
    for key in _BOOL_FIELDS:
        if key in merged:
            merged[key] = _cast_bool(merged[key])
    for key in _INT_FIELDS:
        if key in merged:
            merged[key] = int(merged[key])
    for key in _FLOAT_FIELDS:
        if key in merged:
            merged[key] = float(merged[key])
    return merged


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    """Load configuration, merging file and environment sources."""

    file_data: Dict[str, Any] = {}
    if explicit_path:
        file_data.update(_load_from_file(explicit_path))
    else:
        search_paths = []
        cwd = Path.cwd()
        project_config = find_config_in_parents(cwd, CONFIG_FILENAMES)
        if project_config:
            search_paths.append(project_config)
        search_paths.extend(DEFAULT_CONFIG_PATHS)
        seen_paths = set()
        for candidate in search_paths:
            if candidate in seen_paths:
                continue
            seen_paths.add(candidate)
            file_data = _load_from_file(candidate)
            if file_data:
                break

    merged = _normalize({**file_data, **_load_from_env()})

    known_fields = set(Settings.__dataclass_fields__)
    init_kwargs = {key: value for key, value in merged.items() if key in known_fields}
    return Settings(**init_kwargs)


__all__ = ["Settings", "find_config_in_parents", "load_settings"]
