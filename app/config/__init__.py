"""Launcher configuration loaded from JSON resources."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping

_CONFIG_RESOURCE = "app.json"
CONFIG_PATH_ENV = "FRIDA_LAUNCHER_CONFIG"
_APP_CONFIG_CACHE: AppConfig | None = None

_DEFAULT_API_URL = "https://api.github.com/repos/frida/frida/releases/latest"
_DEFAULT_METADATA_TIMEOUT = 30.0
_DEFAULT_DOWNLOAD_TIMEOUT = 60.0
_DEFAULT_PORT = 27042
_DEFAULT_STARTUP_GRACE = 4.0
_DEFAULT_LOG_LINES = 20
_DEFAULT_DIAGNOSTIC_LINES = 10
_DEFAULT_SU_BINARY = "su"
_DEFAULT_COMMAND_TIMEOUT = 10.0


@dataclass(frozen=True)
class ReleaseFeedConfig:
    """Where release metadata comes from and how long requests may take."""

    api_url: str
    metadata_timeout: float
    download_timeout: float


@dataclass(frozen=True)
class ServerConfig:
    """Settings for launching and observing the server process."""

    default_port: int
    startup_grace_seconds: float
    log_line_limit: int
    diagnostic_line_limit: int


@dataclass(frozen=True)
class ElevationConfig:
    """How privileged commands are executed."""

    binary: str
    command_timeout: float


@dataclass(frozen=True)
class AppConfig:
    """Structured configuration values for the launcher."""

    release: ReleaseFeedConfig
    server: ServerConfig
    elevation: ElevationConfig


def get_app_config() -> AppConfig:
    """Return the cached application configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config(os.environ.get(CONFIG_PATH_ENV) or None)
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from ``path`` or the bundled JSON resource."""

    data = _read_config_data(path)
    return AppConfig(
        release=_parse_release_section(data.get("release")),
        server=_parse_server_section(data.get("server")),
        elevation=_parse_elevation_section(data.get("elevation")),
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_release_section(section: Any) -> ReleaseFeedConfig:
    if not isinstance(section, Mapping):
        section = {}
    api_url = section.get("api_url")
    if not isinstance(api_url, str) or not api_url.strip():
        api_url = _DEFAULT_API_URL
    return ReleaseFeedConfig(
        api_url=api_url.strip(),
        metadata_timeout=_coerce_positive_float(
            section.get("metadata_timeout"), default=_DEFAULT_METADATA_TIMEOUT
        ),
        download_timeout=_coerce_positive_float(
            section.get("download_timeout"), default=_DEFAULT_DOWNLOAD_TIMEOUT
        ),
    )


def _parse_server_section(section: Any) -> ServerConfig:
    if not isinstance(section, Mapping):
        section = {}
    port = _coerce_positive_int(section.get("default_port"), default=_DEFAULT_PORT)
    if port > 65535:
        port = _DEFAULT_PORT
    return ServerConfig(
        default_port=port,
        startup_grace_seconds=_coerce_positive_float(
            section.get("startup_grace_seconds"), default=_DEFAULT_STARTUP_GRACE
        ),
        log_line_limit=_coerce_positive_int(
            section.get("log_line_limit"), default=_DEFAULT_LOG_LINES
        ),
        diagnostic_line_limit=_coerce_positive_int(
            section.get("diagnostic_line_limit"), default=_DEFAULT_DIAGNOSTIC_LINES
        ),
    )


def _parse_elevation_section(section: Any) -> ElevationConfig:
    if not isinstance(section, Mapping):
        section = {}
    binary = section.get("binary")
    if not isinstance(binary, str) or not binary.strip():
        binary = _DEFAULT_SU_BINARY
    return ElevationConfig(
        binary=binary.strip(),
        command_timeout=_coerce_positive_float(
            section.get("command_timeout"), default=_DEFAULT_COMMAND_TIMEOUT
        ),
    )


def _coerce_positive_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float)):
            candidate = int(value)
        elif isinstance(value, str):
            candidate = int(float(value))
        else:
            return default
    except (ValueError, OverflowError):
        return default
    if candidate <= 0:
        return default
    return candidate


def _coerce_positive_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not isfinite(candidate) or candidate <= 0:
        return default
    return candidate


__all__ = [
    "AppConfig",
    "CONFIG_PATH_ENV",
    "ElevationConfig",
    "ReleaseFeedConfig",
    "ServerConfig",
    "get_app_config",
    "load_app_config",
    "reset_app_config_cache",
]
