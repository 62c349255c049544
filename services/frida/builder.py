"""Helpers for constructing the frida-server manager."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from app.config import AppConfig, get_app_config
from app.version import get_app_version
from services.frida import constants
from services.frida.elevation import ElevatedShell, RootProbe, SuShell
from services.frida.manager import FridaManager
from services.frida.providers import (
    GitHubReleaseProvider,
    LocalFolderReleaseProvider,
    ReleaseProvider,
    build_user_agent,
)
from shared.logging_config import ensure_app_logging


_LOGGER = logging.getLogger(__name__)


def resolve_home_directory() -> Path:
    """Return the managed directory holding the server binary."""

    override = os.environ.get(constants.HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / constants.DEFAULT_HOME_DIRNAME / "frida"


def _build_provider_from_env(config: AppConfig, user_agent: str) -> ReleaseProvider:
    local_dir = os.environ.get(constants.LOCAL_RELEASE_ENV)
    if local_dir:
        folder = Path(local_dir).expanduser()
        if folder.exists():
            _LOGGER.info("Using local release source at %s", folder)
            return LocalFolderReleaseProvider(folder)
        _LOGGER.warning("Configured local release directory does not exist: %s", folder)
    return GitHubReleaseProvider(
        config.release.api_url,
        user_agent=user_agent,
        timeout=config.release.metadata_timeout,
    )


def build_frida_manager(
    *,
    home: Path | None = None,
    config: AppConfig | None = None,
    shell: ElevatedShell | None = None,
    provider: ReleaseProvider | None = None,
) -> FridaManager:
    """Construct a :class:`FridaManager` for the current environment."""

    ensure_app_logging()
    config = config or get_app_config()
    user_agent = build_user_agent(get_app_version())
    shell = shell or SuShell(
        config.elevation.binary, timeout=config.elevation.command_timeout
    )
    provider = provider or _build_provider_from_env(config, user_agent)
    home = home or resolve_home_directory()
    _LOGGER.debug("Building manager for %s with %s", home, type(provider).__name__)
    return FridaManager(
        home,
        provider=provider,
        shell=shell,
        probe=RootProbe(shell),
        default_port=config.server.default_port,
        user_agent=user_agent,
        download_timeout=config.release.download_timeout,
        startup_grace_seconds=config.server.startup_grace_seconds,
        log_line_limit=config.server.log_line_limit,
        diagnostic_line_limit=config.server.diagnostic_line_limit,
    )


__all__ = ["build_frida_manager", "resolve_home_directory"]
