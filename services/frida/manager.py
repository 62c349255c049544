"""Facade exposing the launcher core to a front-end."""

from __future__ import annotations

import logging
import os
import shlex
import threading
from pathlib import Path
from typing import Callable, Sequence

from services.frida import constants
from services.frida.archive import normalize_download
from services.frida.architecture import host_abis, identify_platform
from services.frida.background import run_in_background
from services.frida.elevation import ElevatedShell, RootProbe
from services.frida.fetcher import ArtifactFetcher, FileInfoCallback
from services.frida.models import BinaryInvalid, ElevationError, FridaError, PlatformTag
from services.frida.progress import ProgressCallback, ProgressReporter
from services.frida.providers import ReleaseProvider
from services.frida.supervisor import ProcessSupervisor
from services.frida.validator import is_valid_binary
from services.frida.versioning import compare_versions, is_version_newer, parse_version_output


_LOGGER = logging.getLogger(__name__)


class FridaManager:
    """Download, install and supervise ``frida-server`` for one device.

    Every public operation reports success as a boolean and logs the reason
    for a failure; no exception escapes to the caller.
    """

    def __init__(
        self,
        home: Path,
        *,
        provider: ReleaseProvider,
        shell: ElevatedShell,
        probe: RootProbe | None = None,
        default_port: int = constants.DEFAULT_PORT,
        user_agent: str = constants.USER_AGENT_PRODUCT,
        download_timeout: float = constants.DOWNLOAD_TIMEOUT_SECONDS,
        startup_grace_seconds: float = constants.STARTUP_GRACE_SECONDS,
        log_line_limit: int = constants.LOG_LINE_LIMIT,
        diagnostic_line_limit: int = constants.DIAGNOSTIC_LINE_LIMIT,
        abi_source: Callable[[], Sequence[str]] = host_abis,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._home = Path(home)
        self._home.mkdir(parents=True, exist_ok=True)
        _LOGGER.debug("Frida directory: %s", self._home)

        self._shell = shell
        self._probe = probe or RootProbe(shell)
        self._default_port = default_port
        self._abi_source = abi_source
        self._platform: PlatformTag | None = None
        self._last_port = default_port

        self._fetcher = ArtifactFetcher(
            provider,
            self._home / constants.DOWNLOAD_FILENAME,
            user_agent=user_agent,
            timeout=download_timeout,
        )
        supervisor_options: dict = {
            "startup_grace_seconds": startup_grace_seconds,
            "log_line_limit": log_line_limit,
            "diagnostic_line_limit": diagnostic_line_limit,
        }
        if sleep is not None:
            supervisor_options["sleep"] = sleep
        self._supervisor = ProcessSupervisor(
            self.binary_path, shell, self._probe, **supervisor_options
        )

    @property
    def home(self) -> Path:
        return self._home

    @property
    def binary_path(self) -> Path:
        return self._home / constants.BINARY_FILENAME

    @property
    def download_path(self) -> Path:
        return self._fetcher.download_path

    @property
    def supervisor(self) -> ProcessSupervisor:
        return self._supervisor

    @property
    def default_port(self) -> int:
        return self._default_port

    def get_architecture(self, *, refresh: bool = False) -> PlatformTag:
        """Return the platform tag for this host, computed once per manager."""

        if self._platform is None or refresh:
            try:
                abis = list(self._abi_source())
            except Exception:
                _LOGGER.exception("Unable to read host ABIs")
                abis = []
            self._platform = identify_platform(abis)
            _LOGGER.info("Target architecture: %s", self._platform.value)
        return self._platform

    def is_rooted(self) -> bool:
        return self._probe.is_elevation_available()

    def download_latest(
        self,
        on_progress: ProgressCallback | None = None,
        on_file_info: FileInfoCallback | None = None,
    ) -> bool:
        """Fetch, unpack and validate the newest server build for this host."""

        reporter = ProgressReporter(on_progress)
        try:
            _LOGGER.info("Starting frida-server download...")
            previous_version = self.get_installed_version()
            tag = self.get_architecture()
            result = self._fetcher.fetch(tag, reporter=reporter, on_file_info=on_file_info)
            normalize_download(
                result.path, self.binary_path, reporter=reporter, session=result.session
            )
            if not is_valid_binary(self.binary_path):
                self.binary_path.unlink(missing_ok=True)
                raise BinaryInvalid("Final binary validation failed")
            self._mark_executable()
            reporter.complete()
            self._log_installed_version(result.asset_name, previous_version)
            return True
        except FridaError as exc:
            _LOGGER.warning("Download failed: %s", exc)
            return False
        except Exception:
            _LOGGER.exception("Unexpected error while downloading frida-server")
            return False
        finally:
            self._remove_download()

    def start(self, port: int | str | None = None) -> bool:
        """Launch the server on ``port`` and report whether it is listening."""

        resolved = self.resolve_port(port)
        try:
            self._supervisor.start(resolved)
        except FridaError as exc:
            _LOGGER.warning("Failed to start frida-server: %s", exc)
            return False
        except Exception:
            _LOGGER.exception("Unexpected error while starting frida-server")
            return False
        self._last_port = resolved
        return True

    def stop(self) -> None:
        try:
            self._supervisor.stop()
        except Exception:  # pragma: no cover - supervisor.stop() already logs
            _LOGGER.exception("Failed to stop frida-server")

    def get_log_output(self) -> str:
        try:
            return self._supervisor.get_log_output()
        except Exception as exc:
            _LOGGER.exception("Failed to read process output")
            return f"Failed to read logs: {exc}"

    def is_running(self, port: int | str | None = None) -> bool:
        resolved = self._last_port if port is None else self.resolve_port(port)
        try:
            return self._supervisor.is_running(resolved)
        except Exception:
            _LOGGER.exception("Failed to check frida-server status")
            return False

    def get_installed_version(self) -> str | None:
        """Return the version reported by the installed binary's ``--version``."""

        if not is_valid_binary(self.binary_path):
            _LOGGER.debug("No valid binary at %s; skipping version check", self.binary_path)
            return None
        command = f"{shlex.quote(str(self.binary_path))} --version"
        try:
            result = self._shell.run(command)
        except ElevationError as exc:
            _LOGGER.debug("Binary test failed: %s", exc)
            return None
        _LOGGER.debug("Binary test - Exit code: %s", result.returncode)
        _LOGGER.debug("Binary test - Output: %s", result.first_line)
        if result.stderr.strip():
            _LOGGER.debug("Binary test - Error: %s", result.stderr.strip())
        return parse_version_output(result.stdout)

    def resolve_port(self, port: int | str | None) -> int:
        """Return ``port`` as an integer or the default port when unusable."""

        if port is None or isinstance(port, bool):
            return self._default_port
        try:
            candidate = int(str(port).strip())
        except ValueError:
            _LOGGER.warning("Invalid port %r; using %s", port, self._default_port)
            return self._default_port
        if not 0 < candidate <= 65535:
            _LOGGER.warning("Port %s out of range; using %s", candidate, self._default_port)
            return self._default_port
        return candidate

    def download_latest_async(
        self,
        on_progress: ProgressCallback | None = None,
        on_file_info: FileInfoCallback | None = None,
        *,
        on_complete: Callable[[bool], None] | None = None,
    ) -> threading.Thread:
        return run_in_background(
            lambda: self.download_latest(on_progress, on_file_info),
            on_complete=on_complete,
            name="frida-download",
        )

    def start_async(
        self,
        port: int | str | None = None,
        *,
        on_complete: Callable[[bool], None] | None = None,
    ) -> threading.Thread:
        return run_in_background(
            lambda: self.start(port), on_complete=on_complete, name="frida-start"
        )

    def stop_async(self, *, on_complete: Callable[[None], None] | None = None) -> threading.Thread:
        return run_in_background(self.stop, on_complete=on_complete, name="frida-stop")

    def _mark_executable(self) -> None:
        try:
            mode = self.binary_path.stat().st_mode
            os.chmod(self.binary_path, mode | 0o755)
        except OSError as exc:
            _LOGGER.warning("Unable to mark %s executable: %s", self.binary_path, exc)

    def _log_installed_version(self, asset_name: str, previous_version: str | None) -> None:
        installed = self.get_installed_version()
        _LOGGER.info(
            "Installed %s (reported version %s)", asset_name, installed or "unknown"
        )
        if previous_version and installed:
            if is_version_newer(previous_version, installed):
                _LOGGER.info("Upgraded frida-server %s -> %s", previous_version, installed)
            elif compare_versions(previous_version, installed) < 0:
                _LOGGER.info("Downgraded frida-server %s -> %s", previous_version, installed)

    def _remove_download(self) -> None:
        try:
            self.download_path.unlink(missing_ok=True)
        except OSError as exc:
            _LOGGER.debug("Unable to remove %s: %s", self.download_path, exc)


__all__ = ["FridaManager"]
