"""Install, launch and stop the privileged frida-server process."""

from __future__ import annotations

import logging
import shlex
import time
from pathlib import Path
from typing import Callable

from services.frida import constants
from services.frida.elevation import ElevatedShell, RootProbe
from services.frida.models import (
    BinaryInvalid,
    BinaryMissing,
    ElevationError,
    NotRooted,
    PermissionDenied,
    StartupTimeout,
    SupervisorState,
)
from services.frida.output import SupervisedProcess
from services.frida.validator import is_valid_binary


_LOGGER = logging.getLogger(__name__)

_LISTEN_LINE_PREFIXES = {"tcp", "tcp6", "listen"}


class ProcessSupervisor:
    """Own the single tracked frida-server process.

    Starting always stops whatever is tracked first, so at most one launch is
    ever referenced. Liveness is only confirmed at start time and when
    :meth:`is_running` is called explicitly.
    """

    def __init__(
        self,
        binary_path: Path,
        shell: ElevatedShell,
        probe: RootProbe,
        *,
        startup_grace_seconds: float = constants.STARTUP_GRACE_SECONDS,
        log_line_limit: int = constants.LOG_LINE_LIMIT,
        diagnostic_line_limit: int = constants.DIAGNOSTIC_LINE_LIMIT,
        process_name: str = constants.SERVER_NAME,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._binary_path = Path(binary_path)
        self._shell = shell
        self._probe = probe
        self._startup_grace_seconds = startup_grace_seconds
        self._log_line_limit = log_line_limit
        self._diagnostic_line_limit = diagnostic_line_limit
        self._process_name = process_name
        self._sleep = sleep
        self._state = SupervisorState.IDLE
        self._process: SupervisedProcess | None = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def process(self) -> SupervisedProcess | None:
        return self._process

    def start(self, port: int) -> None:
        """Launch the server on ``port`` and confirm it is listening.

        Raises a :class:`~services.frida.models.FridaError` subclass when any
        precondition or the liveness confirmation fails.
        """

        _LOGGER.info("Starting %s on port %s", self._process_name, port)
        if not self._probe.is_elevation_available():
            raise NotRooted("Device not rooted")
        if not self._binary_path.exists():
            raise BinaryMissing(f"Server binary not found at {self._binary_path}")
        if not is_valid_binary(self._binary_path):
            raise BinaryInvalid(f"Server binary at {self._binary_path} is not an ELF executable")
        _LOGGER.debug(
            "Binary exists and is valid, size: %s", self._binary_path.stat().st_size
        )

        self.stop()

        self._state = SupervisorState.INSTALLING
        try:
            self.install_permissions()
            process = self._launch(port)
        except Exception:
            self._state = SupervisorState.IDLE
            raise

        self._sleep(self._startup_grace_seconds)

        if self.is_running(port):
            self._state = SupervisorState.RUNNING
            _LOGGER.info("%s is listening on port %s", self._process_name, port)
            return

        self._state = SupervisorState.IDLE
        _LOGGER.debug("Reading process output for debugging...")
        for line in process.diagnostic_lines(self._diagnostic_line_limit):
            _LOGGER.info("Process output: %s", line)
        raise StartupTimeout(f"{self._process_name} is not listening on port {port}")

    def install_permissions(self) -> None:
        """Make the binary executable and owned by the superuser."""

        target = shlex.quote(str(self._binary_path))
        _LOGGER.debug("Making file executable: %s", self._binary_path)
        try:
            chmod = self._shell.run(f"chmod {constants.BINARY_MODE} {target}")
        except ElevationError as exc:
            raise PermissionDenied(f"chmod failed: {exc}") from exc
        _LOGGER.debug("chmod %s result: %s", constants.BINARY_MODE, chmod.returncode)
        if not chmod.ok:
            raise PermissionDenied(
                f"chmod {constants.BINARY_MODE} exited with {chmod.returncode}: {chmod.stderr.strip()}"
            )

        try:
            chown = self._shell.run(f"chown {constants.BINARY_OWNER} {target}")
        except ElevationError as exc:
            _LOGGER.warning("chown failed: %s", exc)
            return
        if not chown.ok:
            _LOGGER.warning(
                "chown %s exited with %s; continuing", constants.BINARY_OWNER, chown.returncode
            )

    def stop(self) -> None:
        """Terminate the tracked process and any stray server instances."""

        previous = self._state
        self._state = SupervisorState.STOPPING
        try:
            process, self._process = self._process, None
            if process is not None:
                _LOGGER.info("Stopping %s (pid %s)", self._process_name, process.pid)
                process.terminate()
            result = self._shell.run(f"pkill -f {shlex.quote(self._process_name)}")
            _LOGGER.debug("pkill result: %s", result.returncode)
        except Exception:
            _LOGGER.exception("Failed to stop %s", self._process_name)
        finally:
            self._state = SupervisorState.IDLE
        if previous is not SupervisorState.IDLE:
            _LOGGER.info("%s stopped", self._process_name)

    def is_running(self, port: int) -> bool:
        """Return ``True`` when the server process exists and listens on ``port``."""

        try:
            pids = self._shell.run(f"pgrep -x {shlex.quote(self._process_name)}")
        except ElevationError as exc:
            _LOGGER.warning("Failed to check %s status: %s", self._process_name, exc)
            return False
        _LOGGER.debug("pgrep result: %s", pids.first_line)
        if not pids.first_line:
            return False

        listening = self._is_listening(port)
        _LOGGER.debug("Port %s is listening: %s", port, listening)
        return listening

    def get_log_output(self) -> str:
        process = self._process
        if process is None:
            return constants.NO_PROCESS_MESSAGE
        output = process.read_log(self._log_line_limit)
        if process.exhausted:
            _LOGGER.debug("Tracked process %s has exited; releasing it", process.pid)
            self._process = None
        return output

    def _launch(self, port: int) -> SupervisedProcess:
        directory = shlex.quote(str(self._binary_path.parent))
        binary = shlex.quote(str(self._binary_path))
        command = f"cd {directory} && {binary} -l {constants.LISTEN_ADDRESS}:{port} -D"
        _LOGGER.info("Executing command: %s", command)
        process = SupervisedProcess(self._shell.spawn(command), port=port)
        self._process = process
        return process

    def _is_listening(self, port: int) -> bool:
        suffix = f":{port}"
        for command in constants.LISTEN_PROBE_COMMANDS:
            try:
                result = self._shell.run(command)
            except ElevationError as exc:
                _LOGGER.debug("Listen probe '%s' failed: %s", command, exc)
                continue
            if not result.ok and not result.stdout.strip():
                _LOGGER.debug("Listen probe '%s' exited with %s", command, result.returncode)
                continue
            return any(_listens_on(line, suffix) for line in result.stdout.splitlines())
        return False


def _listens_on(line: str, suffix: str) -> bool:
    fields = line.split()
    if len(fields) < 4 or fields[0].lower() not in _LISTEN_LINE_PREFIXES:
        return False
    # netstat: proto recv-q send-q local ...; ss -ltn: state recv-q send-q local ...
    return fields[3].endswith(suffix)


__all__ = ["ProcessSupervisor"]
