"""Access to the external ``su`` elevation mechanism."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from typing import Callable, Iterable, Protocol, Sequence

from services.frida import constants
from services.frida.models import CommandResult, ElevationError


_LOGGER = logging.getLogger(__name__)


class ElevatedShell(Protocol):
    """Protocol describing how privileged commands are executed."""

    def run(self, command: str, *, timeout: float | None = None) -> CommandResult:
        """Run ``command`` as the superuser and wait for it to finish."""

    def run_unprivileged(self, args: Sequence[str]) -> CommandResult:
        """Run ``args`` as the current user."""

    def run_script(self, script: str) -> CommandResult:
        """Open an elevated shell and feed ``script`` on its stdin."""

    def spawn(self, command: str) -> subprocess.Popen:
        """Start ``command`` as the superuser without waiting for it."""


class SuShell:
    """Run commands through ``su -c``."""

    def __init__(
        self,
        binary: str = constants.SU_BINARY,
        *,
        timeout: float = constants.SHELL_TIMEOUT_SECONDS,
    ) -> None:
        self._binary = binary
        self._timeout = timeout

    @property
    def binary(self) -> str:
        return self._binary

    def run(self, command: str, *, timeout: float | None = None) -> CommandResult:
        _LOGGER.debug("Executing command: %s -c \"%s\"", self._binary, command)
        return self._execute([self._binary, "-c", command], timeout=timeout)

    def run_unprivileged(self, args: Sequence[str]) -> CommandResult:
        return self._execute(list(args))

    def run_script(self, script: str) -> CommandResult:
        return self._execute([self._binary], input_text=script)

    def spawn(self, command: str) -> subprocess.Popen:
        _LOGGER.debug("Spawning command: %s -c \"%s\"", self._binary, command)
        try:
            return subprocess.Popen(
                [self._binary, "-c", command],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            raise ElevationError(f"Failed to launch {self._binary}: {exc}") from exc

    def _execute(
        self,
        args: list[str],
        *,
        input_text: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        try:
            completed = subprocess.run(
                args,
                input=input_text,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout if timeout is not None else self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ElevationError(f"Command timed out: {shlex.join(args)}") from exc
        except OSError as exc:
            raise ElevationError(f"Failed to run {args[0]}: {exc}") from exc
        return CommandResult(completed.returncode, completed.stdout or "", completed.stderr or "")


RootCheck = Callable[[], bool]


class RootProbe:
    """Decide whether the elevation mechanism is usable on this host.

    The checks run in a fixed order and the first one returning ``True``
    wins. A check that raises counts as ``False``.
    """

    def __init__(
        self,
        shell: ElevatedShell,
        *,
        candidate_paths: Iterable[str] = constants.SU_CANDIDATE_PATHS,
        checks: Sequence[tuple[str, RootCheck]] | None = None,
    ) -> None:
        self._shell = shell
        self._candidate_paths = tuple(candidate_paths)
        if checks is None:
            checks = (
                ("lookup", self.check_su_on_path),
                ("known paths", self.check_known_paths),
                ("identity", self.check_superuser_identity),
            )
        self._checks = tuple(checks)

    def is_elevation_available(self) -> bool:
        return any(self._evaluate(name, check) for name, check in self._checks)

    def check_su_on_path(self) -> bool:
        binary = getattr(self._shell, "binary", constants.SU_BINARY)
        result = self._shell.run_unprivileged(["which", binary])
        return bool(result.stdout.strip())

    def check_known_paths(self) -> bool:
        return any(os.path.exists(path) for path in self._candidate_paths)

    def check_superuser_identity(self) -> bool:
        result = self._shell.run_script("id\nexit\n")
        identity = result.first_line
        _LOGGER.debug("Elevated identity output: %s", identity)
        return constants.SUPERUSER_MARKER in identity

    def _evaluate(self, name: str, check: RootCheck) -> bool:
        try:
            outcome = bool(check())
        except Exception as exc:
            _LOGGER.debug("Root check '%s' failed: %s", name, exc)
            return False
        _LOGGER.debug("Root check '%s': %s", name, outcome)
        return outcome


__all__ = ["ElevatedShell", "RootCheck", "RootProbe", "SuShell"]
