"""Buffered capture of a supervised process's output streams."""

from __future__ import annotations

import logging
import subprocess
import threading
from collections import deque
from typing import IO, Iterable

from services.frida import constants


_LOGGER = logging.getLogger(__name__)

_BUFFER_LIMIT = 500


class StreamBuffer:
    """Collect lines from a text stream on a daemon thread."""

    def __init__(self, stream: IO[str] | None, *, name: str, limit: int = _BUFFER_LIMIT) -> None:
        self._lines: deque[str] = deque(maxlen=limit)
        self._lock = threading.Lock()
        self._finished = threading.Event()
        if stream is None:
            self._finished.set()
            self._thread: threading.Thread | None = None
            return
        self._thread = threading.Thread(
            target=self._pump,
            args=(stream,),
            name=f"frida-output-{name}",
            daemon=True,
        )
        self._thread.start()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)

    def drain(self, limit: int) -> list[str]:
        """Remove and return up to ``limit`` buffered lines."""

        with self._lock:
            count = min(limit, len(self._lines))
            return [self._lines.popleft() for _ in range(count)]

    def peek(self, limit: int) -> list[str]:
        with self._lock:
            return list(self._lines)[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def _pump(self, stream: IO[str]) -> None:
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                with self._lock:
                    self._lines.append(line)
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Output stream closed: %s", exc)
        finally:
            self._finished.set()


class SupervisedProcess:
    """A running server launch together with its buffered output."""

    def __init__(self, process: subprocess.Popen, *, port: int) -> None:
        self._process = process
        self.port = port
        self.stdout = StreamBuffer(process.stdout, name="out")
        self.stderr = StreamBuffer(process.stderr, name="err")

    @property
    def pid(self) -> int:
        return self._process.pid

    def poll(self) -> int | None:
        return self._process.poll()

    @property
    def exhausted(self) -> bool:
        """``True`` once the process exited and every buffered line was read."""

        return (
            self.poll() is not None
            and self.stdout.finished
            and self.stderr.finished
            and len(self.stdout) == 0
            and len(self.stderr) == 0
        )

    def terminate(self, timeout: float = 2.0) -> None:
        if self.poll() is not None:
            return
        self._process.terminate()
        try:
            self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            _LOGGER.debug("Process %s ignored terminate; killing", self.pid)
            self._process.kill()

    def read_log(self, limit: int = constants.LOG_LINE_LIMIT) -> str:
        return format_log_lines(self.stdout.drain(limit), self.stderr.drain(limit))

    def diagnostic_lines(self, limit: int = constants.DIAGNOSTIC_LINE_LIMIT) -> list[str]:
        return self.stdout.peek(limit)


def format_log_lines(out_lines: Iterable[str], err_lines: Iterable[str]) -> str:
    parts = [f"OUT: {line}\n" for line in out_lines]
    parts.extend(f"ERR: {line}\n" for line in err_lines)
    return "".join(parts)


__all__ = ["StreamBuffer", "SupervisedProcess", "format_log_lines"]
