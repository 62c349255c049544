"""Run manager operations off the caller's thread."""

from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar


_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_background(
    operation: Callable[[], T],
    *,
    on_complete: Callable[[T], None] | None = None,
    name: str = "frida-launcher",
) -> threading.Thread:
    """Run ``operation`` on a daemon thread and hand its result to ``on_complete``.

    ``on_complete`` is invoked from the worker thread; callers owning a UI
    loop are expected to marshal it back themselves. There is no cancellation:
    an abandoned operation still runs to completion.
    """

    def _runner() -> None:
        try:
            result = operation()
        except Exception:  # pragma: no cover - manager operations catch their own errors
            _LOGGER.exception("Background operation %s failed", name)
            return
        if on_complete is not None:
            on_complete(result)

    thread = threading.Thread(target=_runner, name=name, daemon=True)
    thread.start()
    return thread


__all__ = ["run_in_background"]
