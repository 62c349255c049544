"""Progress reporting shared by the fetch and unpack stages."""

from __future__ import annotations

import logging
from typing import Callable


_LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def clamp_progress(fraction: float) -> float:
    """Clamp ``fraction`` into ``[0.0, 1.0]``.

    Estimated progress (for example xz output measured against an assumed
    inflation ratio) may overshoot; callers always see a value in range.
    """

    if fraction != fraction:  # NaN
        return 0.0
    return max(0.0, min(1.0, float(fraction)))


class ProgressReporter:
    """Forward progress to a callback, never letting the value go backwards."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = 0.0
        self._reported = False

    @property
    def last_value(self) -> float:
        return self._last

    def report(self, fraction: float) -> None:
        value = max(self._last, clamp_progress(fraction))
        if self._reported and value == self._last:
            return
        self._last = value
        self._reported = True
        if self._callback is not None:
            self._callback(value)

    def stage(self, start: float, span: float) -> ProgressCallback:
        """Return a callback mapping ``[0, 1]`` onto ``[start, start + span]``."""

        def _report(fraction: float) -> None:
            self.report(start + clamp_progress(fraction) * span)

        return _report

    def complete(self) -> None:
        self.report(1.0)


__all__ = ["ProgressCallback", "ProgressReporter", "clamp_progress"]
