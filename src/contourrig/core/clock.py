"""Frame clock for the preview loop."""

import time
from typing import Callable

from contourrig.constants import MAX_DELTA_TIME


class FrameClock:
    """Tracks per-frame delta and total elapsed preview time.

    ``time_source`` is injectable so tests can drive the clock by hand.
    """

    def __init__(self, time_source: Callable[[], float] = time.perf_counter,
                 max_delta: float = MAX_DELTA_TIME):
        self._now = time_source
        self._max_delta = max_delta
        self._last_time = self._now()
        self.elapsed = 0.0

    def get_delta(self) -> float:
        """Seconds since the last call, clamped to ``max_delta``; adds to ``elapsed``."""
        now = self._now()
        dt = min(max(now - self._last_time, 0.0), self._max_delta)
        self._last_time = now
        self.elapsed += dt
        return dt

    def reset(self) -> None:
        self._last_time = self._now()
        self.elapsed = 0.0
