"""Paces playback so that stream timestamps follow the wall clock."""

from __future__ import annotations

import time
from typing import Callable

from .common import gettime_ms

DEFAULT_JITTER_MS = 1000


class SyncClock:
    """Sleeps so that stream time advances no faster than system time.

    A gap of at least ``jitter`` ms between the two clocks (either way)
    resets the reference point instead of sleeping.
    """

    def __init__(
        self,
        jitter: int = DEFAULT_JITTER_MS,
        clock: Callable[[], int] = gettime_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.jitter = jitter
        self._clock = clock
        self._sleep = sleep
        self._begin_rts_ms: int | None = None
        self._begin_sys_ms: int | None = None

    def wait(self, rts_ms: int) -> None:
        """Block until the system clock catches up with stream time rts_ms."""
        if self._begin_rts_ms is None:
            self._begin_rts_ms = rts_ms
            self._begin_sys_ms = self._clock()
            return
        cur_sys_ms = self._clock()
        sys_passed = cur_sys_ms - self._begin_sys_ms
        rts_passed = rts_ms - self._begin_rts_ms
        ahead = rts_passed - sys_passed
        if ahead >= self.jitter or ahead <= -self.jitter:
            self._begin_rts_ms = rts_ms
            self._begin_sys_ms = cur_sys_ms
            return
        if ahead > 0:
            self._sleep(ahead / 1000)