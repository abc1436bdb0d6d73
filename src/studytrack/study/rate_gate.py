"""Minimum-interval gate for actions that must not fire in bursts."""

from __future__ import annotations

import time
from typing import Callable, Optional


class RateGate:
    """Accept an invocation only if ``min_interval`` has passed since the last accepted one.

    Rejected invocations leave the gate untouched, so a steady stream of
    calls closer together than the interval is accepted once per interval
    rather than never.

    Args:
        min_interval: Minimum number of seconds between accepted invocations.
        clock: Monotonic time source in seconds; injectable for tests.

    Example::

        gate = RateGate(2.0)
        gate.allow()   # True
        gate.allow()   # False, inside the window
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._last: Optional[float] = None

    @property
    def last_invocation(self) -> Optional[float]:
        """Clock reading of the last accepted invocation, ``None`` before the first."""
        return self._last

    def allow(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = self._clock()
        if self._last is not None and now - self._last < self.min_interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None
