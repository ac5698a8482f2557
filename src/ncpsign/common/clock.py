"""Clock capability for request timestamps."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current time in epoch milliseconds."""

    def now_millis(self) -> int: ...


class SystemClock:
    """Wall clock."""

    def now_millis(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock:
    """Clock frozen at a given instant, advanced manually."""

    def __init__(self, millis: int):
        self._millis = millis

    def now_millis(self) -> int:
        return self._millis

    def advance(self, millis: int) -> None:
        self._millis += millis


def timestamp_millis(clock: Clock) -> str:
    """Return the clock's current time as a decimal string."""
    return str(clock.now_millis())
