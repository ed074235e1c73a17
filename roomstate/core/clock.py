"""
Clock sources for action log timestamps.

The reducer never reads system time directly; it asks the clock in its
context. Tests use FixedClock so log entries are reproducible.
"""

import time
from dataclasses import dataclass
from datetime import datetime


class SystemClock:
    """Wall clock in epoch milliseconds."""

    def now(self) -> int:
        return int(time.time() * 1000)


@dataclass(frozen=True)
class FixedClock:
    """
    Clock pinned to a given epoch-millisecond value.

    Since FixedClock is immutable, tick() returns a new instance.
    """
    current: int = 0

    def now(self) -> int:
        return self.current

    def tick(self, step: int = 1000) -> "FixedClock":
        return FixedClock(self.current + step)


def format_time(epoch_ms: int) -> str:
    """Format an epoch-millisecond timestamp as local HH:MM for the action log."""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%H:%M")
