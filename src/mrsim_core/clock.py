# src/mrsim_core/clock.py
"""
Clock abstraction injected wherever a wall-clock timestamp is recorded.

Simulation timestamps (data log entries, performance history, test ids) are
taken from a `Clock` instead of the global system time, so a test can replay
a run with fully deterministic timestamps by passing a `ManualClock`.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Clock(Protocol):
    """Anything that can report the current time."""
    def now(self) -> datetime:
        ...


class SystemClock:
    """The real, timezone-aware UTC wall clock."""
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """
    A deterministic clock for tests. Every call to `now()` returns the current
    time and then moves it forward by `tick` (zero by default).
    """
    def __init__(self, start: Optional[datetime] = None, tick: timedelta = timedelta(0)):
        self._current = start if start is not None else datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._tick = tick

    def now(self) -> datetime:
        current = self._current
        self._current = current + self._tick
        return current

    def advance(self, delta: timedelta) -> None:
        self._current += delta
