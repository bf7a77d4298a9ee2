"""Time source.

All timestamps in the service are naive UTC datetimes, matching what SQLite
hands back for ``DateTime`` columns. Services take a ``Clock`` so tests can pin
and advance time deterministically.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Clock:
    """Source of the current time."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return utcnow()


class ManualClock(Clock):
    """Clock that only moves when told to. Used by tests and the demo seed."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utcnow().replace(microsecond=0)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, value: datetime) -> None:
        with self._lock:
            self._now = value

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(minutes=minutes, seconds=seconds)
            return self._now


system_clock = SystemClock()
