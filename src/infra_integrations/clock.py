"""Injectable time sources."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def system_clock() -> datetime:
    """Return the current wall-clock time in UTC."""

    return datetime.now(timezone.utc)


def to_epoch(instant: datetime) -> float:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.timestamp()


class SteppingClock:
    """Deterministic clock that moves forward by ``step`` on every call.

    The first call returns ``start`` (wall-clock now when omitted).
    """

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.step = step
        self._start = start
        self._current: Optional[datetime] = None

    def __call__(self) -> datetime:
        if self._current is None:
            self._current = self._start or system_clock()
        else:
            self._current = self._current + self.step
        return self._current


__all__ = ["Clock", "SteppingClock", "system_clock", "to_epoch"]
