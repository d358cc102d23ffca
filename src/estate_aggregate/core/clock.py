"""Clock abstraction for testable time.

WallClock: real wall-clock time (production)
FixedClock: deterministic time that only moves when told to (tests)

The service never calls datetime.now() directly; it asks its clock.
Property codes take their year from the clock and inspection due dates
are compared against it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time as timezone-aware UTC datetime."""
        ...


class WallClock:
    """Real wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Deterministic clock for tests.

    Time advances only when explicitly set or advanced.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._time = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if self._time.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")

    def now(self) -> datetime:
        return self._time

    def set_time(self, t: datetime) -> None:
        """Move the clock. Must be monotonically increasing."""
        if t < self._time:
            raise ValueError(
                f"FixedClock cannot go backwards: {t} < {self._time}"
            )
        self._time = t

    def advance(self, **delta: float) -> None:
        """Advance time by a ``timedelta`` expressed as keyword arguments."""
        self.set_time(self._time + timedelta(**delta))
