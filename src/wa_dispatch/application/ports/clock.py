from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of "now" for not_before scheduling and reaper cutoffs."""

    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def cutoff(clock: Clock, age: timedelta) -> tuple[datetime, datetime]:
    """Return ``(now, now - age)``, read from the clock once."""
    now = clock.now()
    return now, now - age
