from __future__ import annotations

from datetime import date, datetime, time as dtime, timedelta, timezone, tzinfo
from typing import Protocol


class Clock(Protocol):
    # None means the system's local time rules.
    zone: tzinfo | None

    def now(self) -> datetime:
        ...


class RealClock:
    def __init__(self, zone: tzinfo | None = None) -> None:
        self.zone = zone

    def now(self) -> datetime:
        if self.zone is not None:
            return datetime.now(self.zone)
        return datetime.now().astimezone()


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        base = start or datetime(2025, 7, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self._current = base
        self.zone: tzinfo | None = base.tzinfo

    def now(self) -> datetime:
        return self._current

    def set(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.zone)
        self._current = value

    def advance(self, **kwargs: float) -> None:
        self._current += timedelta(**kwargs)


def local_datetime(day: date, clock_time: dtime, zone: tzinfo | None) -> datetime:
    """Wall-clock ``clock_time`` on ``day``, using the UTC offset in force on that date."""
    naive = datetime.combine(day, clock_time)
    local = naive.astimezone() if zone is None else naive.replace(tzinfo=zone)
    # Same-zone arithmetic ignores DST shifts, so hand back UTC.
    return local.astimezone(timezone.utc)


def day_bounds(day: date, zone: tzinfo | None) -> tuple[datetime, datetime]:
    """Local midnights opening and closing ``day``."""
    start = local_datetime(day, dtime.min, zone)
    end = local_datetime(day + timedelta(days=1), dtime.min, zone)
    return start, end
