from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .clock import Clock, day_bounds
from .db import WorktimeDB
from .models import Session, effective_end


@dataclass(frozen=True)
class ReportEntry:
    session: Session
    start: datetime
    end: datetime
    duration_sec: int
    is_open: bool


@dataclass(frozen=True)
class DayReport:
    day: date
    total_sec: int
    entries: list[ReportEntry]


@dataclass(frozen=True)
class PeriodReport:
    first_day: date
    last_day: date
    total_sec: int
    days: list[DayReport]


def format_duration(seconds: int) -> str:
    total = max(0, int(seconds))
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m {sec:02d}s"
    return f"{minutes}m {sec:02d}s"


def format_hours(seconds: int) -> str:
    return f"{max(0, int(seconds)) / 3600:.2f} h"


def week_bounds(day: date) -> tuple[date, date]:
    first = day - timedelta(days=day.weekday())
    return first, first + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    first = day.replace(day=1)
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    return first, following - timedelta(days=1)


def build_day_report(db: WorktimeDB, day: date, clock: Clock) -> DayReport:
    """Sum the sessions of ``day``, clipped to its local midnights.

    Open sessions count up to the clock's ``now``, so a running session
    contributes the time tracked so far. Clipping keeps totals of adjacent days disjoint.
    """
    now = clock.now()
    zone = clock.zone
    day_start, day_end = day_bounds(day, zone)
    entries: list[ReportEntry] = []
    total = timedelta()
    for session in db.find_in_range(day_start, day_end):
        start = max(session.start, day_start)
        end = min(effective_end(session, now), day_end)
        if end < start:
            # Running session that started after `now`.
            continue
        contribution = end - start
        total += contribution
        entries.append(
            ReportEntry(
                session=session,
                start=start.astimezone(zone),
                end=end.astimezone(zone),
                duration_sec=int(contribution.total_seconds()),
                is_open=session.is_open,
            )
        )

    return DayReport(day=day, total_sec=int(total.total_seconds()), entries=entries)


def build_period_report(
    db: WorktimeDB,
    first_day: date,
    last_day: date,
    clock: Clock,
) -> PeriodReport:
    days: list[DayReport] = []
    current = first_day
    while current <= last_day:
        days.append(build_day_report(db, current, clock))
        current += timedelta(days=1)
    return PeriodReport(
        first_day=first_day,
        last_day=last_day,
        total_sec=sum(item.total_sec for item in days),
        days=days,
    )
