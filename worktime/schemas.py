from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from .models import Session
from .reporting import DayReport, PeriodReport
from .tracker import Status, Tracking


class SessionOut(BaseModel):
    id: int
    start: datetime
    end: datetime | None = None
    is_open: bool


class StatusOut(BaseModel):
    state: Literal["idle", "tracking"]
    session: SessionOut | None = None


class ReportEntryOut(BaseModel):
    session: SessionOut
    start: datetime
    end: datetime
    duration_sec: int
    is_open: bool


class DayReportOut(BaseModel):
    day: date
    total_sec: int
    entries: list[ReportEntryOut] = Field(default_factory=list)


class PeriodReportOut(BaseModel):
    first_day: date
    last_day: date
    total_sec: int
    days: list[DayReportOut] = Field(default_factory=list)


def session_out(session: Session, tz=None) -> SessionOut:
    end = session.end
    return SessionOut(
        id=session.id,
        start=session.start.astimezone(tz),
        end=end.astimezone(tz) if end is not None else None,
        is_open=session.is_open,
    )


def status_out(status: Status, tz=None) -> StatusOut:
    if isinstance(status, Tracking):
        return StatusOut(state="tracking", session=session_out(status.session, tz))
    return StatusOut(state="idle")


def day_report_out(report: DayReport, tz=None) -> DayReportOut:
    return DayReportOut(
        day=report.day,
        total_sec=report.total_sec,
        entries=[
            ReportEntryOut(
                session=session_out(item.session, tz),
                start=item.start,
                end=item.end,
                duration_sec=item.duration_sec,
                is_open=item.is_open,
            )
            for item in report.entries
        ],
    )


def period_report_out(report: PeriodReport, tz=None) -> PeriodReportOut:
    return PeriodReportOut(
        first_day=report.first_day,
        last_day=report.last_day,
        total_sec=report.total_sec,
        days=[day_report_out(item, tz) for item in report.days],
    )
