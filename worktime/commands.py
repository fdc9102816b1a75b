from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
import sys
from typing import Callable, TextIO

from .clock import Clock
from .corrector import Corrector
from .db import WorktimeDB
from .errors import WorktimeError
from .reporting import (
    DayReport,
    build_day_report,
    build_period_report,
    format_duration,
    format_hours,
    month_bounds,
    week_bounds,
)
from .schemas import day_report_out, period_report_out, status_out
from .tracker import Tracker, Tracking


@dataclass
class CommandContext:
    db: WorktimeDB
    clock: Clock
    # Looked up per instance, not at import.
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    @property
    def tracker(self) -> Tracker:
        return Tracker(self.db, self.clock)

    @property
    def corrector(self) -> Corrector:
        return Corrector(self.db, self.clock)

    def local(self, value: datetime) -> datetime:
        return value.astimezone(self.clock.zone)

    def say(self, text: str = "") -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def warn(self, text: str) -> None:
        self.stderr.write(text + "\n")
        self.stderr.flush()


def run_command(ctx: CommandContext, name: str, handler: Callable[[], int]) -> int:
    try:
        return handler()
    except WorktimeError as exc:
        ctx.warn(f"{name} failed: {exc}")
        return 1


def command_status(ctx: CommandContext, as_json: bool = False) -> int:
    status = ctx.tracker.status()
    if as_json:
        ctx.say(status_out(status, ctx.clock.zone).model_dump_json(indent=2))
        return 0
    if isinstance(status, Tracking):
        session = status.session
        elapsed = int((ctx.clock.now() - session.start).total_seconds())
        ctx.say(
            f"Tracking since {ctx.local(session.start):%Y-%m-%d %H:%M:%S} "
            f"(session {session.id}, {format_duration(elapsed)} so far)"
        )
    else:
        ctx.say("Idle")
    return 0


def command_start(ctx: CommandContext) -> int:
    session = ctx.tracker.start()
    ctx.say(f"Started at {ctx.local(session.start):%H:%M} (session {session.id})")
    return 0


def command_stop(ctx: CommandContext) -> int:
    session = ctx.tracker.stop()
    ctx.say(
        f"Stopped at {ctx.local(session.end):%H:%M} "
        f"(session {session.id}, {format_duration(session.duration_sec)})"
    )
    return 0


def command_report(
    ctx: CommandContext,
    day: date | None = None,
    period: str = "day",
    as_json: bool = False,
) -> int:
    now = ctx.clock.now()
    target = day or now.astimezone(ctx.clock.zone).date()

    if period == "day":
        report = build_day_report(ctx.db, target, ctx.clock)
        if as_json:
            ctx.say(day_report_out(report, ctx.clock.zone).model_dump_json(indent=2))
            return 0
        ctx.say(f"Report for {target.isoformat()}")
        _print_day_entries(ctx, report)
        ctx.say(f"Total: {format_duration(report.total_sec)} ({format_hours(report.total_sec)})")
        return 0

    if period == "week":
        first_day, last_day = week_bounds(target)
    elif period == "month":
        first_day, last_day = month_bounds(target)
    else:
        raise ValueError(f"unknown report period: {period}")

    period_report = build_period_report(ctx.db, first_day, last_day, ctx.clock)
    if as_json:
        ctx.say(period_report_out(period_report, ctx.clock.zone).model_dump_json(indent=2))
        return 0
    ctx.say(f"Report for {first_day.isoformat()} to {last_day.isoformat()}")
    for item in period_report.days:
        marker = " *" if any(entry.is_open for entry in item.entries) else ""
        ctx.say(f"  {item.day:%Y-%m-%d %a}  {format_duration(item.total_sec)}{marker}")
    ctx.say(
        f"Total: {format_duration(period_report.total_sec)} "
        f"({format_hours(period_report.total_sec)})"
    )
    return 0


def _print_day_entries(ctx: CommandContext, report: DayReport) -> None:
    if not report.entries:
        ctx.say("  No sessions recorded.")
        return
    for entry in report.entries:
        end_text = "running" if entry.is_open else f"{ctx.local(entry.end):%H:%M:%S}"
        ctx.say(
            f"  #{entry.session.id}  {ctx.local(entry.start):%H:%M:%S} - {end_text}  "
            f"{format_duration(entry.duration_sec)}"
        )


def command_correct(ctx: CommandContext, session_id: int, start: str, end: str) -> int:
    session = ctx.corrector.correct(session_id, start, end)
    ctx.say(
        f"Session {session.id} is now {ctx.local(session.start):%Y-%m-%d %H:%M} - "
        f"{ctx.local(session.end):%H:%M} ({format_duration(session.duration_sec)})"
    )
    return 0


def command_sql(ctx: CommandContext, statement: str) -> int:
    result = ctx.db.execute_raw(statement)
    if result.columns:
        ctx.say("\t".join(result.columns))
        for row in result.rows:
            ctx.say("\t".join("" if value is None else str(value) for value in row))
        ctx.say(f"({len(result.rows)} rows)")
    else:
        ctx.say(f"{max(0, result.rowcount)} rows affected")

    for problem in ctx.db.find_violations():
        ctx.warn(f"warning: {problem}")
    return 0


def command_check(ctx: CommandContext) -> int:
    problems = ctx.db.find_violations()
    if not problems:
        ctx.say("Store is consistent.")
        return 0
    for problem in problems:
        ctx.say(problem)
    return 1
