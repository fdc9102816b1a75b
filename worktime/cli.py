from __future__ import annotations

import argparse
from datetime import date
import logging
import os
from pathlib import Path
import sys
from typing import TextIO
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .clock import Clock, RealClock
from .commands import (
    CommandContext,
    command_check,
    command_correct,
    command_report,
    command_sql,
    command_start,
    command_status,
    command_stop,
    run_command,
)
from .db import WorktimeDB, default_db_path
from .errors import WorktimeError
from .interactive import InteractiveMenu


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}, expected YYYY-MM-DD"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worktime",
        description="Track work sessions and report daily totals",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: $WORKTIME_DB or worktime/data/worktime.sqlite)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    status_parser = subparsers.add_parser("status", help="show whether a session is running")
    status_parser.add_argument("--json", action="store_true", help="print JSON")

    subparsers.add_parser("start", help="start tracking time")
    subparsers.add_parser("stop", help="stop tracking time")

    report_parser = subparsers.add_parser("report", help="report total work time")
    report_parser.add_argument(
        "--date",
        type=parse_day,
        default=None,
        help="day to report, YYYY-MM-DD (default: today)",
    )
    period = report_parser.add_mutually_exclusive_group()
    period.add_argument(
        "--week",
        dest="period",
        action="store_const",
        const="week",
        help="report the week (Monday to Sunday) containing the date",
    )
    period.add_argument(
        "--month",
        dest="period",
        action="store_const",
        const="month",
        help="report the month containing the date",
    )
    report_parser.set_defaults(period="day")
    report_parser.add_argument("--json", action="store_true", help="print JSON")

    correct_parser = subparsers.add_parser("correct", help="rewrite a session's start and end time")
    correct_parser.add_argument("id", type=int, help="session id")
    correct_parser.add_argument("start", help="new start time, HH:MM")
    correct_parser.add_argument("end", help="new end time, HH:MM")

    sql_parser = subparsers.add_parser("sql", help="run a raw SQL statement against the store")
    sql_parser.add_argument("statement", nargs="+", help="SQL statement")

    subparsers.add_parser("check", help="validate stored sessions")

    return parser


def configure_logging(verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        raw_level = os.getenv("WORKTIME_LOG_LEVEL", "WARNING").strip().upper()
        level = getattr(logging, raw_level, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def default_clock() -> Clock:
    name = os.getenv("WORKTIME_TZ", "").strip()
    if not name:
        return RealClock()
    try:
        return RealClock(ZoneInfo(name))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise WorktimeError(f"unknown time zone {name!r}") from exc


def main(
    argv: list[str] | None = None,
    clock: Clock | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    err = stderr or sys.stderr
    db_path = Path(args.db) if args.db else default_db_path()
    try:
        db = WorktimeDB(db_path)
        resolved_clock = clock or default_clock()
    except WorktimeError as exc:
        err.write(f"{args.command or 'worktime'} failed: {exc}\n")
        return 1
    ctx = CommandContext(db=db, clock=resolved_clock, stdout=stdout or sys.stdout, stderr=err)

    if args.command is None:
        return InteractiveMenu(ctx, parser, stdin=stdin or sys.stdin).run()

    return dispatch(ctx, args)


def dispatch(ctx: CommandContext, args: argparse.Namespace) -> int:
    handlers = {
        "status": lambda: command_status(ctx, as_json=args.json),
        "start": lambda: command_start(ctx),
        "stop": lambda: command_stop(ctx),
        "report": lambda: command_report(
            ctx,
            day=args.date,
            period=args.period,
            as_json=args.json,
        ),
        "correct": lambda: command_correct(ctx, args.id, args.start, args.end),
        "sql": lambda: command_sql(ctx, " ".join(args.statement)),
        "check": lambda: command_check(ctx),
    }
    return run_command(ctx, args.command, handlers[args.command])


if __name__ == "__main__":
    raise SystemExit(main())
