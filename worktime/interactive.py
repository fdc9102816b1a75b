from __future__ import annotations

import argparse
from typing import TextIO

from .commands import (
    CommandContext,
    command_correct,
    command_report,
    command_sql,
    command_start,
    command_status,
    command_stop,
    run_command,
)


class MenuAction:
    """One entry of the guided menu; ``run`` returns an exit code or None to prompt again."""

    label = ""
    command = ""

    def run(self, menu: InteractiveMenu) -> int | None:
        raise NotImplementedError


class StatusAction(MenuAction):
    label = "Status"
    command = "status"

    def run(self, menu: InteractiveMenu) -> int | None:
        return run_command(menu.ctx, self.command, lambda: command_status(menu.ctx))


class StartAction(MenuAction):
    label = "Start"
    command = "start"

    def run(self, menu: InteractiveMenu) -> int | None:
        return run_command(menu.ctx, self.command, lambda: command_start(menu.ctx))


class StopAction(MenuAction):
    label = "Stop"
    command = "stop"

    def run(self, menu: InteractiveMenu) -> int | None:
        return run_command(menu.ctx, self.command, lambda: command_stop(menu.ctx))


class ReportAction(MenuAction):
    label = "Report"
    command = "report"
    periods = [("Today", "day"), ("This week", "week"), ("This month", "month")]

    def run(self, menu: InteractiveMenu) -> int | None:
        choice = menu.choose("What report do you want?", [label for label, _ in self.periods])
        if choice is None:
            return 0
        period = self.periods[choice][1]
        return run_command(menu.ctx, self.command, lambda: command_report(menu.ctx, period=period))


class CorrectAction(MenuAction):
    label = "Correct"
    command = "correct"

    def run(self, menu: InteractiveMenu) -> int | None:
        raw_id = menu.ask("Session id")
        if raw_id is None:
            return 0
        try:
            session_id = int(raw_id)
        except ValueError:
            menu.ctx.warn(f"correct failed: invalid session id {raw_id!r}")
            return 1
        start = menu.ask("New start (HH:MM)")
        if start is None:
            return 0
        end = menu.ask("New end (HH:MM)")
        if end is None:
            return 0
        return run_command(
            menu.ctx,
            self.command,
            lambda: command_correct(menu.ctx, session_id, start, end),
        )


class SqlAction(MenuAction):
    label = "Sql"
    command = "sql"

    def run(self, menu: InteractiveMenu) -> int | None:
        statement = menu.ask("SQL")
        if not statement:
            return 0
        return run_command(menu.ctx, self.command, lambda: command_sql(menu.ctx, statement))


class HelpAction(MenuAction):
    label = "Help"

    def run(self, menu: InteractiveMenu) -> int | None:
        menu.ctx.say(menu.parser.format_help())
        return None


class QuitAction(MenuAction):
    label = "Quit"

    def run(self, menu: InteractiveMenu) -> int | None:
        return 0


DEFAULT_ACTIONS: list[MenuAction] = [
    StatusAction(),
    StartAction(),
    StopAction(),
    ReportAction(),
    CorrectAction(),
    SqlAction(),
    HelpAction(),
    QuitAction(),
]


class InteractiveMenu:
    def __init__(
        self,
        ctx: CommandContext,
        parser: argparse.ArgumentParser,
        stdin: TextIO,
        actions: list[MenuAction] | None = None,
    ) -> None:
        self.ctx = ctx
        self.parser = parser
        self.stdin = stdin
        self.actions = actions or DEFAULT_ACTIONS

    def run(self) -> int:
        while True:
            choice = self.choose("What do you want to do?", [item.label for item in self.actions])
            if choice is None:
                return 0
            result = self.actions[choice].run(self)
            if result is not None:
                return result

    def choose(self, prompt: str, labels: list[str]) -> int | None:
        """Numbered selection; returns None once input is exhausted."""
        for index, label in enumerate(labels, start=1):
            self.ctx.say(f"  {index}) {label}")
        while True:
            answer = self.ask(prompt)
            if answer is None:
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(labels):
                return int(answer) - 1
            lowered = answer.lower()
            for index, label in enumerate(labels):
                if label.lower() == lowered:
                    return index
            self.ctx.warn(f"Pick a number between 1 and {len(labels)}.")

    def ask(self, prompt: str) -> str | None:
        self.ctx.stdout.write(f"{prompt} ")
        self.ctx.stdout.flush()
        line = self.stdin.readline()
        if not line:
            self.ctx.say()
            return None
        return line.strip()
