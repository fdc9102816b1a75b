from __future__ import annotations

import io
import unittest

from worktime import cli
from worktime.clock import FakeClock
from worktime.commands import CommandContext
from worktime.db import WorktimeDB
from worktime.interactive import InteractiveMenu, MenuAction
from worktime.tests.test_helpers import at, local_tmp_dir
from worktime.tracker import Idle, Tracker, Tracking


class TestInteractiveMenu(unittest.TestCase):
    def _run(self, db_path, clock: FakeClock, answers: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        code = cli.main(
            ["--db", str(db_path)],
            clock=clock,
            stdin=io.StringIO(answers),
            stdout=stdout,
            stderr=stderr,
        )
        return code, stdout.getvalue(), stderr.getvalue()

    def test_no_command_opens_menu_and_starts(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "worktime.sqlite"
            clock = FakeClock(at(1, 9))

            code, out, _ = self._run(db_path, clock, "2\n")

            self.assertEqual(code, 0)
            self.assertIn("1) Status", out)
            self.assertIn("Started at 09:00", out)
            self.assertIsInstance(Tracker(WorktimeDB(db_path), clock).status(), Tracking)

    def test_stop_by_name_and_failure_code(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "worktime.sqlite"
            clock = FakeClock(at(1, 9))

            code, _, err = self._run(db_path, clock, "stop\n")
            self.assertEqual(code, 1)
            self.assertIn("stop failed: no running session found", err)

    def test_report_asks_for_kind(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "worktime.sqlite"
            clock = FakeClock(at(1, 9))
            self._run(db_path, clock, "2\n")
            clock.set(at(1, 10))

            code, out, _ = self._run(db_path, clock, "4\n3\n")

            self.assertEqual(code, 0)
            self.assertIn("What report do you want?", out)
            self.assertIn("Report for 2025-07-01 to 2025-07-31", out)
            self.assertIn("Total: 1h 00m 00s (1.00 h)", out)

    def test_correct_prompts_for_values(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "worktime.sqlite"
            clock = FakeClock(at(1, 9))
            self._run(db_path, clock, "2\n")
            clock.set(at(1, 20))

            code, out, _ = self._run(db_path, clock, "5\n1\n08:30\n17:00\n")

            self.assertEqual(code, 0)
            self.assertIn("Session 1 is now 2025-07-01 08:30 - 17:00", out)

    def test_help_prompts_again_and_quit(self) -> None:
        with local_tmp_dir() as tmp:
            code, out, err = self._run(tmp / "worktime.sqlite", FakeClock(at(1, 9)), "9\n7\n8\n")

            self.assertEqual(code, 0)
            self.assertIn("Pick a number between 1 and 8.", err)
            self.assertIn("usage: worktime", out)
            self.assertEqual(out.count("1) Status"), 2)

    def test_end_of_input_quits(self) -> None:
        with local_tmp_dir() as tmp:
            code, _, _ = self._run(tmp / "worktime.sqlite", FakeClock(at(1, 9)), "")
            self.assertEqual(code, 0)

    def test_custom_actions_are_dispatched(self) -> None:
        calls: list[str] = []

        class Ping(MenuAction):
            label = "Ping"

            def run(self, menu: InteractiveMenu) -> int | None:
                calls.append("ping")
                return 3

        with local_tmp_dir() as tmp:
            stdout = io.StringIO()
            ctx = CommandContext(
                db=WorktimeDB(tmp / "worktime.sqlite"),
                clock=FakeClock(at(1, 9)),
                stdout=stdout,
                stderr=io.StringIO(),
            )
            menu = InteractiveMenu(ctx, cli.build_parser(), io.StringIO("1\n"), actions=[Ping()])

            self.assertEqual(menu.run(), 3)
            self.assertEqual(calls, ["ping"])
            self.assertEqual(ctx.tracker.status(), Idle())


if __name__ == "__main__":
    unittest.main()
