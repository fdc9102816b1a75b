from __future__ import annotations

import unittest

from worktime.clock import FakeClock
from worktime.db import WorktimeDB
from worktime.errors import AlreadyTrackingError, ConflictError, NotTrackingError
from worktime.models import ClosedSession, OpenSession
from worktime.tests.test_helpers import at, local_tmp_dir
from worktime.tracker import Idle, Tracker, Tracking


class TestTracker(unittest.TestCase):
    def test_initial_state_is_idle(self) -> None:
        with local_tmp_dir() as tmp:
            tracker = Tracker(WorktimeDB(tmp / "worktime.sqlite"), FakeClock(at(1, 9)))
            self.assertEqual(tracker.status(), Idle())

    def test_start_stop_alternates_status(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(at(1, 9))
            tracker = Tracker(WorktimeDB(tmp / "worktime.sqlite"), clock)

            for _ in range(3):
                started = tracker.start()
                self.assertEqual(tracker.status(), Tracking(session=started))
                clock.advance(minutes=20)

                stopped = tracker.stop()
                self.assertEqual(stopped.id, started.id)
                self.assertEqual(stopped.duration_sec, 20 * 60)
                self.assertEqual(tracker.status(), Idle())
                clock.advance(minutes=10)

            self.assertEqual(len(tracker.db.list_all_sessions()), 3)

    def test_start_while_tracking_fails_without_state_change(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(at(1, 9))
            db = WorktimeDB(tmp / "worktime.sqlite")
            tracker = Tracker(db, clock)
            started = tracker.start()

            clock.advance(minutes=5)
            with self.assertRaises(AlreadyTrackingError) as exc:
                tracker.start()

            self.assertIsInstance(exc.exception, ConflictError)
            self.assertEqual(exc.exception.reason, "already_tracking")
            self.assertEqual(tracker.status(), Tracking(session=started))
            self.assertEqual(db.list_all_sessions(), [OpenSession(id=started.id, start=at(1, 9))])

    def test_stop_while_idle_fails(self) -> None:
        with local_tmp_dir() as tmp:
            tracker = Tracker(WorktimeDB(tmp / "worktime.sqlite"), FakeClock(at(1, 9)))

            with self.assertRaises(NotTrackingError):
                tracker.stop()
            self.assertEqual(tracker.status(), Idle())
            self.assertEqual(tracker.db.list_all_sessions(), [])

    def test_state_survives_new_process(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "worktime.sqlite"
            clock = FakeClock(at(1, 9))
            started = Tracker(WorktimeDB(db_path), clock).start()

            clock.advance(minutes=30)
            later = Tracker(WorktimeDB(db_path), clock)
            self.assertEqual(later.status(), Tracking(session=started))
            self.assertEqual(
                later.stop(),
                ClosedSession(id=started.id, start=at(1, 9), end=at(1, 9, 30)),
            )


if __name__ == "__main__":
    unittest.main()
