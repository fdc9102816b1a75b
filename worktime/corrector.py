from __future__ import annotations

from datetime import time as dtime
import logging

from .clock import Clock, day_bounds, local_datetime
from .db import WorktimeDB
from .errors import InvalidRangeError, NotFoundError, OverlapError, StoreError
from .models import ClosedSession, overlaps, validate_range

logger = logging.getLogger(__name__)


def parse_hhmm(value: str) -> dtime:
    """Parse ``H:MM`` or ``HH:MM`` into a wall-clock time."""
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts) or len(parts[1]) != 2:
        raise InvalidRangeError(f"invalid time {value!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise InvalidRangeError(f"invalid time {value!r}, expected HH:MM")
    return dtime(hours, minutes)


class Corrector:
    """Rewrites a session's clock times on the day it was recorded."""

    def __init__(self, db: WorktimeDB, clock: Clock) -> None:
        self.db = db
        self.clock = clock

    def correct(self, session_id: int, new_start_hhmm: str, new_end_hhmm: str) -> ClosedSession:
        start_clock = parse_hhmm(new_start_hhmm)
        end_clock = parse_hhmm(new_end_hhmm)

        existing = self.db.find_by_id(session_id)
        if existing is None:
            raise NotFoundError(session_id)

        now = self.clock.now()
        zone = self.clock.zone
        day = existing.start.astimezone(zone).date()
        new_start = local_datetime(day, start_clock, zone)
        new_end = local_datetime(day, end_clock, zone)
        validate_range(new_start, new_end)
        if new_end > now:
            raise InvalidRangeError(f"end {new_end.astimezone(zone):%Y-%m-%d %H:%M} lies in the future")

        # Both endpoints fall on `day`, so that day's sessions are all the new interval can touch.
        day_start, day_end = day_bounds(day, zone)
        for other in self.db.find_in_range(day_start, day_end):
            if other.id == session_id:
                continue
            if overlaps(new_start, new_end, other.start, other.end):
                raise OverlapError(session_id, other.id)

        self.db.update(session_id, new_start, new_end)
        stored = self.db.find_by_id(session_id)
        if not isinstance(stored, ClosedSession):
            raise StoreError(f"session {session_id} was not stored as closed")
        logger.info(
            "corrected session %s to %s - %s",
            session_id,
            new_start.isoformat(),
            new_end.isoformat(),
        )
        return stored
