from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Union

from .clock import Clock
from .db import WorktimeDB
from .errors import AlreadyTrackingError, NotTrackingError, StoreError
from .models import ClosedSession, OpenSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Tracking:
    session: OpenSession


Status = Union[Idle, Tracking]


class Tracker:
    """Start/stop state machine; the store is the only source of truth."""

    def __init__(self, db: WorktimeDB, clock: Clock) -> None:
        self.db = db
        self.clock = clock

    def status(self) -> Status:
        current = self.db.find_open()
        if current is None:
            return Idle()
        if not isinstance(current, OpenSession):
            raise StoreError(f"session {current.id} is not open")
        return Tracking(session=current)

    def start(self) -> OpenSession:
        current = self.db.find_open()
        if current is not None:
            raise AlreadyTrackingError(
                f"already tracking since {current.start.astimezone(self.clock.zone):%H:%M}"
            )
        session_id = self.db.insert_open(self.clock.now())
        stored = self.db.find_by_id(session_id)
        if not isinstance(stored, OpenSession):
            raise StoreError(f"session {session_id} was not stored as open")
        logger.info("started session %s", session_id)
        return stored

    def stop(self) -> ClosedSession:
        current = self.db.find_open()
        if current is None:
            raise NotTrackingError("no running session found")
        self.db.close(current.id, self.clock.now())
        stored = self.db.find_by_id(current.id)
        if not isinstance(stored, ClosedSession):
            raise StoreError(f"session {current.id} was not closed")
        logger.info("stopped session %s", current.id)
        return stored
