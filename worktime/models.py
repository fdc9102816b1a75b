from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from .errors import InvalidRangeError


@dataclass(frozen=True)
class OpenSession:
    id: int
    start: datetime

    @property
    def end(self) -> None:
        return None

    @property
    def is_open(self) -> bool:
        return True


@dataclass(frozen=True)
class ClosedSession:
    id: int
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        validate_range(self.start, self.end)

    @property
    def is_open(self) -> bool:
        return False

    @property
    def duration_sec(self) -> int:
        return int((self.end - self.start).total_seconds())


Session = Union[OpenSession, ClosedSession]


def validate_range(start: datetime, end: datetime) -> None:
    if end < start:
        raise InvalidRangeError(
            f"end {end.isoformat()} is before start {start.isoformat()}"
        )


def effective_end(session: Session, now: datetime) -> datetime:
    """End of the session, or ``now`` while it is still running."""
    if isinstance(session, ClosedSession):
        return session.end
    return now


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime | None,
) -> bool:
    """Half-open interval test; ``b_end=None`` means b never ends."""
    if a_end <= a_start:
        return False
    if b_end is None:
        return b_start < a_end
    if b_end <= b_start:
        return False
    return a_start < b_end and b_start < a_end
