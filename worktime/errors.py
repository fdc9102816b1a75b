from __future__ import annotations


class WorktimeError(Exception):
    """Base class for every failure the core reports to a front end."""


class ConflictError(WorktimeError):
    reason = "conflict"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class AlreadyTrackingError(ConflictError):
    reason = "already_tracking"


class NotTrackingError(ConflictError):
    reason = "not_tracking"


class AlreadyClosedError(ConflictError):
    reason = "already_closed"


class NotFoundError(WorktimeError):
    def __init__(self, session_id: int) -> None:
        super().__init__(f"session {session_id} not found")
        self.session_id = session_id


class InvalidRangeError(WorktimeError):
    pass


class OverlapError(WorktimeError):
    def __init__(self, session_id: int, other_id: int) -> None:
        super().__init__(f"session {session_id} would overlap session {other_id}")
        self.session_id = session_id
        self.other_id = other_id


class StoreError(WorktimeError):
    pass
