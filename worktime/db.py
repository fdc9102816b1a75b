from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import sqlite3
from typing import Iterator

from .errors import (
    AlreadyClosedError,
    ConflictError,
    InvalidRangeError,
    NotFoundError,
    StoreError,
)
from .models import ClosedSession, OpenSession, Session, validate_range

logger = logging.getLogger(__name__)

_TEXT_FORMAT = "%Y-%m-%dT%H:%M:%S"
_COLUMNS = "id, start_time, end_time"


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime(_TEXT_FORMAT)


def _from_utc_text(text: str) -> datetime:
    value = datetime.strptime(text, _TEXT_FORMAT)
    # Range queries compare the stored text, so only the canonical spelling sorts correctly.
    if value.strftime(_TEXT_FORMAT) != text:
        raise ValueError(f"{text!r} is not in {_TEXT_FORMAT} form")
    return value.replace(tzinfo=timezone.utc)


def _row_to_session(row: sqlite3.Row) -> Session:
    session_id = int(row["id"])
    try:
        start = _from_utc_text(str(row["start_time"]))
        end = None if row["end_time"] is None else _from_utc_text(str(row["end_time"]))
    except (TypeError, ValueError) as exc:
        raise StoreError(f"session {session_id} has a malformed timestamp: {exc}") from exc
    if end is None:
        return OpenSession(id=session_id, start=start)
    try:
        return ClosedSession(id=session_id, start=start, end=end)
    except InvalidRangeError as exc:
        raise StoreError(f"session {session_id} ends before it starts") from exc


@dataclass(frozen=True)
class RawResult:
    columns: list[str]
    rows: list[tuple[object, ...]]
    rowcount: int


class WorktimeDB:
    def __init__(self, db_path: Path, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("WORKTIME_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.init_schema()
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"cannot open {self.db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    CHECK (end_time IS NULL OR end_time >= start_time)
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_sessions_start_time
                ON sessions(start_time)
                """
            )
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_sessions_single_open
                ON sessions((end_time IS NULL))
                WHERE end_time IS NULL
                """
            )

    def insert_open(self, start: datetime) -> int:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM sessions WHERE end_time IS NULL LIMIT 1"
            ).fetchone()
            if row is not None:
                raise ConflictError(f"session {row['id']} is still open", reason="open_exists")
            try:
                cur = conn.execute(
                    "INSERT INTO sessions (start_time, end_time) VALUES (?, NULL)",
                    (_to_utc_text(start),),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("an open session already exists", reason="open_exists") from exc
            session_id = int(cur.lastrowid)
        logger.debug("opened session %s at %s", session_id, start.isoformat())
        return session_id

    def close(self, session_id: int, end: datetime) -> None:
        with self._transaction() as conn:
            current = self._fetch(conn, session_id)
            if isinstance(current, ClosedSession):
                raise AlreadyClosedError(f"session {session_id} is already closed")
            validate_range(current.start, end)
            conn.execute(
                "UPDATE sessions SET end_time = ? WHERE id = ?",
                (_to_utc_text(end), session_id),
            )
        logger.debug("closed session %s at %s", session_id, end.isoformat())

    def update(self, session_id: int, new_start: datetime, new_end: datetime) -> None:
        with self._transaction() as conn:
            self._fetch(conn, session_id)
            validate_range(new_start, new_end)
            conn.execute(
                "UPDATE sessions SET start_time = ?, end_time = ? WHERE id = ?",
                (_to_utc_text(new_start), _to_utc_text(new_end), session_id),
            )
        logger.debug(
            "updated session %s to %s - %s",
            session_id,
            new_start.isoformat(),
            new_end.isoformat(),
        )

    def find_open(self) -> Session | None:
        sessions = self._read_sessions(
            f"SELECT {_COLUMNS} FROM sessions WHERE end_time IS NULL ORDER BY start_time DESC",
            [],
        )
        if len(sessions) > 1:
            raise ConflictError(
                f"{len(sessions)} sessions are open at once; run `worktime check`",
                reason="multiple_open",
            )
        return sessions[0] if sessions else None

    def find_by_id(self, session_id: int) -> Session | None:
        sessions = self._read_sessions(
            f"SELECT {_COLUMNS} FROM sessions WHERE id = ?",
            [session_id],
        )
        return sessions[0] if sessions else None

    def find_in_range(self, range_start: datetime, range_end: datetime) -> list[Session]:
        start_text = _to_utc_text(range_start)
        query = (
            f"SELECT {_COLUMNS} FROM sessions "
            "WHERE start_time < ? "
            "AND (end_time IS NULL OR end_time > ? OR start_time >= ?) "
            "ORDER BY start_time ASC, id ASC"
        )
        return self._read_sessions(query, [_to_utc_text(range_end), start_text, start_text])

    def list_all_sessions(self) -> list[Session]:
        return self._read_sessions(
            f"SELECT {_COLUMNS} FROM sessions ORDER BY start_time ASC, id ASC",
            [],
        )

    def execute_raw(self, statement: str) -> RawResult:
        logger.debug("executing raw statement: %s", statement)
        try:
            with self._transaction() as conn:
                cur = conn.execute(statement)
                rows = [tuple(row) for row in cur.fetchall()]
                columns = [item[0] for item in cur.description or []]
                rowcount = cur.rowcount
        except (sqlite3.Error, sqlite3.Warning) as exc:
            raise StoreError(str(exc)) from exc
        return RawResult(columns=columns, rows=rows, rowcount=rowcount)

    def find_violations(self) -> list[str]:
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM sessions ORDER BY start_time ASC, id ASC"
            ).fetchall()

        problems: list[str] = []
        parsed: list[tuple[int, datetime, datetime | None]] = []
        for row in rows:
            session_id = int(row["id"])
            try:
                start = _from_utc_text(str(row["start_time"]))
                end = None if row["end_time"] is None else _from_utc_text(str(row["end_time"]))
            except (TypeError, ValueError):
                problems.append(f"session {session_id} has a malformed timestamp")
                continue
            if end is not None and end < start:
                problems.append(f"session {session_id} ends before it starts")
                continue
            parsed.append((session_id, start, end))

        open_ids = [session_id for session_id, _, end in parsed if end is None]
        if len(open_ids) > 1:
            problems.append(f"sessions {', '.join(map(str, open_ids))} are open at the same time")

        parsed.sort(key=lambda item: (item[1], item[0]))
        latest: tuple[int, datetime | None] | None = None
        for session_id, start, end in parsed:
            if end is not None and end == start:
                continue
            if latest is not None:
                latest_id, latest_end = latest
                if latest_end is None or start < latest_end:
                    problems.append(f"session {session_id} overlaps session {latest_id}")
            if latest is None or latest[1] is not None and (end is None or end > latest[1]):
                latest = (session_id, end)
        return problems

    def _fetch(self, conn: sqlite3.Connection, session_id: int) -> Session:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(session_id)
        return _row_to_session(row)

    def _read_sessions(self, query: str, params: list[object]) -> list[Session]:
        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_session(row) for row in rows]


def default_db_path() -> Path:
    configured = os.getenv("WORKTIME_DB", "").strip()
    if configured:
        return Path(configured).expanduser()
    return Path(__file__).resolve().parent / "data" / "worktime.sqlite"
