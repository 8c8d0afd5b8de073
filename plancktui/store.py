"""Persistent session records kept in an SQLite database."""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

TERMINAL_STATUSES = frozenset({"completed", "failed", "canceled"})

_SELECT_COLUMNS = """
    id, file_path, status, started_at, ended_at, exit_code,
    COALESCE(agent_key, ''), COALESCE(agent_label, ''),
    COALESCE(custom_title, ''), COALESCE(tmux_session_name, ''),
    COALESCE(backend_type, ''), COALESCE(work_dir, ''),
    COALESCE(command, ''), COALESCE(args, '[]')
"""

_BASE_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        file_path TEXT NOT NULL,
        status TEXT DEFAULT 'running',
        started_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        ended_at DATETIME,
        exit_code INTEGER
    )""",
    "CREATE INDEX IF NOT EXISTS idx_sessions_status ON sessions(status)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_file_path ON sessions(file_path)",
)

_RECOVERY_COLUMNS = (
    ("agent_key", "TEXT DEFAULT ''"),
    ("agent_label", "TEXT DEFAULT ''"),
    ("custom_title", "TEXT DEFAULT ''"),
    ("tmux_session_name", "TEXT DEFAULT ''"),
    ("backend_type", "TEXT DEFAULT ''"),
    ("work_dir", "TEXT DEFAULT ''"),
    ("command", "TEXT DEFAULT ''"),
    ("args", "TEXT DEFAULT '[]'"),
)

_OLD_TABLES = ("execution_runs", "decisions", "sessions", "plan_meta")


class StoreError(Exception):
    """Raised when the session store cannot complete an operation."""


@dataclass
class Session:
    """A session record as kept in the database."""

    id: str
    file_path: str
    status: str = "running"
    started_at: datetime | None = field(default_factory=datetime.now)
    ended_at: datetime | None = None
    exit_code: int | None = None
    agent_key: str = ""
    agent_label: str = ""
    custom_title: str = ""
    tmux_session_name: str = ""
    backend_type: str = ""
    work_dir: str = ""
    command: str = ""
    args: str = ""


def _format_time(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat(sep=" ")


def _parse_time(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _row_to_session(row: tuple) -> Session:
    return Session(
        id=row[0],
        file_path=row[1],
        status=row[2] or "",
        started_at=_parse_time(row[3]),
        ended_at=_parse_time(row[4]),
        exit_code=row[5],
        agent_key=row[6],
        agent_label=row[7],
        custom_title=row[8],
        tmux_session_name=row[9],
        backend_type=row[10],
        work_dir=row[11],
        command=row[12],
        args=row[13],
    )


class Store:
    """Session state persisted in SQLite; usable as a context manager."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"create store directory: {exc}") from exc

        try:
            self._db = sqlite3.connect(
                str(self.path), isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as exc:
            raise StoreError(f"open database: {exc}") from exc

        self._lock = threading.Lock()
        try:
            self._pragma("PRAGMA journal_mode=WAL", "enable WAL mode")
            self._pragma("PRAGMA foreign_keys=ON", "enable foreign keys")
            self._migrate()
        except StoreError:
            self._db.close()
            raise

    def _pragma(self, statement: str, what: str) -> None:
        try:
            self._db.execute(statement)
        except sqlite3.Error as exc:
            raise StoreError(f"{what}: {exc}") from exc

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- migrations -------------------------------------------------------

    def _column_names(self, table: str) -> list[str]:
        try:
            rows = self._db.execute(f"PRAGMA table_info({table})").fetchall()
        except sqlite3.Error:
            return []
        return [row[1] for row in rows]

    def _migrate(self) -> None:
        try:
            self._migrate_from_old_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"migrate database: migrate from old schema: {exc}") from exc

        for statement in _BASE_SCHEMA:
            try:
                self._db.execute(statement)
            except sqlite3.Error as exc:
                raise StoreError(f"migrate database: execute migration: {exc}") from exc

        existing = set(self._column_names("sessions"))
        for name, definition in _RECOVERY_COLUMNS:
            if name in existing:
                continue
            try:
                self._db.execute(f"ALTER TABLE sessions ADD COLUMN {name} {definition}")
            except sqlite3.Error as exc:
                raise StoreError(f"migrate database: add column {name}: {exc}") from exc

    def _migrate_from_old_schema(self) -> None:
        columns = self._column_names("sessions")
        if not any(name in ("plan_id", "node_path") for name in columns):
            return
        for table in _OLD_TABLES:
            self._db.execute(f"DROP TABLE IF EXISTS {table}")

    # -- queries ----------------------------------------------------------

    def _execute(self, sql: str, params: Iterable[object] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._db.execute(sql, tuple(params))
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    def save_session(self, session: Session) -> None:
        """Insert a session, or update the mutable fields of an existing one."""
        self._execute(
            """
            INSERT INTO sessions (id, file_path, status, started_at, ended_at, exit_code,
                agent_key, agent_label, custom_title, tmux_session_name, backend_type,
                work_dir, command, args)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                ended_at = excluded.ended_at,
                exit_code = excluded.exit_code,
                custom_title = excluded.custom_title,
                tmux_session_name = excluded.tmux_session_name
            """,
            (
                session.id,
                session.file_path,
                session.status,
                _format_time(session.started_at),
                _format_time(session.ended_at),
                session.exit_code,
                session.agent_key,
                session.agent_label,
                session.custom_title,
                session.tmux_session_name,
                session.backend_type,
                session.work_dir,
                session.command,
                session.args,
            ),
        )

    def get_session(self, session_id: str) -> Session | None:
        """Return the session with the given id, or None if there is none."""
        row = self._execute(
            f"SELECT {_SELECT_COLUMNS} FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        return None if row is None else _row_to_session(row)

    def list_sessions(self, status: str = "") -> list[Session]:
        """Return sessions ordered by start time, optionally filtered by status."""
        query = f"SELECT {_SELECT_COLUMNS} FROM sessions WHERE 1=1"
        params: list[object] = []
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY started_at ASC"
        return [_row_to_session(row) for row in self._execute(query, params).fetchall()]

    def list_active_sessions(self) -> list[Session]:
        """Return all running sessions."""
        return self.list_sessions("running")

    def update_session_status(
        self, session_id: str, status: str, exit_code: int | None = None
    ) -> None:
        """Set a session's status; terminal statuses also record the end time."""
        ended_at = datetime.now() if status in TERMINAL_STATUSES else None
        self._execute(
            "UPDATE sessions SET status = ?, ended_at = ?, exit_code = ? WHERE id = ?",
            (status, _format_time(ended_at), exit_code, session_id),
        )

    def update_session_title(self, session_id: str, title: str) -> None:
        """Set only the custom title of a session."""
        self._execute(
            "UPDATE sessions SET custom_title = ? WHERE id = ?", (title, session_id)
        )

    def delete_session(self, session_id: str) -> None:
        """Delete a session."""
        self._execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    def cleanup_old_sessions(self, older_than: timedelta) -> None:
        """Delete finished sessions that started before now minus ``older_than``."""
        cutoff = datetime.now() - older_than
        self._execute(
            "DELETE FROM sessions WHERE status != 'running' AND started_at < ?",
            (_format_time(cutoff),),
        )


def encode_args(args: Iterable[str] | None) -> str:
    """Serialise command arguments to JSON for storage."""
    if args is None:
        return "null"
    try:
        return json.dumps(list(args))
    except (TypeError, ValueError):
        return "[]"


def decode_args(text: str) -> list[str] | None:
    """Deserialise stored JSON arguments; empty or invalid data gives None."""
    if text in ("", "[]"):
        return None
    try:
        value = json.loads(text)
    except ValueError:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value