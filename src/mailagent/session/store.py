"""SQLite-backed session store.

Accepts a sqlite3.Connection, uses parameterized queries exclusively, and
commits synchronously after every write.

Read-modify-write of a single session is not transactional across jobs: two
workers processing the same session concurrently race and the last write
wins.  Jobs for one session are expected to be routed to a single worker.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Any

from mailagent.domain.types import MessageRole, SessionMode
from mailagent.session.hashing import branch_name_for, generate_session_id, session_key
from mailagent.session.models import Session, SessionMessage

# Columns ``update`` may touch; everything else is fixed at creation.
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {"project", "branch_name", "agent_session_id", "pr_number", "mode", "pending_plan"}
)

_SESSION_COLUMNS = (
    "id, subject_hash, project, branch_name, agent_session_id, pr_number, "
    "mode, pending_plan, created_at, last_activity"
)


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


class SessionStore:
    """Persist and retrieve conversation sessions and their message logs."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize with an open database connection.

        Args:
            conn: An open sqlite3.Connection whose database already has the
                  session tables (see ``init_session_tables``).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def _fetch_one(self, where: str, value: str) -> Session | None:
        cursor = self._conn.cursor()
        cursor.row_factory = sqlite3.Row
        row = cursor.execute(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE {where} = ?",
            (value,),
        ).fetchone()
        return Session.model_validate(dict(row)) if row else None

    def get(self, session_id: str) -> Session | None:
        """Return the session with *session_id*, or ``None``."""
        return self._fetch_one("id", session_id)

    def _require(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            raise ValueError(f"Session {session_id} not found")
        return session

    def get_by_subject_hash(self, subject_hash: str) -> Session | None:
        """Return the session keyed by *subject_hash*, or ``None``."""
        return self._fetch_one("subject_hash", subject_hash)

    def create(self, subject: str, project: str) -> Session:
        """Insert a new ``normal``-mode session for *subject*.

        Args:
            subject: The raw email subject; it is normalized and hashed.
            project: The routing target (repository name).

        Returns:
            The newly created session.
        """
        session_id = generate_session_id()
        now = _now()
        self._conn.execute(
            """
            INSERT INTO sessions (
                id, subject_hash, project, branch_name, agent_session_id,
                pr_number, mode, pending_plan, created_at, last_activity
            ) VALUES (?, ?, ?, ?, NULL, NULL, ?, NULL, ?, ?)
            """,
            (
                session_id,
                session_key(subject),
                project,
                branch_name_for(session_id),
                SessionMode.NORMAL.value,
                now,
                now,
            ),
        )
        self._conn.commit()
        return self._require(session_id)

    def get_or_create(self, subject: str, project: str) -> tuple[Session, bool]:
        """Resolve the session for *subject*, creating it on first contact.

        An existing session has its ``last_activity`` bumped.

        Returns:
            A ``(session, created)`` tuple.
        """
        existing = self.get_by_subject_hash(session_key(subject))
        if existing is not None:
            return self.update(existing.id), False
        return self.create(subject, project), True

    def update(self, session_id: str, **changes: Any) -> Session:
        """Apply *changes* to a session and bump ``last_activity``.

        Args:
            session_id: The session to update.
            **changes: Column values keyed by column name; only names in
                ``UPDATABLE_COLUMNS`` are accepted.  Enum values are stored
                by value.

        Returns:
            The session as persisted after the update.

        Raises:
            ValueError: On an unknown column or a missing session.
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update session columns: {', '.join(sorted(unknown))}")

        assignments = ["last_activity = ?"]
        values: list[Any] = [_now()]
        for column, value in changes.items():
            assignments.append(f"{column} = ?")
            values.append(value.value if isinstance(value, SessionMode) else value)
        values.append(session_id)

        cursor = self._conn.execute(
            f"UPDATE sessions SET {', '.join(assignments)} WHERE id = ?",
            values,
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise ValueError(f"Session {session_id} not found")

        return self._require(session_id)

    def enter_plan_mode(self, session_id: str, plan: str) -> Session:
        """Store *plan* as the pending plan and switch to ``plan_pending``."""
        return self.update(session_id, mode=SessionMode.PLAN_PENDING, pending_plan=plan)

    def exit_plan_mode(self, session_id: str) -> Session:
        """Clear the pending plan and return to ``normal``."""
        return self.update(session_id, mode=SessionMode.NORMAL, pending_plan=None)

    # ------------------------------------------------------------------
    # Conversation log
    # ------------------------------------------------------------------

    def add_message(self, session_id: str, role: MessageRole, content: str) -> int:
        """Append an entry to the session's conversation log.

        Returns:
            The row ID of the new message.
        """
        cursor = self._conn.execute(
            "INSERT INTO session_messages (session_id, role, content, created_at) "
            "VALUES (?, ?, ?, ?)",
            (session_id, role.value, content, _now()),
        )
        self._conn.commit()
        return int(cursor.lastrowid or 0)

    def get_messages(self, session_id: str) -> list[SessionMessage]:
        """Return the session's conversation log in insertion order."""
        cursor = self._conn.execute(
            "SELECT id, session_id, role, content, created_at FROM session_messages "
            "WHERE session_id = ? ORDER BY id ASC",
            (session_id,),
        )
        return [
            SessionMessage(
                id=row[0],
                session_id=row[1],
                role=MessageRole(row[2]),
                content=row[3],
                created_at=row[4],
            )
            for row in cursor.fetchall()
        ]
