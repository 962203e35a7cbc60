"""SQLite schema for session persistence."""

from __future__ import annotations

import sqlite3
from pathlib import Path


def init_session_tables(conn: sqlite3.Connection) -> None:
    """Create the ``sessions`` and ``session_messages`` tables if missing.

    ``sessions.subject_hash`` is unique: one session per normalized subject.
    ``mode`` defaults to ``normal`` and ``pending_plan`` is only set while the
    session awaits plan approval.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            subject_hash TEXT UNIQUE NOT NULL,
            project TEXT NOT NULL,
            branch_name TEXT NOT NULL,
            agent_session_id TEXT,
            pr_number INTEGER,
            mode TEXT NOT NULL DEFAULT 'normal',
            pending_plan TEXT,
            created_at TEXT NOT NULL,
            last_activity TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS session_messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id TEXT NOT NULL REFERENCES sessions (id),
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_session_messages_session "
        "ON session_messages (session_id)"
    )

    conn.commit()


def init_session_db(db_path: Path) -> sqlite3.Connection:
    """Open the session database in WAL mode and ensure the schema exists.

    The connection is shared between the worker thread and the readiness
    probe, hence ``check_same_thread=False``.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    init_session_tables(conn)
    return conn
