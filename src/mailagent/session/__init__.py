"""Conversation session persistence.

Provides SQLite-backed storage for email conversation sessions and their
append-only message log, plus the subject hashing that keys them.
"""

from mailagent.session.hashing import (
    branch_name_for,
    generate_session_id,
    hash_subject,
    normalize_subject,
    session_key,
)
from mailagent.session.models import Session, SessionMessage
from mailagent.session.schema import init_session_db, init_session_tables
from mailagent.session.store import SessionStore

__all__ = [
    "Session",
    "SessionMessage",
    "SessionStore",
    "branch_name_for",
    "generate_session_id",
    "hash_subject",
    "init_session_db",
    "init_session_tables",
    "normalize_subject",
    "session_key",
]
