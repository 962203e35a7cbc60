"""Tests for SessionStore.

Uses an in-memory SQLite database for isolation and speed.
"""

from __future__ import annotations

import sqlite3
import time

import pytest

from mailagent.domain.types import MessageRole, SessionMode
from mailagent.session.hashing import branch_name_for, session_key
from mailagent.session.schema import init_session_tables
from mailagent.session.store import SessionStore


class TestCreate:
    def test_new_session_defaults(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")

        assert session.subject_hash == session_key("Add dark mode")
        assert session.project == "widget"
        assert session.branch_name == branch_name_for(session.id)
        assert session.mode is SessionMode.NORMAL
        assert session.pending_plan is None
        assert session.agent_session_id is None
        assert session.pr_number is None
        assert not session.has_pull_request

    def test_duplicate_subject_hash_rejected(self, store: SessionStore) -> None:
        store.create("Add dark mode", "widget")
        with pytest.raises(sqlite3.IntegrityError):
            store.create("Re: Add dark mode", "widget")


class TestGetOrCreate:
    def test_first_message_creates(self, store: SessionStore) -> None:
        session, created = store.get_or_create("Add dark mode", "widget")
        assert created is True
        assert store.get(session.id) == session

    def test_reply_reuses_session_and_bumps_activity(self, store: SessionStore) -> None:
        first, _ = store.get_or_create("Add dark mode", "widget")
        time.sleep(0.001)
        second, created = store.get_or_create("Re: Add dark mode [plan]", "widget")

        assert created is False
        assert second.id == first.id
        assert second.last_activity > first.last_activity
        assert second.created_at == first.created_at

    def test_lookup_by_subject_hash(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")
        assert store.get_by_subject_hash(session_key("RE: add dark mode")) == session
        assert store.get_by_subject_hash("000000000000") is None


class TestUpdate:
    def test_update_persists_fields(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")
        updated = store.update(session.id, pr_number=42, agent_session_id="tok-1")

        assert updated.pr_number == 42
        assert updated.agent_session_id == "tok-1"
        assert store.get(session.id) == updated

    def test_unknown_column_rejected(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")
        with pytest.raises(ValueError, match="subject_hash"):
            store.update(session.id, subject_hash="x")

    def test_missing_session_rejected(self, store: SessionStore) -> None:
        with pytest.raises(ValueError, match="not found"):
            store.update("missing", pr_number=1)


class TestPlanMode:
    def test_enter_and_exit(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")

        pending = store.enter_plan_mode(session.id, "1. Add toggle")
        assert pending.mode is SessionMode.PLAN_PENDING
        assert pending.pending_plan == "1. Add toggle"

        revised = store.enter_plan_mode(session.id, "1. Add toggle\n2. Persist choice")
        assert revised.pending_plan == "1. Add toggle\n2. Persist choice"

        cleared = store.exit_plan_mode(session.id)
        assert cleared.mode is SessionMode.NORMAL
        assert cleared.pending_plan is None


class TestMessages:
    def test_messages_returned_in_order(self, store: SessionStore) -> None:
        session = store.create("Add dark mode", "widget")
        store.add_message(session.id, MessageRole.USER, "Add dark mode")
        store.add_message(session.id, MessageRole.AGENT, "Done")
        store.add_message(session.id, MessageRole.USER, "Thanks")

        messages = store.get_messages(session.id)

        assert [m.role for m in messages] == [
            MessageRole.USER,
            MessageRole.AGENT,
            MessageRole.USER,
        ]
        assert [m.content for m in messages] == ["Add dark mode", "Done", "Thanks"]

    def test_messages_scoped_to_session(self, store: SessionStore) -> None:
        a = store.create("Task A", "widget")
        b = store.create("Task B", "widget")
        store.add_message(a.id, MessageRole.USER, "for a")

        assert store.get_messages(b.id) == []


def test_schema_init_is_idempotent(sessions_conn: sqlite3.Connection) -> None:
    init_session_tables(sessions_conn)
    store = SessionStore(sessions_conn)
    assert store.create("Add dark mode", "widget").mode is SessionMode.NORMAL


def test_reads_leave_connection_row_factory_alone(
    store: SessionStore, sessions_conn: sqlite3.Connection
) -> None:
    session = store.create("Add dark mode", "widget")

    assert store.get(session.id) is not None
    assert sessions_conn.row_factory is None
    assert sessions_conn.execute("SELECT 1").fetchone() == (1,)
