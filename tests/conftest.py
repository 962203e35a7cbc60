"""Shared pytest fixtures for the mail agent test suite."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from typing import Any

import fakeredis
import pytest

from mailagent.jobs.models import EmailJob
from mailagent.jobs.queue import JobQueue
from mailagent.session.schema import init_session_tables
from mailagent.session.store import SessionStore

FIXED_NOW_MS = 1_700_000_000_000


@pytest.fixture
def sessions_conn() -> sqlite3.Connection:
    """In-memory SQLite connection with the session tables created."""
    connection = sqlite3.connect(":memory:")
    init_session_tables(connection)
    return connection


@pytest.fixture
def store(sessions_conn: sqlite3.Connection) -> SessionStore:
    return SessionStore(sessions_conn)


@pytest.fixture
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def clock() -> dict[str, int]:
    """Mutable clock; set ``clock["now"]`` to move time."""
    return {"now": FIXED_NOW_MS}


@pytest.fixture
def dead_letters() -> list[Any]:
    """Envelopes passed to the queue's dead-letter callback."""
    return []


@pytest.fixture
def queue(
    redis_client: fakeredis.FakeRedis, clock: dict[str, int], dead_letters: list[Any]
) -> JobQueue:
    return JobQueue(
        redis_client,
        "test:",
        on_dead_letter=dead_letters.append,
        clock=lambda: clock["now"],
    )


@pytest.fixture
def make_job() -> Callable[..., EmailJob]:
    """Factory for ``EmailJob`` with sensible defaults."""

    def _make(**overrides: Any) -> EmailJob:
        fields: dict[str, Any] = {
            "id": "job-1",
            "session_id": "sess-1",
            "project": "widget",
            "prompt": "Please add dark mode",
            "reply_to": "dev@example.com",
            "original_subject": "Add dark mode",
            "message_id": "<msg-1@example.com>",
        }
        fields.update(overrides)
        return EmailJob(**fields)

    return _make
