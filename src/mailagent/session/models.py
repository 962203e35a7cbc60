"""Pydantic v2 models for conversation sessions.

Models are frozen; the store hands out fresh snapshots after every write
instead of mutating shared instances.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from mailagent.domain.types import MessageRole, SessionMode


class Session(BaseModel):
    """One email conversation thread, keyed by its normalized-subject hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject_hash: str
    project: str
    branch_name: str
    agent_session_id: str | None = None  # continuation token for the coding agent
    pr_number: int | None = None
    mode: SessionMode = SessionMode.NORMAL
    pending_plan: str | None = None
    created_at: datetime
    last_activity: datetime

    @property
    def has_pull_request(self) -> bool:
        return self.pr_number is not None


class SessionMessage(BaseModel):
    """A single entry in a session's append-only conversation log."""

    model_config = ConfigDict(frozen=True)

    id: int
    session_id: str
    role: MessageRole
    content: str
    created_at: datetime
