"""Core domain types and errors shared across the worker."""

from mailagent.domain.errors import (
    AgentError,
    CollaboratorError,
    InvalidJobPayloadError,
    InvalidTransitionError,
    MailAgentError,
    NoPullRequestError,
    PermanentJobError,
    SessionNotFoundError,
)
from mailagent.domain.types import Command, MessageRole, SessionMode

__all__ = [
    "AgentError",
    "CollaboratorError",
    "Command",
    "InvalidJobPayloadError",
    "InvalidTransitionError",
    "MailAgentError",
    "MessageRole",
    "NoPullRequestError",
    "PermanentJobError",
    "SessionMode",
    "SessionNotFoundError",
]
