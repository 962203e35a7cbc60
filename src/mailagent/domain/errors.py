"""Domain-specific exception classes for the email agent worker.

Errors are split in two families: ``PermanentJobError`` subclasses are
reported to the sender once and never retried, everything else reaching the
worker loop is treated as transient and rescheduled with backoff.
"""

from mailagent.domain.types import SessionMode


class MailAgentError(Exception):
    """Base class for all domain errors in the worker."""


class PermanentJobError(MailAgentError):
    """A failure that retrying cannot fix (validation, missing preconditions)."""


class NoPullRequestError(PermanentJobError):
    """Raised when a pull-request command arrives before any PR exists.

    Attributes:
        session_id: The session that received the command.
        command: The command that was rejected.
    """

    def __init__(self, session_id: str, command: str) -> None:
        self.session_id = session_id
        self.command = command
        super().__init__(
            "No PR exists for this session yet. "
            "Send a task email first to create a PR."
        )


class InvalidJobPayloadError(PermanentJobError):
    """Raised when a queue payload cannot be decoded into an ``EmailJob``.

    Attributes:
        payload: The raw payload that failed to decode.
    """

    def __init__(self, message: str, payload: str = "") -> None:
        self.payload = payload
        super().__init__(message)


class SessionNotFoundError(PermanentJobError):
    """Raised when a job references a session that is not in the store."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class AgentError(MailAgentError):
    """Raised when the external coding agent fails or reports an error."""


class CollaboratorError(MailAgentError):
    """Raised when a git, PR or mail collaborator command fails.

    Attributes:
        command: The command (or API name) that failed.
    """

    def __init__(self, command: str, detail: str) -> None:
        self.command = command
        self.detail = detail
        super().__init__(f"{command} failed: {detail}")


class InvalidTransitionError(MailAgentError):
    """Raised when an event is not valid for the session's current mode.

    Attributes:
        current_mode: The mode the session was in.
        event: The event that was rejected.
    """

    def __init__(self, current_mode: SessionMode, event: str) -> None:
        self.current_mode = current_mode
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in mode '{current_mode}'")
