"""Domain enumerations for sessions, conversation roles and subject commands."""

from enum import StrEnum


class SessionMode(StrEnum):
    """Plan-mode states of a conversation session."""

    NORMAL = "normal"
    PLAN_PENDING = "plan_pending"


class MessageRole(StrEnum):
    """Author of an entry in a session's conversation log."""

    USER = "user"
    AGENT = "agent"


class Command(StrEnum):
    """Bracketed control commands recognised in an email subject.

    ``NONE`` is the explicit "no command" value so callers never have to
    special-case a missing result.
    """

    MERGE = "merge"
    CLOSE = "close"
    STATUS = "status"
    PLAN = "plan"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    NONE = "none"

    @property
    def token(self) -> str:
        """The literal subject token, e.g. ``[merge]``."""
        return f"[{self.value}]"

    @property
    def is_pr_operation(self) -> bool:
        """True for commands delegated to the pull-request collaborator."""
        return self in PR_COMMANDS


# Commands that operate on the session's open pull request.
PR_COMMANDS: frozenset[Command] = frozenset({Command.MERGE, Command.CLOSE, Command.STATUS})
