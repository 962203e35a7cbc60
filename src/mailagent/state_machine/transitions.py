"""Transition map and intent resolution for conversation sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from mailagent.commands.intent import (
    detect_approval,
    detect_cancellation,
    detect_plan_trigger,
)
from mailagent.commands.parser import parse_command
from mailagent.domain.types import Command, SessionMode


class SessionEvent(StrEnum):
    """Events an inbound email can raise against a session."""

    CANCEL_PLAN = "cancel_plan"
    APPROVE_PLAN = "approve_plan"
    REVISE_PLAN = "revise_plan"
    PR_COMMAND = "pr_command"
    REQUEST_PLAN = "request_plan"
    EXECUTE = "execute"
    NO_PENDING_PLAN = "no_pending_plan"


# All valid (current_mode, event) -> next_mode mappings.
# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[SessionMode, str], SessionMode] = {
    # From PLAN_PENDING
    (SessionMode.PLAN_PENDING, SessionEvent.CANCEL_PLAN): SessionMode.NORMAL,
    (SessionMode.PLAN_PENDING, SessionEvent.APPROVE_PLAN): SessionMode.NORMAL,
    (SessionMode.PLAN_PENDING, SessionEvent.REVISE_PLAN): SessionMode.PLAN_PENDING,
    # From NORMAL
    (SessionMode.NORMAL, SessionEvent.PR_COMMAND): SessionMode.NORMAL,
    (SessionMode.NORMAL, SessionEvent.REQUEST_PLAN): SessionMode.PLAN_PENDING,
    (SessionMode.NORMAL, SessionEvent.EXECUTE): SessionMode.NORMAL,
    (SessionMode.NORMAL, SessionEvent.NO_PENDING_PLAN): SessionMode.NORMAL,
}


@dataclass(frozen=True)
class Decision:
    """What to do with one inbound email.

    Attributes:
        event: The event to apply to the session.
        command: The subject command that was parsed (``Command.NONE`` if none).
        next_mode: The session mode after the event.
    """

    event: SessionEvent
    command: Command
    next_mode: SessionMode


def resolve_event(mode: SessionMode, subject: str, body: str) -> Decision:
    """Decide which event an email raises, in precedence order.

    In ``plan_pending``: cancellation, then approval, and anything else is a
    revision request.  In ``normal``: a pull-request command, then a plan
    request, then plain execution.  A ``[confirm]`` or ``[cancel]`` token with
    no plan pending raises ``NO_PENDING_PLAN`` rather than running the agent.

    Args:
        mode: The session's current mode.
        subject: The email subject line.
        body: The email body text.

    Returns:
        The ``Decision`` for this email.
    """
    command = parse_command(subject)

    if mode is SessionMode.PLAN_PENDING:
        if detect_cancellation(subject, body):
            event = SessionEvent.CANCEL_PLAN
        elif detect_approval(subject, body):
            event = SessionEvent.APPROVE_PLAN
        else:
            event = SessionEvent.REVISE_PLAN
    elif command.is_pr_operation:
        event = SessionEvent.PR_COMMAND
    elif command in (Command.CONFIRM, Command.CANCEL):
        event = SessionEvent.NO_PENDING_PLAN
    elif detect_plan_trigger(subject, body):
        event = SessionEvent.REQUEST_PLAN
    else:
        event = SessionEvent.EXECUTE

    return Decision(event=event, command=command, next_mode=TRANSITIONS[(mode, event)])
