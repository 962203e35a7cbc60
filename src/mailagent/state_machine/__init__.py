"""Session plan-mode state machine with transition validation."""

from mailagent.state_machine.machine import SessionStateMachine
from mailagent.state_machine.transitions import (
    TRANSITIONS,
    Decision,
    SessionEvent,
    resolve_event,
)

__all__ = [
    "Decision",
    "SessionEvent",
    "SessionStateMachine",
    "TRANSITIONS",
    "resolve_event",
]
