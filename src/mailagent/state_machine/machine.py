"""SessionStateMachine class validating plan-mode transitions."""

from __future__ import annotations

from mailagent.domain.errors import InvalidTransitionError
from mailagent.domain.types import SessionMode
from mailagent.state_machine.transitions import TRANSITIONS


class SessionStateMachine:
    """Finite state machine governing a session's plan mode.

    Sessions have no terminal mode: they persist indefinitely and only move
    between ``normal`` and ``plan_pending``.

    Usage::

        sm = SessionStateMachine()
        sm.trigger("request_plan")   # -> PLAN_PENDING
        sm.trigger("revise_plan")    # -> PLAN_PENDING
        sm.trigger("approve_plan")   # -> NORMAL
    """

    def __init__(self, initial_mode: SessionMode = SessionMode.NORMAL) -> None:
        self._mode: SessionMode = initial_mode

    @classmethod
    def from_snapshot(cls, mode: SessionMode) -> SessionStateMachine:
        """Reconstruct a machine at a persisted *mode* without replaying events."""
        return cls(initial_mode=mode)

    @property
    def mode(self) -> SessionMode:
        """Return the current session mode."""
        return self._mode

    def trigger(self, event: str) -> SessionMode:
        """Apply an event to the current mode and transition.

        Args:
            event: The event string (e.g. ``"request_plan"``).

        Returns:
            The new mode after the transition.

        Raises:
            InvalidTransitionError: If the event is not valid in the current mode.
        """
        key = (self._mode, event)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(self._mode, event)

        self._mode = TRANSITIONS[key]
        return self._mode
