"""Tests for the SessionStateMachine class."""

import pytest

from mailagent.domain.errors import InvalidTransitionError
from mailagent.domain.types import SessionMode
from mailagent.state_machine.machine import SessionStateMachine
from mailagent.state_machine.transitions import SessionEvent

VALID_TRANSITIONS: list[tuple[SessionMode, str, SessionMode]] = [
    (SessionMode.PLAN_PENDING, "cancel_plan", SessionMode.NORMAL),
    (SessionMode.PLAN_PENDING, "approve_plan", SessionMode.NORMAL),
    (SessionMode.PLAN_PENDING, "revise_plan", SessionMode.PLAN_PENDING),
    (SessionMode.NORMAL, "pr_command", SessionMode.NORMAL),
    (SessionMode.NORMAL, "request_plan", SessionMode.PLAN_PENDING),
    (SessionMode.NORMAL, "execute", SessionMode.NORMAL),
    (SessionMode.NORMAL, "no_pending_plan", SessionMode.NORMAL),
]

_VALID_PAIRS = {(m, e) for m, e, _ in VALID_TRANSITIONS}

INVALID_TRANSITIONS: list[tuple[SessionMode, str]] = [
    (mode, event.value)
    for mode in SessionMode
    for event in SessionEvent
    if (mode, event.value) not in _VALID_PAIRS
]


class TestValidTransitions:
    @pytest.mark.parametrize(("from_mode", "event", "to_mode"), VALID_TRANSITIONS)
    def test_transition(self, from_mode: SessionMode, event: str, to_mode: SessionMode) -> None:
        sm = SessionStateMachine.from_snapshot(from_mode)
        assert sm.trigger(event) is to_mode
        assert sm.mode is to_mode


class TestInvalidTransitions:
    @pytest.mark.parametrize(("mode", "event"), INVALID_TRANSITIONS)
    def test_raises(self, mode: SessionMode, event: str) -> None:
        sm = SessionStateMachine.from_snapshot(mode)
        with pytest.raises(InvalidTransitionError) as exc_info:
            sm.trigger(event)
        assert exc_info.value.current_mode is mode
        assert exc_info.value.event == event
        assert sm.mode is mode

    def test_unknown_event(self) -> None:
        with pytest.raises(InvalidTransitionError):
            SessionStateMachine().trigger("explode")
