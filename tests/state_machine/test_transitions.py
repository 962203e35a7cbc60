"""Tests for resolve_event precedence and the transition map."""

from __future__ import annotations

import pytest

from mailagent.domain.types import Command, SessionMode
from mailagent.state_machine.transitions import (
    TRANSITIONS,
    SessionEvent,
    resolve_event,
)

NORMAL = SessionMode.NORMAL
PENDING = SessionMode.PLAN_PENDING


class TestTransitionMap:
    def test_every_event_has_a_source_mode(self) -> None:
        events = {event for _, event in TRANSITIONS}
        assert events == set(SessionEvent)


class TestPlanPending:
    def test_cancel_token_cancels_without_agent(self) -> None:
        decision = resolve_event(PENDING, "[cancel] Re: Add login", "")
        assert decision.event is SessionEvent.CANCEL_PLAN
        assert decision.next_mode is NORMAL

    def test_cancel_beats_approval(self) -> None:
        decision = resolve_event(PENDING, "[cancel] Re: Add login", "Looks good")
        assert decision.event is SessionEvent.CANCEL_PLAN

    def test_cancel_phrase(self) -> None:
        assert resolve_event(PENDING, "Re: Add login", "Never mind").event is (
            SessionEvent.CANCEL_PLAN
        )

    def test_confirm_approves(self) -> None:
        decision = resolve_event(PENDING, "[confirm] Re: Add login", "but one thing?")
        assert decision.event is SessionEvent.APPROVE_PLAN
        assert decision.command is Command.CONFIRM
        assert decision.next_mode is NORMAL

    def test_approval_phrase(self) -> None:
        assert resolve_event(PENDING, "Re: Add login", "LGTM").event is (
            SessionEvent.APPROVE_PLAN
        )

    @pytest.mark.parametrize(
        "body", ["Looks good but add tests", "Use sessions instead", "Thanks", ""]
    )
    def test_anything_else_is_revision(self, body: str) -> None:
        decision = resolve_event(PENDING, "Re: Add login", body)
        assert decision.event is SessionEvent.REVISE_PLAN
        assert decision.next_mode is PENDING

    def test_pr_command_while_pending_is_revision(self) -> None:
        decision = resolve_event(PENDING, "[merge] Re: Add login", "")
        assert decision.event is SessionEvent.REVISE_PLAN


class TestNormal:
    @pytest.mark.parametrize(
        ("subject", "command"),
        [
            ("[merge] Re: Add login", Command.MERGE),
            ("[close] Re: Add login", Command.CLOSE),
            ("Re: Add login [status]", Command.STATUS),
        ],
    )
    def test_pr_commands(self, subject: str, command: Command) -> None:
        decision = resolve_event(NORMAL, subject, "please write me a plan")
        assert decision.event is SessionEvent.PR_COMMAND
        assert decision.command is command

    @pytest.mark.parametrize("subject", ["[confirm] Re: Add login", "[cancel] Re: Add login"])
    def test_plan_review_token_without_plan(self, subject: str) -> None:
        decision = resolve_event(NORMAL, subject, "")
        assert decision.event is SessionEvent.NO_PENDING_PLAN
        assert decision.next_mode is NORMAL

    def test_plan_token_requests_plan(self) -> None:
        decision = resolve_event(NORMAL, "[plan] Add login", "")
        assert decision.event is SessionEvent.REQUEST_PLAN
        assert decision.next_mode is PENDING

    def test_plan_phrase_requests_plan(self) -> None:
        decision = resolve_event(NORMAL, "Add login", "Before you start, outline it")
        assert decision.event is SessionEvent.REQUEST_PLAN

    def test_plain_email_executes(self) -> None:
        decision = resolve_event(NORMAL, "Add dark mode", "Use CSS variables")
        assert decision.event is SessionEvent.EXECUTE
        assert decision.command is Command.NONE
        assert decision.next_mode is NORMAL

    def test_approval_phrase_in_normal_mode_executes(self) -> None:
        assert resolve_event(NORMAL, "Re: Add login", "Looks good").event is (
            SessionEvent.EXECUTE
        )
