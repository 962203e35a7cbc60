"""Carry out the session transition chosen for one inbound email.

``EmailJobHandler.handle`` loads the job's session, resolves the event the
email raises and runs the matching action.  Actions talk to the coding agent,
git, the pull-request CLI and the mailer through the explicit ``JobContext``;
every action ends by replying to the sender.

Exceptions propagate to the worker, which decides between replying once
(``PermanentJobError``) and scheduling a retry (anything else).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

from mailagent.agent.models import AgentResult
from mailagent.agent.prompts import (
    build_execute_plan_prompt,
    build_full_prompt,
    build_plan_prompt,
    build_revision_prompt,
    format_request,
)
from mailagent.agent.runner import AgentRunner
from mailagent.domain.errors import NoPullRequestError, SessionNotFoundError
from mailagent.domain.types import Command, MessageRole
from mailagent.email import formatting
from mailagent.email.mailer import Mailer
from mailagent.email.models import EmailReply
from mailagent.handlers.attachments import save_attachments
from mailagent.jobs.models import EmailJob
from mailagent.session.models import Session
from mailagent.session.store import SessionStore
from mailagent.state_machine.machine import SessionStateMachine
from mailagent.state_machine.transitions import Decision, SessionEvent, resolve_event
from mailagent.vcs.branch_safety import ensure_on_default_branch
from mailagent.vcs.git import GitClient
from mailagent.vcs.pull_requests import PullRequestClient

logger = structlog.get_logger()

PR_TITLE_PREFIX = "[Email]"


@dataclass(frozen=True)
class JobContext:
    """Collaborators shared by every job, built once at start-up.

    Attributes:
        store: Session persistence.
        agent: The coding agent adapter.
        git: Local repository operations.
        pull_requests: Pull-request operations.
        mailer: Outbound email delivery.
        from_domain: Domain of the per-project reply address.
    """

    store: SessionStore
    agent: AgentRunner
    git: GitClient
    pull_requests: PullRequestClient
    mailer: Mailer
    from_domain: str


class EmailJobHandler:
    """Process ``EmailJob`` payloads against their sessions."""

    def __init__(self, ctx: JobContext) -> None:
        self._ctx = ctx
        self._actions: dict[SessionEvent, Callable[[EmailJob, Session, Decision], None]] = {
            SessionEvent.CANCEL_PLAN: self._cancel_plan,
            SessionEvent.APPROVE_PLAN: self._approve_plan,
            SessionEvent.REVISE_PLAN: self._revise_plan,
            SessionEvent.PR_COMMAND: self._pr_command,
            SessionEvent.REQUEST_PLAN: self._request_plan,
            SessionEvent.EXECUTE: self._execute,
            SessionEvent.NO_PENDING_PLAN: self._no_pending_plan,
        }

    def handle(self, job: EmailJob) -> Decision:
        """Run the action for *job* and return the decision taken.

        The triggering message is appended to the conversation log on the
        first attempt only, so retries do not duplicate it.

        Raises:
            SessionNotFoundError: If the job's session does not exist.
            NoPullRequestError: For a PR command on a session without a PR.
        """
        session = self._ctx.store.get(job.session_id)
        if session is None:
            raise SessionNotFoundError(job.session_id)

        decision = resolve_event(session.mode, job.original_subject, job.prompt)
        SessionStateMachine.from_snapshot(session.mode).trigger(decision.event)
        logger.info(
            "Resolved session event",
            session_event=decision.event,
            command=decision.command,
            mode=session.mode,
            next_mode=decision.next_mode,
        )

        if job.retry_count == 0:
            self._ctx.store.add_message(
                session.id,
                MessageRole.USER,
                format_request(job.original_subject, job.prompt),
            )

        self._actions[decision.event](job, session, decision)
        return decision

    # ------------------------------------------------------------------
    # Plan review
    # ------------------------------------------------------------------

    def _cancel_plan(self, job: EmailJob, session: Session, decision: Decision) -> None:
        self._ctx.store.exit_plan_mode(session.id)
        self._send(job, formatting.format_plan_cancelled_reply(job))

    def _approve_plan(self, job: EmailJob, session: Session, decision: Decision) -> None:
        cwd, attachment_paths = self._prepare_checkout(job, session)
        prompt = build_execute_plan_prompt(
            session.pending_plan or "", job.original_subject, job.prompt, attachment_paths
        )
        result = self._run_agent(prompt, cwd, session)
        # The plan stays pending until the work is published, so a retry after
        # a failed push is still judged as an approval.
        pr_url = self._finalize_pull_request(job, session, cwd, result)
        self._ctx.store.exit_plan_mode(session.id)
        self._send_success(job, session, result, pr_url)

    def _revise_plan(self, job: EmailJob, session: Session, decision: Decision) -> None:
        cwd, attachment_paths = self._prepare_checkout(job, session)
        prompt = build_revision_prompt(
            session.pending_plan or "", job.original_subject, job.prompt, attachment_paths
        )
        result = self._run_agent(prompt, cwd, session, plan_only=True)
        self._ctx.store.enter_plan_mode(session.id, result.summary)
        self._send(job, formatting.format_plan_reply(job, result.summary, is_revision=True))

    # ------------------------------------------------------------------
    # Normal mode
    # ------------------------------------------------------------------

    def _request_plan(self, job: EmailJob, session: Session, decision: Decision) -> None:
        cwd, attachment_paths = self._prepare_checkout(job, session)
        prompt = build_plan_prompt(job.original_subject, job.prompt, attachment_paths)
        result = self._run_agent(prompt, cwd, session, plan_only=True)
        self._ctx.store.enter_plan_mode(session.id, result.summary)
        self._send(job, formatting.format_plan_reply(job, result.summary))

    def _execute(self, job: EmailJob, session: Session, decision: Decision) -> None:
        cwd, attachment_paths = self._prepare_checkout(job, session)
        prompt = build_full_prompt(job.original_subject, job.prompt, attachment_paths)
        result = self._run_agent(prompt, cwd, session)
        pr_url = self._finalize_pull_request(job, session, cwd, result)
        self._send_success(job, session, result, pr_url)

    def _pr_command(self, job: EmailJob, session: Session, decision: Decision) -> None:
        if not session.has_pull_request:
            raise NoPullRequestError(session.id, decision.command.token)

        cwd = self._ctx.git.ensure_repo(job.project)
        prs = self._ctx.pull_requests

        if decision.command is Command.MERGE:
            prs.merge_pr(cwd, session.pr_number)
            reply = formatting.format_merged_reply(job, session.pr_number)
        elif decision.command is Command.CLOSE:
            prs.close_pr(cwd, session.pr_number)
            reply = formatting.format_closed_reply(job, session.pr_number)
        else:
            pr_url = prs.get_pr_url(cwd, session.pr_number)
            reply = formatting.format_status_reply(job, session, pr_url)
        self._send(job, reply)

    def _no_pending_plan(self, job: EmailJob, session: Session, decision: Decision) -> None:
        self._send(job, formatting.format_no_pending_plan_reply(job, decision.command.token))

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _prepare_checkout(self, job: EmailJob, session: Session) -> tuple[Path, list[str]]:
        """Clone if needed, check out the session branch and save attachments."""
        git = self._ctx.git
        cwd = git.ensure_repo(job.project)

        # Sessions without a PR have not branched yet.
        if not session.has_pull_request:

            def notify(previous_branch: str, default_branch: str) -> None:
                notice = formatting.format_branch_notice(
                    job,
                    previous_branch=previous_branch,
                    default_branch=default_branch,
                    new_branch=session.branch_name,
                )
                self._send(job, notice)

            ensure_on_default_branch(git, cwd, notify)

        git.ensure_branch(cwd, session.branch_name)
        return cwd, save_attachments(job.attachments, session.id, cwd)

    def _run_agent(
        self, prompt: str, cwd: Path, session: Session, *, plan_only: bool = False
    ) -> AgentResult:
        result = self._ctx.agent.run(
            prompt, cwd, resume_token=session.agent_session_id, plan_only=plan_only
        )
        self._ctx.store.add_message(session.id, MessageRole.AGENT, result.summary)
        if result.agent_session_id and session.agent_session_id is None:
            self._ctx.store.update(session.id, agent_session_id=result.agent_session_id)
        return result

    def _send_success(
        self, job: EmailJob, session: Session, result: AgentResult, pr_url: str | None
    ) -> None:
        reply = formatting.format_success_reply(
            job, result, branch_name=session.branch_name, pr_url=pr_url
        )
        self._send(job, reply)

    def _finalize_pull_request(
        self, job: EmailJob, session: Session, cwd: Path, result: AgentResult
    ) -> str | None:
        """Open the session's PR or comment on it; ``None`` if nothing was committed."""
        git = self._ctx.git
        prs = self._ctx.pull_requests

        if not git.has_commits_ahead(cwd):
            logger.info("No commits to publish", branch=session.branch_name)
            return None

        git.push_branch(cwd, session.branch_name)

        if session.pr_number is None:
            pr_number = prs.create_pr(
                cwd,
                f"{PR_TITLE_PREFIX} {job.original_subject}",
                self._conversation_body(session),
            )
            self._ctx.store.update(session.id, pr_number=pr_number)
        else:
            pr_number = session.pr_number
            prs.comment_on_pr(cwd, pr_number, self._follow_up_comment(job, result))

        return prs.get_pr_url(cwd, pr_number)

    def _conversation_body(self, session: Session) -> str:
        entries = []
        for message in self._ctx.store.get_messages(session.id):
            label = "**User:**" if message.role is MessageRole.USER else "**Agent:**"
            entries.append(f"{label}\n\n{message.content}")

        return "\n".join(
            [
                "## Conversation",
                "",
                "\n\n---\n\n".join(entries),
                "",
                "---",
                "",
                f"Session: `{session.id}`",
            ]
        )

    @staticmethod
    def _follow_up_comment(job: EmailJob, result: AgentResult) -> str:
        return "\n".join(
            [
                "## Follow-up Request",
                "",
                "```",
                format_request(job.original_subject, job.prompt),
                "```",
                "",
                "## Agent Response",
                "",
                result.summary,
            ]
        )

    def _send(self, job: EmailJob, reply: EmailReply) -> None:
        self._ctx.mailer.send(reply, formatting.from_address(job.project, self._ctx.from_domain))
