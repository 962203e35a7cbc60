"""Plain-text bodies for every reply the worker sends.

Each formatter takes the job being answered and returns an ``EmailReply``
addressed to its sender, threaded under the original message.
"""

from __future__ import annotations

import re

from mailagent.agent.models import AgentResult
from mailagent.commands.parser import strip_command_tokens
from mailagent.email.models import EmailReply
from mailagent.jobs.models import EmailJob
from mailagent.session.models import Session

FOOTER_CONTINUE = "Reply to this email to continue the conversation."
FOOTER_RETRY = "Reply to try again or start a new task."

_REPLY_PREFIX_RE = re.compile(r"^\s*re:", re.IGNORECASE)


def from_address(project: str, from_domain: str) -> str:
    """Each project replies from its own mailbox, ``<project>@<domain>``."""
    return f"{project}@{from_domain}"


def reply_subject(original_subject: str) -> str:
    """Return ``Re: <subject>`` without command tokens.

    Tokens are dropped so that replying to the reply does not repeat the
    command, and an existing ``Re:`` is not doubled.
    """
    subject = strip_command_tokens(original_subject)
    if _REPLY_PREFIX_RE.match(subject):
        return subject
    return f"Re: {subject}"


def _reply(job: EmailJob, lines: list[str]) -> EmailReply:
    return EmailReply(
        to=job.reply_to,
        subject=reply_subject(job.original_subject),
        in_reply_to=job.message_id or None,
        text="\n".join(lines),
    )


def format_success_reply(
    job: EmailJob,
    result: AgentResult,
    *,
    branch_name: str,
    pr_url: str | None = None,
) -> EmailReply:
    lines = ["Summary", result.summary, ""]

    if result.files_changed:
        lines.append("Changes")
        lines.extend(f"- {path}" for path in result.files_changed)
        lines.append("")

    lines.append("Links")
    if pr_url:
        lines.append(f"- PR: {pr_url}")
    lines.extend(f"- Preview: {url}" for url in result.preview_urls)
    lines.append(f"- Branch: {branch_name}")
    lines += ["", "---", FOOTER_CONTINUE]
    return _reply(job, lines)


def format_error_reply(
    job: EmailJob, error: BaseException | str, *, will_retry: bool = False
) -> EmailReply:
    lines = [
        "Error",
        "",
        "An error occurred while processing your request:",
        "",
        str(error),
        "",
    ]
    if will_retry:
        lines += ["The request will be retried automatically.", ""]
    lines += ["---", FOOTER_RETRY]
    return _reply(job, lines)


def format_final_failure_reply(
    job: EmailJob, error: str | None, *, attempts: int
) -> EmailReply:
    """Sent once a job has exhausted its retries and been dead-lettered."""
    return _reply(
        job,
        [
            "Request failed",
            "",
            f"Your request could not be completed after {attempts} attempts.",
            "",
            "Last error:",
            error or "Unknown error",
            "",
            "---",
            FOOTER_RETRY,
        ],
    )


def format_plan_reply(job: EmailJob, plan: str, *, is_revision: bool = False) -> EmailReply:
    title = "Revised Plan" if is_revision else "Implementation Plan"
    return _reply(
        job,
        [
            title,
            "",
            plan,
            "",
            "---",
            "",
            "To approve this plan, reply with:",
            "- [confirm] in the subject, OR",
            '- "Looks good", "Approved", "Go ahead", etc.',
            "",
            "To request changes, simply reply with your feedback.",
            "To cancel, reply with [cancel] in the subject.",
        ],
    )


def format_plan_cancelled_reply(job: EmailJob) -> EmailReply:
    return _reply(
        job,
        [
            "Plan cancelled",
            "",
            "The pending plan was discarded and no changes were made.",
            "",
            "---",
            "Send a new request to start again.",
        ],
    )


def format_no_pending_plan_reply(job: EmailJob, token: str) -> EmailReply:
    return _reply(
        job,
        [
            f"Nothing to {token.strip('[]')}",
            "",
            f"{token} only applies while a plan is awaiting approval, and this "
            "conversation has no pending plan. No changes were made.",
            "",
            "---",
            "Send [plan] in the subject to request a plan first.",
        ],
    )


def format_merged_reply(job: EmailJob, pr_number: int) -> EmailReply:
    return _reply(job, [f"PR #{pr_number} has been merged successfully."])


def format_closed_reply(job: EmailJob, pr_number: int) -> EmailReply:
    return _reply(job, [f"PR #{pr_number} has been closed without merging."])


def format_status_reply(job: EmailJob, session: Session, pr_url: str) -> EmailReply:
    return _reply(
        job,
        [
            f"Status for session: {session.id}",
            "",
            f"Project: {job.project}",
            f"Branch: {session.branch_name}",
            f"Mode: {session.mode}",
            f"PR: #{session.pr_number}",
            f"PR URL: {pr_url}",
        ],
    )


def format_branch_notice(
    job: EmailJob, *, previous_branch: str, default_branch: str, new_branch: str
) -> EmailReply:
    return _reply(
        job,
        [
            "Notice: Branch Reset",
            "",
            f'The repository {job.project} was on branch "{previous_branch}" '
            f'instead of "{default_branch}".',
            "",
            f'For safety, we switched to "{default_branch}" before creating your '
            f'feature branch "{new_branch}".',
            "",
            "Your request is being processed normally.",
            "",
            "---",
            "This is an informational notice. No action is required.",
        ],
    )
