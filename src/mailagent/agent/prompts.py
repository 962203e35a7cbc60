"""Prompt templates for the external coding agent.

Templates use Python string placeholders ({variable_name}) for the email
request, the pending plan and reviewer feedback.
"""

from __future__ import annotations

SYSTEM_PROMPT = """You are a software engineer working on a git repository on behalf of a \
user who sends requests by email. You cannot ask follow-up questions; make reasonable \
assumptions and state them in your final message.

RULES:
- Work on the current branch only. Never switch branches, rebase, or push.
- Commit your work as small atomic commits with descriptive messages as you go.
- Do not commit secrets, credentials, or files under .attachments/.
- Finish with a short plain-text summary of what you changed and why; it is emailed \
back to the user verbatim.
"""

PLAN_PROMPT = """{system}
---

PLAN MODE: Do not modify any files and do not commit. Read the code you need, then \
reply with an implementation plan for the request below: the files you would touch, \
the changes in each, and any open questions or risks. The plan is emailed to the user \
for approval.

{request}"""

REVISION_PROMPT = """{system}
---

PLAN MODE: Do not modify any files and do not commit. The user reviewed your previous \
plan and asked for changes. Reply with the complete revised plan, not a diff against \
the old one.

PREVIOUS PLAN:
{plan}

FEEDBACK:
{request}"""

EXECUTE_PLAN_PROMPT = """{system}
---

The user approved the implementation plan below. Implement it now, following it \
closely.

APPROVED PLAN:
{plan}

APPROVAL MESSAGE:
{request}"""


def format_request(subject: str, body: str) -> str:
    """Render the user's request: ``Subject:`` plus body, or the subject alone."""
    if body.strip():
        return f"Subject: {subject}\n\n{body}"
    return subject


def _with_attachments(prompt: str, attachment_paths: list[str] | None) -> str:
    if not attachment_paths:
        return prompt
    listing = "\n".join(f"- {path}" for path in attachment_paths)
    return f"{prompt}\n\n---\n\nAttached files (saved to disk):\n{listing}"


def build_full_prompt(
    subject: str, body: str, attachment_paths: list[str] | None = None
) -> str:
    """Prompt for a normal execution run."""
    prompt = f"{SYSTEM_PROMPT}\n---\n\n{format_request(subject, body)}"
    return _with_attachments(prompt, attachment_paths)


def build_plan_prompt(
    subject: str, body: str, attachment_paths: list[str] | None = None
) -> str:
    """Prompt asking for a plan only."""
    prompt = PLAN_PROMPT.format(system=SYSTEM_PROMPT, request=format_request(subject, body))
    return _with_attachments(prompt, attachment_paths)


def build_revision_prompt(
    plan: str, subject: str, body: str, attachment_paths: list[str] | None = None
) -> str:
    """Prompt asking for a revised plan given reviewer feedback."""
    prompt = REVISION_PROMPT.format(
        system=SYSTEM_PROMPT, plan=plan, request=format_request(subject, body)
    )
    return _with_attachments(prompt, attachment_paths)


def build_execute_plan_prompt(
    plan: str, subject: str, body: str, attachment_paths: list[str] | None = None
) -> str:
    """Prompt executing an approved plan, with the plan as fixed context."""
    prompt = EXECUTE_PLAN_PROMPT.format(
        system=SYSTEM_PROMPT, plan=plan, request=format_request(subject, body)
    )
    return _with_attachments(prompt, attachment_paths)
