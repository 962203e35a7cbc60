"""Natural-language intent detection for plan mode.

Regex triggers over the email text decide whether a message asks for a plan,
approves a pending plan, asks for a revision, or abandons the plan.  The
phrase lists are deliberately short: they are a heuristic, and known misses
are listed in DESIGN.md rather than patched with ever more phrases.

Revision phrases always beat approval phrases ("looks good but ..." is a
revision), while an explicit ``[confirm]`` subject token always counts as
approval.
"""

from __future__ import annotations

import re

from mailagent.commands.parser import REPLY_PREFIX_RE, parse_command, strip_command_tokens
from mailagent.domain.types import Command

PLAN_TRIGGER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bplan for\b",
        r"\bwrite (?:me )?(?:a|up a) plan\b",
        r"\b(?:make|create|draft|give me) a plan\b",
        r"\bbefore you (?:start|begin)\b",
        r"\bdon['’]?t (?:implement|start|code)(?: anything)? yet\b",
        r"\bjust plan\b",
        r"\bplan (?:it|this) out\b",
    )
)

APPROVAL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\blooks good\b",
        r"\bsounds good\b",
        r"\blgtm\b",
        r"\bapproved?\b",
        r"\bgo ahead\b",
        r"\bproceed\b",
        r"\bship it\b",
        r"\blet['’]?s do it\b",
        # short affirmation closing the message
        r"\b(?:yes|yep|yeah|ok|okay|confirmed)[\s.!]*$",
    )
)

REVISION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bbut\b",
        r"\binstead\b",
        r"\bchang(?:e|es|ing)\b",
        r"\balso add\b",
        r"\bwait\b",
        r"\bhowever\b",
        r"\bexcept\b",
        r"\brather\b",
        r"\?",
    )
)

CANCELLATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bcancel (?:the |this )?plan\b",
        r"\bnever ?mind\b",
        r"\bforget (?:it|this|about it)\b",
        r"\bscrap (?:it|this|that|the plan)\b",
    )
)


def _matches_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _reply_text(subject: str, body: str) -> str:
    """Pick the text a plan reply should be judged on.

    Every subject in a thread repeats the original task title, so the body
    carries the reviewer's actual words.  The subject (minus reply prefixes
    and command tokens) is only used when the body is blank.
    """
    if body.strip():
        return body.strip()
    return strip_command_tokens(REPLY_PREFIX_RE.sub("", subject)).strip()


def detect_plan_trigger(subject: str, body: str) -> bool:
    """Return True when the email asks for a plan instead of an implementation.

    Args:
        subject: The email subject line.
        body: The email body text.

    Returns:
        True for an explicit ``[plan]`` token or a plan-trigger phrase
        anywhere in the subject or body.
    """
    if parse_command(subject) is Command.PLAN:
        return True
    return _matches_any(PLAN_TRIGGER_PATTERNS, f"{subject}\n{body}")


def detect_revision(subject: str, body: str) -> bool:
    """Return True when a plan reply asks for changes."""
    return _matches_any(REVISION_PATTERNS, _reply_text(subject, body))


def detect_approval(subject: str, body: str) -> bool:
    """Return True when a plan reply approves the pending plan.

    ``[confirm]`` in the subject always approves.  Otherwise an approval
    phrase must be present and no revision phrase may be.

    Args:
        subject: The email subject line.
        body: The email body text.

    Returns:
        Whether the message should be treated as plan approval.
    """
    if parse_command(subject) is Command.CONFIRM:
        return True
    text = _reply_text(subject, body)
    if not text or _matches_any(REVISION_PATTERNS, text):
        return False
    return _matches_any(APPROVAL_PATTERNS, text)


def detect_cancellation(subject: str, body: str) -> bool:
    """Return True when the email abandons the pending plan.

    ``[cancel]`` in the subject always cancels; otherwise a cancellation
    phrase in the reply text is required.
    """
    if parse_command(subject) is Command.CANCEL:
        return True
    return _matches_any(CANCELLATION_PATTERNS, _reply_text(subject, body))
