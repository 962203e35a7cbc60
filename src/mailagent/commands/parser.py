"""Bracketed subject command parsing.

Commands are literal tokens such as ``[merge]`` matched case-insensitively
anywhere in the subject.  A token with internal whitespace (``[ merge]``) or a
missing bracket (``[merge``) is not a command.
"""

from __future__ import annotations

import re

from mailagent.domain.types import Command

# Highest priority first.  Reply subjects keep every token of the thread's
# first message (``Re: [plan] Add login``), so the sticky ``[plan]`` ranks
# last and the plan-review commands rank first.
COMMAND_PRIORITY: tuple[Command, ...] = (
    Command.CANCEL,
    Command.CONFIRM,
    Command.MERGE,
    Command.CLOSE,
    Command.STATUS,
    Command.PLAN,
)

_TOKEN_RE = re.compile(
    r"\[(?:" + "|".join(c.value for c in COMMAND_PRIORITY) + r")\]",
    re.IGNORECASE,
)

# Leading reply and forward prefixes, stacked or not: "Re: Fwd: Re:".
REPLY_PREFIX_RE = re.compile(r"^\s*(?:(?:re|fwd?)\s*:\s*)+", re.IGNORECASE)


def parse_command(subject: str) -> Command:
    """Return the highest-priority command present in *subject*.

    Args:
        subject: The raw email subject line.

    Returns:
        The matched ``Command``, or ``Command.NONE`` when no token is present.
    """
    lowered = subject.lower()
    for command in COMMAND_PRIORITY:
        if command.token in lowered:
            return command
    return Command.NONE


def strip_command_tokens(text: str) -> str:
    """Remove every command token from *text* and collapse the leftover spacing."""
    return " ".join(_TOKEN_RE.sub(" ", text).split())
