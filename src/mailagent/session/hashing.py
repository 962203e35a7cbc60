"""Subject normalization, session keys and branch naming."""

from __future__ import annotations

import hashlib
import secrets

from mailagent.commands.parser import REPLY_PREFIX_RE, strip_command_tokens

SUBJECT_HASH_LENGTH = 12
BRANCH_PREFIX = "email-claude-"


def normalize_subject(subject: str) -> str:
    """Strip leading ``Re:``/``Fwd:``/``Fw:`` prefixes, trim and lower-case.

    Stacked prefixes (``Re: Fwd: Re: ...``) are all removed.
    """
    return REPLY_PREFIX_RE.sub("", subject).strip().lower()


def hash_subject(subject: str) -> str:
    """Return the session key for *subject*.

    The key is the first 12 hex characters of the SHA-256 of the normalized
    subject.  Collisions between unrelated threads are accepted.
    """
    normalized = normalize_subject(subject)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:SUBJECT_HASH_LENGTH]


def generate_session_id() -> str:
    """Return a new random 32-character hex session identifier."""
    return secrets.token_hex(16)


def branch_name_for(session_id: str) -> str:
    """Derive the feature branch name for a session, e.g. ``email-claude-1a2b3c4d``."""
    return f"{BRANCH_PREFIX}{session_id[:8]}"


def session_key(subject: str) -> str:
    """Return the session lookup key for an inbound subject.

    Command tokens are removed before hashing so that ``[confirm] Re: Add
    login`` resolves to the same session as ``Add login``.
    """
    return hash_subject(strip_command_tokens(subject))
