"""Tests for subject normalization, session keys and branch names."""

from __future__ import annotations

import hashlib

from mailagent.session.hashing import (
    BRANCH_PREFIX,
    branch_name_for,
    generate_session_id,
    hash_subject,
    normalize_subject,
    session_key,
)


class TestNormalizeSubject:
    def test_strips_reply_and_forward_prefixes(self) -> None:
        assert normalize_subject("Re: Widget fix") == "widget fix"
        assert normalize_subject("FWD:  widget fix ") == "widget fix"
        assert normalize_subject("fw: Widget Fix") == "widget fix"

    def test_strips_stacked_prefixes(self) -> None:
        assert normalize_subject("Re: Fwd: RE: Widget fix") == "widget fix"

    def test_keeps_prefix_words_inside_subject(self) -> None:
        assert normalize_subject("Refactor: widget") == "refactor: widget"


class TestHashSubject:
    def test_prefix_and_case_insensitive(self) -> None:
        assert hash_subject("Widget fix") == hash_subject("Re: Widget fix")
        assert hash_subject("Widget fix") == hash_subject("FWD:  widget fix ")

    def test_idempotent_and_twelve_hex_chars(self) -> None:
        key = hash_subject("Widget fix")
        assert key == hash_subject("Widget fix")
        assert len(key) == 12
        assert key == hashlib.sha256(b"widget fix").hexdigest()[:12]

    def test_different_subjects_differ(self) -> None:
        assert hash_subject("Widget fix") != hash_subject("Gadget fix")


class TestSessionKey:
    def test_command_tokens_do_not_change_key(self) -> None:
        assert session_key("[confirm] Re: Add login") == session_key("Add login")
        assert session_key("Re: [plan] Add login") == session_key("[plan] Add login")


class TestIdentifiers:
    def test_session_ids_are_random_hex(self) -> None:
        first, second = generate_session_id(), generate_session_id()
        assert first != second
        assert len(first) == 32
        int(first, 16)

    def test_branch_name_uses_first_eight_chars(self) -> None:
        assert branch_name_for("1a2b3c4d5e6f") == f"{BRANCH_PREFIX}1a2b3c4d"
        assert branch_name_for("1a2b3c4d5e6f") == branch_name_for("1a2b3c4d")
