"""Tests for enqueue_inbound_email."""

from __future__ import annotations

from mailagent.jobs.intake import enqueue_inbound_email
from mailagent.jobs.models import EmailAttachment
from mailagent.jobs.queue import JobQueue
from mailagent.session.store import SessionStore


def _enqueue(store: SessionStore, queue: JobQueue, subject: str, body: str = "Do it"):
    return enqueue_inbound_email(
        store,
        queue,
        sender="dev@example.com",
        project="widget",
        subject=subject,
        body=body,
        message_id="<m@example.com>",
    )


class TestEnqueueInboundEmail:
    def test_new_subject_creates_session_and_job(
        self, store: SessionStore, queue: JobQueue
    ) -> None:
        job = _enqueue(store, queue, "Add dark mode", "Use CSS variables")

        session = store.get(job.session_id)
        assert session is not None
        assert job.prompt == "Use CSS variables"
        assert job.original_subject == "Add dark mode"
        assert job.reply_to == "dev@example.com"
        assert job.retry_count == 0
        assert job.resume_session is False

        queued = queue.dequeue_blocking(timeout=1)
        assert queued == job

    def test_reply_reuses_session(self, store: SessionStore, queue: JobQueue) -> None:
        first = _enqueue(store, queue, "Add dark mode")
        second = _enqueue(store, queue, "Re: Add dark mode")

        assert second.session_id == first.session_id
        assert second.id != first.id
        assert queue.pending_count() == 2

    def test_resume_when_session_has_continuation_token(
        self, store: SessionStore, queue: JobQueue
    ) -> None:
        first = _enqueue(store, queue, "Add dark mode")
        store.update(first.session_id, agent_session_id="tok-1")

        assert _enqueue(store, queue, "Re: Add dark mode").resume_session is True

    def test_attachments_carried(self, store: SessionStore, queue: JobQueue) -> None:
        attachment = EmailAttachment(filename="notes.txt", content="aGk=")
        job = enqueue_inbound_email(
            store,
            queue,
            sender="dev@example.com",
            project="widget",
            subject="Add dark mode",
            body="See attached",
            attachments=[attachment],
        )
        assert job.attachments == [attachment]
