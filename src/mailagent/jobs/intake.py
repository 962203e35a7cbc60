"""Turn an accepted inbound email into a queued job.

This is the hand-off point for the HTTP webhook: once a payload has been
authenticated and parsed, ``enqueue_inbound_email`` resolves the session and
pushes the job.  The webhook itself lives outside this package.
"""

from __future__ import annotations

import uuid

import structlog

from mailagent.jobs.models import EmailAttachment, EmailJob
from mailagent.jobs.queue import JobQueue
from mailagent.session.store import SessionStore

logger = structlog.get_logger()


def enqueue_inbound_email(
    store: SessionStore,
    queue: JobQueue,
    *,
    sender: str,
    project: str,
    subject: str,
    body: str,
    message_id: str = "",
    attachments: list[EmailAttachment] | None = None,
) -> EmailJob:
    """Resolve the email's session and enqueue a first-attempt job for it.

    Args:
        store: Session store used to find or create the conversation.
        queue: Queue the job is pushed onto.
        sender: Address replies go to.
        project: Routing target (repository name).
        subject: Raw email subject.
        body: Email body text, used as the prompt.
        message_id: The inbound ``Message-ID`` for reply threading.
        attachments: Optional base64 attachments.

    Returns:
        The enqueued job.
    """
    session, created = store.get_or_create(subject, project)

    job = EmailJob(
        id=uuid.uuid4().hex,
        session_id=session.id,
        project=project,
        prompt=body,
        reply_to=sender,
        original_subject=subject,
        message_id=message_id,
        resume_session=session.agent_session_id is not None,
        attachments=attachments or None,
    )
    queue.enqueue(job)

    logger.info(
        "Inbound email queued",
        job_id=job.id,
        session_id=session.id,
        project=project,
        new_session=created,
    )
    return job
