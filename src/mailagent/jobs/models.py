"""Pydantic v2 models for queued work.

``EmailJob`` is the queue payload.  It is serialized with camelCase keys
(``sessionId``, ``replyTo``, ``retryCount`` ...) so the webhook producer and
this worker share one wire format; Python code uses snake_case attributes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from mailagent.domain.errors import InvalidJobPayloadError

_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class EmailAttachment(BaseModel):
    """A file attached to the inbound email, base64-encoded."""

    model_config = _WIRE_CONFIG

    filename: str
    content: str
    content_type: str | None = None


class EmailJob(BaseModel):
    """An immutable unit of work produced from one inbound email.

    ``retry_count`` is 0 on the first attempt and only ever grows, by one,
    each time the job is handed back to the retry queue.
    """

    model_config = _WIRE_CONFIG

    id: str
    session_id: str
    project: str
    prompt: str
    reply_to: str
    original_subject: str
    message_id: str = ""
    resume_session: bool = False
    attachments: list[EmailAttachment] | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    retry_count: int = Field(default=0, ge=0)

    @field_validator("retry_count", mode="before")
    @classmethod
    def _absent_retry_count(cls, value: object) -> object:
        return 0 if value is None else value

    def next_attempt(self) -> EmailJob:
        """Return a copy of this job with ``retry_count`` incremented."""
        return self.model_copy(update={"retry_count": self.retry_count + 1})

    def to_payload(self) -> str:
        """Serialize to the JSON string stored in the queues."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_payload(cls, payload: str) -> EmailJob:
        """Decode a queue payload.

        Raises:
            InvalidJobPayloadError: If the payload is not valid JSON or does
                not describe a job.  ``retryCount`` may be absent or null.
        """
        try:
            return cls.model_validate_json(payload)
        except ValidationError as exc:
            msg = f"Invalid job payload: {exc.error_count()} error(s)"
            raise InvalidJobPayloadError(msg, payload=payload) from exc


class RetryEnvelope(BaseModel):
    """A job plus its scheduling metadata.

    ``due_at`` is when the retry queue will release the job.  ``failed_at``
    and ``last_error`` are only set once the job is dead-lettered.
    """

    model_config = _WIRE_CONFIG

    job: EmailJob
    due_at: datetime | None = None
    failed_at: datetime | None = None
    last_error: str | None = None

    @property
    def is_dead(self) -> bool:
        return self.failed_at is not None
