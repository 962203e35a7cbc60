"""Tests for EmailJob and RetryEnvelope wire models."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from mailagent.domain.errors import InvalidJobPayloadError, PermanentJobError
from mailagent.jobs.models import EmailAttachment, EmailJob, RetryEnvelope

WEBHOOK_PAYLOAD = {
    "id": "job-1",
    "sessionId": "sess-1",
    "project": "widget",
    "prompt": "Add dark mode",
    "replyTo": "dev@example.com",
    "originalSubject": "Add dark mode",
    "messageId": "<msg-1@example.com>",
    "resumeSession": False,
    "createdAt": "2026-01-15T12:00:00Z",
}


class TestFromPayload:
    def test_decodes_producer_payload(self) -> None:
        job = EmailJob.from_payload(json.dumps(WEBHOOK_PAYLOAD))

        assert job.session_id == "sess-1"
        assert job.reply_to == "dev@example.com"
        assert job.retry_count == 0
        assert job.attachments is None
        assert job.created_at == datetime(2026, 1, 15, 12, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, 0])
    def test_absent_or_null_retry_count_is_zero(self, value: int | None) -> None:
        payload = {**WEBHOOK_PAYLOAD, "retryCount": value}
        assert EmailJob.from_payload(json.dumps(payload)).retry_count == 0

    def test_attachments(self) -> None:
        payload = {
            **WEBHOOK_PAYLOAD,
            "attachments": [{"filename": "a.txt", "content": "aGk=", "contentType": "text/plain"}],
        }
        [attachment] = EmailJob.from_payload(json.dumps(payload)).attachments or []
        assert attachment == EmailAttachment(
            filename="a.txt", content="aGk=", content_type="text/plain"
        )

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            json.dumps({"id": "x"}),
            json.dumps({**WEBHOOK_PAYLOAD, "retryCount": -1}),
        ],
    )
    def test_invalid_payload(self, payload: str) -> None:
        with pytest.raises(InvalidJobPayloadError) as exc_info:
            EmailJob.from_payload(payload)
        assert exc_info.value.payload == payload
        assert isinstance(exc_info.value, PermanentJobError)


class TestEmailJob:
    def test_frozen(self, make_job: Callable[..., EmailJob]) -> None:
        job = make_job()
        with pytest.raises(ValidationError):
            job.retry_count = 5  # type: ignore[misc]

    def test_next_attempt_increments_only_retry_count(
        self, make_job: Callable[..., EmailJob]
    ) -> None:
        job = make_job(retry_count=1)
        retried = job.next_attempt()

        assert retried.retry_count == 2
        assert job.retry_count == 1
        assert retried.model_copy(update={"retry_count": 1}) == job

    def test_payload_survives_queue_trip(self, make_job: Callable[..., EmailJob]) -> None:
        job = make_job(resume_session=True)
        assert EmailJob.from_payload(job.to_payload()) == job


class TestRetryEnvelope:
    def test_is_dead_once_failed(self, make_job: Callable[..., EmailJob]) -> None:
        job = make_job()
        assert RetryEnvelope(job=job).is_dead is False
        dead = RetryEnvelope(job=job, failed_at=datetime.now(tz=UTC), last_error="boom")
        assert dead.is_dead is True

    def test_serializes_camel_case(self, make_job: Callable[..., EmailJob]) -> None:
        envelope = RetryEnvelope(job=make_job(), last_error="boom")
        data = json.loads(envelope.model_dump_json(by_alias=True))
        assert data["lastError"] == "boom"
        assert data["job"]["sessionId"] == "sess-1"
