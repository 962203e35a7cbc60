"""Job queue, retry engine and job intake."""

from mailagent.jobs.intake import enqueue_inbound_email
from mailagent.jobs.models import EmailAttachment, EmailJob, RetryEnvelope
from mailagent.jobs.queue import (
    MAX_RETRIES,
    RETRY_BASE_DELAY_MS,
    JobQueue,
    RetryOutcome,
    calculate_retry_delay,
)

__all__ = [
    "EmailAttachment",
    "EmailJob",
    "JobQueue",
    "MAX_RETRIES",
    "RETRY_BASE_DELAY_MS",
    "RetryEnvelope",
    "RetryOutcome",
    "calculate_retry_delay",
    "enqueue_inbound_email",
]
