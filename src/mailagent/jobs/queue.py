"""Redis-backed job queue with exponential-backoff retry and dead-lettering.

Three keys share one prefix:

- ``<prefix>jobs:pending`` -- a list; producers ``RPUSH``, the worker ``BLPOP``s.
- ``<prefix>jobs:retry``   -- a sorted set of job payloads scored by due time
  in epoch milliseconds.
- ``<prefix>jobs:failed``  -- a list of dead-lettered ``RetryEnvelope`` JSON,
  newest first.  Nothing reprocesses it automatically.

Delivery is at-least-once at best: ``BLPOP`` removes a job before it is
processed and there is no acknowledgement, so a crash between the pop and the
outcome being persisted loses that job.  The same holds for a crash between
the ``ZREM`` and ``RPUSH`` of a promotion.  Handlers should tolerate seeing a
job twice.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import redis
import structlog

from mailagent.jobs.models import EmailJob, RetryEnvelope
from mailagent.observability.metrics import (
    JOBS_DEAD_LETTERED,
    JOBS_PROMOTED,
    RETRIES_SCHEDULED,
)

logger = structlog.get_logger()

MAX_RETRIES = 3
RETRY_BASE_DELAY_MS = 1000
DEFAULT_PREFIX = "email_claude:"


def calculate_retry_delay(retry_count: int, base_delay_ms: int = RETRY_BASE_DELAY_MS) -> int:
    """Return the backoff in milliseconds before retry number ``retry_count + 1``.

    ``2 ** retry_count * base_delay_ms``: 1000, 2000, 4000 ms for the first
    three retries with the default base.
    """
    return (2**retry_count) * base_delay_ms


def _now_ms() -> int:
    return int(time.time() * 1000)


def _from_ms(ms: int | float) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


@dataclass(frozen=True)
class RetryOutcome:
    """Result of ``JobQueue.schedule_retry``.

    Attributes:
        envelope: The scheduled (or dead-lettered) envelope.
        delay_ms: Backoff applied, or ``None`` when dead-lettered.
    """

    envelope: RetryEnvelope
    delay_ms: int | None

    @property
    def dead_lettered(self) -> bool:
        return self.envelope.is_dead


class JobQueue:
    """Pending, retry and dead-letter queues for ``EmailJob`` payloads.

    Every operation is a single Redis command (or a sequence of individually
    atomic ones), so producers, the worker loop and the retry promoter can
    share one client without further locking.

    Args:
        client: A ``redis.Redis`` created with ``decode_responses=True``.
        prefix: Key prefix shared by the three queues.
        max_retries: Retries allowed before a job is dead-lettered.
        base_delay_ms: Backoff base unit.
        on_dead_letter: Called with the envelope after a job exhausts its
            retries; the worker uses it to send the final failure email.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = DEFAULT_PREFIX,
        *,
        max_retries: int = MAX_RETRIES,
        base_delay_ms: int = RETRY_BASE_DELAY_MS,
        on_dead_letter: Callable[[RetryEnvelope], None] | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._client = client
        self._max_retries = max_retries
        self._base_delay_ms = base_delay_ms
        self._on_dead_letter = on_dead_letter
        self._clock = clock

        self.pending_key = f"{prefix}jobs:pending"
        self.retry_key = f"{prefix}jobs:retry"
        self.failed_key = f"{prefix}jobs:failed"

    # ------------------------------------------------------------------
    # Pending queue
    # ------------------------------------------------------------------

    def enqueue(self, job: EmailJob) -> None:
        """Append *job* to the tail of the pending queue."""
        self._client.rpush(self.pending_key, job.to_payload())
        logger.debug("Job enqueued", job_id=job.id, retry_count=job.retry_count)

    def dequeue_blocking(self, timeout: float) -> EmailJob | None:
        """Pop the head of the pending queue, waiting up to *timeout* seconds.

        This is the only blocking call in the pipeline.

        Returns:
            The next job, or ``None`` if the timeout elapsed first.

        Raises:
            InvalidJobPayloadError: If the popped payload is not a job.  The
                raw payload is on ``exc.payload``; it is no longer in the
                pending queue.
        """
        result = self._client.blpop([self.pending_key], timeout=timeout)
        if result is None:
            return None

        _key, payload = result
        return EmailJob.from_payload(payload)

    def pending_count(self) -> int:
        return int(self._client.llen(self.pending_key))

    # ------------------------------------------------------------------
    # Retry queue
    # ------------------------------------------------------------------

    def schedule_retry(self, job: EmailJob, error: BaseException | str) -> RetryOutcome:
        """Hand a failed job to the retry engine.

        A job that has already been retried ``max_retries`` times is moved
        to the dead-letter queue with the error and a failure timestamp, and
        ``on_dead_letter`` is invoked.  Otherwise the job's retry counter is
        incremented and it is added to the retry queue, due after
        ``2 ** retry_count`` base units.

        Args:
            job: The job that failed, carrying its current retry counter.
            error: The failure, recorded as its message.

        Returns:
            A ``RetryOutcome`` describing what was done.
        """
        message = str(error)
        now = self._clock()

        if job.retry_count >= self._max_retries:
            envelope = RetryEnvelope(job=job, failed_at=_from_ms(now), last_error=message)
            self._client.lpush(self.failed_key, envelope.model_dump_json(by_alias=True))
            JOBS_DEAD_LETTERED.inc()
            logger.error(
                "Job exhausted retries, moved to dead-letter queue",
                job_id=job.id,
                retry_count=job.retry_count,
                error=message,
            )
            if self._on_dead_letter is not None:
                self._on_dead_letter(envelope)
            return RetryOutcome(envelope=envelope, delay_ms=None)

        delay_ms = calculate_retry_delay(job.retry_count, self._base_delay_ms)
        due_ms = now + delay_ms
        retry_job = job.next_attempt()
        self._client.zadd(self.retry_key, {retry_job.to_payload(): due_ms})
        RETRIES_SCHEDULED.inc()
        logger.warning(
            "Job scheduled for retry",
            job_id=job.id,
            retry_count=retry_job.retry_count,
            delay_ms=delay_ms,
            error=message,
        )
        return RetryOutcome(
            envelope=RetryEnvelope(job=retry_job, due_at=_from_ms(due_ms)),
            delay_ms=delay_ms,
        )

    def promote_due(self, now_ms: int | None = None) -> int:
        """Move every retry entry due at or before *now_ms* back to pending.

        Each entry is claimed with ``ZREM`` before it is pushed, so concurrent
        promoters never push the same entry twice.  The retry counter is not
        touched; it was incremented when the retry was scheduled.

        Args:
            now_ms: Cut-off in epoch milliseconds; defaults to the clock.

        Returns:
            The number of jobs promoted.
        """
        cutoff = self._clock() if now_ms is None else now_ms
        due = self._client.zrangebyscore(self.retry_key, "-inf", cutoff)

        promoted = 0
        for payload in due:
            if self._client.zrem(self.retry_key, payload):
                self._client.rpush(self.pending_key, payload)
                promoted += 1

        if promoted:
            JOBS_PROMOTED.inc(promoted)
            logger.info("Promoted due retries", count=promoted)
        return promoted

    def scheduled(self) -> list[RetryEnvelope]:
        """Return the retry queue ordered by due time."""
        entries = self._client.zrange(self.retry_key, 0, -1, withscores=True)
        return [
            RetryEnvelope(job=EmailJob.from_payload(payload), due_at=_from_ms(score))
            for payload, score in entries
        ]

    def scheduled_count(self) -> int:
        return int(self._client.zcard(self.retry_key))

    # ------------------------------------------------------------------
    # Dead-letter queue
    # ------------------------------------------------------------------

    def dead_letter_raw(self, payload: str, error: str) -> None:
        """Record an undecodable payload in the dead-letter queue as-is."""
        self._client.lpush(self.failed_key, payload)
        JOBS_DEAD_LETTERED.inc()
        logger.error("Malformed job payload dead-lettered", error=error)

    def dead_letters(self, limit: int = 50) -> list[RetryEnvelope]:
        """Return up to *limit* dead-lettered envelopes, newest first.

        Raw payloads recorded by ``dead_letter_raw`` are skipped.
        """
        envelopes: list[RetryEnvelope] = []
        for raw in self._client.lrange(self.failed_key, 0, limit - 1):
            try:
                envelopes.append(RetryEnvelope.model_validate_json(raw))
            except ValueError:
                continue
        return envelopes

    def dead_letter_count(self) -> int:
        return int(self._client.llen(self.failed_key))

    def ping(self) -> bool:
        """Return True if Redis answers ``PING``."""
        return bool(self._client.ping())
