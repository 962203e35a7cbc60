"""Worker loop and retry promoter.

One job runs at a time.  ``run_worker`` repeatedly moves the blocking
dequeue and the job itself onto a thread with ``asyncio.to_thread``.
``run_retry_promoter`` runs next to it on a fixed interval and moves due
retries back to pending.  Both loops check a shared shutdown event between
iterations, so a signal lets the in-flight job finish before the process
exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import redis
import structlog

from mailagent.domain.errors import InvalidJobPayloadError, PermanentJobError
from mailagent.email import formatting
from mailagent.email.mailer import Mailer
from mailagent.email.models import EmailReply
from mailagent.handlers.email_job import EmailJobHandler
from mailagent.jobs.models import EmailJob, RetryEnvelope
from mailagent.jobs.queue import JobQueue
from mailagent.observability.metrics import JOBS_IN_FLIGHT, JOBS_PROCESSED

logger = structlog.get_logger()

DEFAULT_DEQUEUE_TIMEOUT = 30
ERROR_BACKOFF_SECONDS = 5.0


def send_reply_logged(mailer: Mailer, from_domain: str, job: EmailJob, reply: EmailReply) -> None:
    """Send a failure notice; a delivery error is logged, not raised.

    These replies are sent while another error is being handled, which
    must still reach the retry engine.
    """
    try:
        mailer.send(reply, formatting.from_address(job.project, from_domain))
    except Exception:
        logger.exception("Failed to send failure reply", job_id=job.id)


def dead_letter_notifier(mailer: Mailer, from_domain: str) -> Callable[[RetryEnvelope], None]:
    """Return the ``on_dead_letter`` callback that emails the final failure."""

    def notify(envelope: RetryEnvelope) -> None:
        job = envelope.job
        reply = formatting.format_final_failure_reply(
            job, envelope.last_error, attempts=job.retry_count + 1
        )
        send_reply_logged(mailer, from_domain, job, reply)

    return notify


class Worker:
    """Dequeue jobs and route their failures.

    Args:
        queue: The job queue.
        handler: Runs one job against its session.
        mailer: Sends error replies.
        from_domain: Domain of the per-project reply address.
        dequeue_timeout: Seconds one blocking dequeue waits.
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: EmailJobHandler,
        mailer: Mailer,
        from_domain: str,
        *,
        dequeue_timeout: float = DEFAULT_DEQUEUE_TIMEOUT,
    ) -> None:
        self._queue = queue
        self._handler = handler
        self._mailer = mailer
        self._from_domain = from_domain
        self._dequeue_timeout = dequeue_timeout

    def process_job(self, job: EmailJob) -> bool:
        """Run *job*, replying and rescheduling on failure.

        A ``PermanentJobError`` is reported to the sender and dropped.  Any
        other exception is reported and handed to ``schedule_retry``; once
        retries are exhausted the queue's dead-letter callback sends the
        final failure reply instead.

        If the retry cannot be recorded because Redis is down, the job is
        lost; it is logged at ERROR and the sender still gets the error.

        Returns:
            True if the job succeeded.
        """
        with structlog.contextvars.bound_contextvars(
            job_id=job.id,
            session_id=job.session_id,
            project=job.project,
            retry_count=job.retry_count,
        ):
            logger.info("Processing job", subject=job.original_subject)
            JOBS_IN_FLIGHT.inc()
            try:
                self._handler.handle(job)
            except PermanentJobError as exc:
                logger.warning("Job rejected", error=str(exc))
                self._reply(job, formatting.format_error_reply(job, exc))
                JOBS_PROCESSED.labels(outcome="rejected").inc()
                return False
            except Exception as exc:
                logger.exception("Job failed")
                try:
                    outcome = self._queue.schedule_retry(job, exc)
                except redis.RedisError:
                    # Already popped from pending: nothing else holds the job now.
                    logger.exception("Could not schedule retry, job lost")
                    self._reply(job, formatting.format_error_reply(job, exc))
                    JOBS_PROCESSED.labels(outcome="lost").inc()
                    return False
                if outcome.dead_lettered:
                    JOBS_PROCESSED.labels(outcome="dead_lettered").inc()
                else:
                    self._reply(job, formatting.format_error_reply(job, exc, will_retry=True))
                    JOBS_PROCESSED.labels(outcome="retried").inc()
                return False
            finally:
                JOBS_IN_FLIGHT.dec()

            JOBS_PROCESSED.labels(outcome="succeeded").inc()
            logger.info("Job completed")
            return True

    def poll_once(self) -> bool:
        """Wait for one job and process it.

        A payload that cannot be decoded is recorded in the dead-letter queue
        as-is; it has no reply address to notify.

        Returns:
            True if a payload was dequeued, False on timeout.
        """
        try:
            job = self._queue.dequeue_blocking(self._dequeue_timeout)
        except InvalidJobPayloadError as exc:
            self._queue.dead_letter_raw(exc.payload, str(exc))
            JOBS_PROCESSED.labels(outcome="malformed").inc()
            return True

        if job is None:
            return False

        self.process_job(job)
        return True

    def _reply(self, job: EmailJob, reply: EmailReply) -> None:
        send_reply_logged(self._mailer, self._from_domain, job, reply)


async def _wait(shutdown: asyncio.Event, seconds: float) -> None:
    """Sleep for *seconds* or until *shutdown* is set."""
    try:
        await asyncio.wait_for(shutdown.wait(), timeout=seconds)
    except TimeoutError:
        pass


async def run_worker(
    worker: Worker,
    shutdown: asyncio.Event,
    *,
    error_backoff: float = ERROR_BACKOFF_SECONDS,
) -> None:
    """Process jobs until *shutdown* is set.

    A Redis error backs the loop off for *error_backoff* seconds instead of
    ending it.
    """
    logger.info("Worker started")
    while not shutdown.is_set():
        try:
            await asyncio.to_thread(worker.poll_once)
        except redis.RedisError:
            logger.exception("Queue unavailable, backing off", backoff=error_backoff)
            await _wait(shutdown, error_backoff)
    logger.info("Worker stopped")


async def run_retry_promoter(
    queue: JobQueue,
    shutdown: asyncio.Event,
    *,
    interval: float = 1.0,
) -> None:
    """Promote due retries every *interval* seconds until *shutdown* is set."""
    logger.info("Retry promoter started", interval=interval)
    while not shutdown.is_set():
        try:
            await asyncio.to_thread(queue.promote_due)
        except redis.RedisError:
            logger.exception("Retry promotion failed")
        await _wait(shutdown, interval)
    logger.info("Retry promoter stopped")
