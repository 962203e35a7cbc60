"""Worker entry point.

Runs three things concurrently in one process with ``asyncio.gather``:

- the worker loop, processing one job at a time,
- the retry promoter, moving due retries back to pending every second,
- the uvicorn-served health app (``/health``, ``/ready``, ``/metrics``).

SIGINT and SIGTERM set a shared shutdown event and stop uvicorn; the worker
finishes its in-flight job before the loops return.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sqlite3
from dataclasses import dataclass

import redis
import structlog
import uvicorn

from mailagent.agent.runner import ClaudeCodeRunner
from mailagent.config import Settings, get_settings, validate_credentials
from mailagent.email.mailer import ResendMailer
from mailagent.handlers.email_job import EmailJobHandler, JobContext
from mailagent.health import create_health_app
from mailagent.jobs.queue import JobQueue
from mailagent.observability.sentry import get_sentry_processor, init_sentry
from mailagent.session.schema import init_session_db
from mailagent.session.store import SessionStore
from mailagent.vcs.git import GitClient
from mailagent.vcs.pull_requests import PullRequestClient
from mailagent.worker import Worker, dead_letter_notifier, run_retry_promoter, run_worker

logger = structlog.get_logger()


def configure_logging(production: bool = False, *, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production renders JSON at INFO; development renders colored console
    output at DEBUG.  With *sentry_enabled*, ERROR events are also forwarded
    to Sentry.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Insert the Sentry processor before the renderer.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry_enabled:
        processors.append(get_sentry_processor())

    if production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
        log_level = logging.INFO
    else:
        processors.append(structlog.dev.ConsoleRenderer())
        log_level = logging.DEBUG

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="mailagent-worker")


@dataclass
class Services:
    """Everything built once at start-up and handed to the loops."""

    settings: Settings
    redis_client: redis.Redis
    sessions_conn: sqlite3.Connection
    queue: JobQueue
    worker: Worker
    mailer: ResendMailer

    def close(self) -> None:
        self.mailer.close()
        self.redis_client.close()
        self.sessions_conn.close()


def initialize_services(settings: Settings) -> Services:
    """Connect to Redis and SQLite and wire the worker's collaborators."""
    settings.sessions_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.projects_dir.mkdir(parents=True, exist_ok=True)

    sessions_conn = init_session_db(settings.sessions_db_path)
    redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    mailer = ResendMailer(settings.resend_api_key.get_secret_value())

    queue = JobQueue(
        redis_client,
        settings.redis_prefix,
        on_dead_letter=dead_letter_notifier(mailer, settings.from_domain),
    )

    ctx = JobContext(
        store=SessionStore(sessions_conn),
        agent=ClaudeCodeRunner(
            settings.agent_command,
            model=settings.agent_model or None,
            timeout_seconds=settings.agent_timeout_seconds,
        ),
        git=GitClient(settings.projects_dir, settings.github_owner),
        pull_requests=PullRequestClient(),
        mailer=mailer,
        from_domain=settings.from_domain,
    )
    worker = Worker(
        queue,
        EmailJobHandler(ctx),
        mailer,
        settings.from_domain,
        dequeue_timeout=settings.dequeue_timeout_seconds,
    )

    return Services(
        settings=settings,
        redis_client=redis_client,
        sessions_conn=sessions_conn,
        queue=queue,
        worker=worker,
        mailer=mailer,
    )


async def _serve_health(server: uvicorn.Server, shutdown: asyncio.Event) -> None:
    try:
        await server.serve()
    finally:
        shutdown.set()


async def main() -> None:
    """Configure logging, build services and run the loops until a signal."""
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn,
        environment="production" if settings.production else "development",
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("Worker starting", redis_prefix=settings.redis_prefix)

    validate_credentials(settings)
    services = initialize_services(settings)

    health_app = create_health_app(services.queue, services.sessions_conn)
    server = uvicorn.Server(
        uvicorn.Config(health_app, host="0.0.0.0", port=settings.health_port, log_level="info")
    )

    shutdown = asyncio.Event()

    def request_shutdown() -> None:
        logger.info("Shutdown requested, draining in-flight job")
        shutdown.set()
        server.should_exit = True

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_shutdown)

    try:
        await asyncio.gather(
            run_worker(services.worker, shutdown),
            run_retry_promoter(
                services.queue, shutdown, interval=settings.retry_poll_interval_seconds
            ),
            _serve_health(server, shutdown),
        )
    finally:
        services.close()
        logger.info("Worker shut down")


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
