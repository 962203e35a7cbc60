"""Health and readiness endpoints served next to the worker.

- ``GET /health`` -- Liveness probe.  Returns 200 while the process is up.
- ``GET /ready``  -- Readiness probe.  Returns 200 only when Redis answers
  ``PING`` and the session database answers a query, with queue depths
  included.  Returns 503 with per-check details otherwise.
- ``GET /metrics`` -- Prometheus exposition.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mailagent.jobs.queue import JobQueue
from mailagent.observability.metrics import setup_metrics

logger = structlog.get_logger()


def _queue_depths(queue: JobQueue) -> dict[str, int]:
    return {
        "pending": queue.pending_count(),
        "retry": queue.scheduled_count(),
        "dead_letter": queue.dead_letter_count(),
    }


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` on *app*.

    ``/ready`` reads ``app.state.queue`` and ``app.state.sessions_conn``.
    """

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        queue: JobQueue = request.app.state.queue
        conn: sqlite3.Connection = request.app.state.sessions_conn
        checks: dict[str, str] = {}
        body: dict[str, Any] = {}

        try:
            await asyncio.to_thread(queue.ping)
            body["queues"] = await asyncio.to_thread(_queue_depths, queue)
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Readiness check failed", check="redis", exc_info=True)
            checks["redis"] = "fail"

        try:
            await asyncio.to_thread(conn.execute, "SELECT 1")
            checks["sessions_db"] = "ok"
        except Exception:
            logger.warning("Readiness check failed", check="sessions_db", exc_info=True)
            checks["sessions_db"] = "fail"

        all_ok = all(v == "ok" for v in checks.values())
        body["status"] = "ready" if all_ok else "not_ready"
        body["checks"] = checks
        return JSONResponse(content=body, status_code=200 if all_ok else 503)


def create_health_app(queue: JobQueue, sessions_conn: sqlite3.Connection) -> FastAPI:
    """Build the probe app for *queue* and the session database."""
    app = FastAPI(title="Mail Agent Worker")
    app.state.queue = queue
    app.state.sessions_conn = sessions_conn
    register_health_routes(app)
    setup_metrics(app)
    return app
