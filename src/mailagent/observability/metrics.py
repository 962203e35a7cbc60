"""Prometheus metrics instrumentation for the email agent worker.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to the
  probe app, exposing ``/metrics`` alongside the custom job metrics.
- Job pipeline counters and the in-flight gauge, updated where the events
  happen (queue operations and the worker loop), never by polling Redis.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

JOBS_PROCESSED: Counter = Counter(
    "mailagent_jobs_processed_total",
    "Jobs taken off the pending queue, by outcome",
    ["outcome"],
)

RETRIES_SCHEDULED: Counter = Counter(
    "mailagent_retries_scheduled_total",
    "Failed jobs handed to the retry queue",
)

JOBS_DEAD_LETTERED: Counter = Counter(
    "mailagent_jobs_dead_lettered_total",
    "Jobs moved to the dead-letter queue",
)

JOBS_PROMOTED: Counter = Counter(
    "mailagent_jobs_promoted_total",
    "Retry entries moved back to the pending queue",
)

JOBS_IN_FLIGHT: Gauge = Gauge(
    "mailagent_jobs_in_flight",
    "Jobs currently being processed by this worker",
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
