"""Sentry reporting for the worker, bridged from structlog.

``init_sentry`` is a no-op without a DSN.  Once initialized, ERROR-level log
events (job failures, dead-lettered jobs) are forwarded to Sentry by the
processor returned from ``get_sentry_processor``.
"""

from __future__ import annotations

import logging

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor


def init_sentry(dsn: str, *, environment: str = "development") -> bool:
    """Initialize the Sentry SDK when *dsn* is set.

    Args:
        dsn: Sentry DSN string.  Empty string disables Sentry.
        environment: Reported environment name.

    Returns:
        True if the SDK was initialized.
    """
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.0,
        send_default_pii=False,
        # structlog-sentry reports errors; stdlib capture would duplicate them
        integrations=[LoggingIntegration(event_level=None, level=None)],
    )
    return True


def get_sentry_processor() -> structlog.types.Processor:
    """Return a structlog processor forwarding ERROR events to Sentry.

    Goes after ``add_log_level`` and before the renderer.
    """
    return SentryProcessor(event_level=logging.ERROR, tag_keys=["job_id", "session_id"])
