"""Tenacity retry decorator for outbound API calls (mail delivery).

This is the in-process layer: a few quick attempts with jittered backoff.
If they are exhausted the exception propagates to the worker, whose
queue-level retry engine takes over.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def _api_name(retry_state: RetryCallState) -> str:
    return getattr(retry_state.fn, "_api_name", "unknown") if retry_state.fn else "unknown"


def _before_sleep_log(retry_state: RetryCallState) -> None:
    logger.warning(
        "Retrying API call",
        api_name=_api_name(retry_state),
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def _log_final_failure(retry_state: RetryCallState) -> Any:
    """Log exhaustion, then re-raise the last exception."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.error(
        "API call failed after all retries",
        api_name=_api_name(retry_state),
        attempts=retry_state.attempt_number,
        exception=str(exception),
    )
    if exception is not None:
        raise exception
    return None


def resilient_api_call(
    api_name: str,
    *,
    attempts: int = 3,
    initial_wait: float = 1,
    max_wait: float = 30,
    jitter: float = 5,
) -> Callable[[F], F]:
    """Create a retry decorator for an API call.

    Args:
        api_name: Name used in log events.
        attempts: Total attempts including the first.
        initial_wait: First backoff in seconds.
        max_wait: Backoff ceiling in seconds.
        jitter: Maximum random jitter added to each wait.

    Returns:
        A decorator that retries the wrapped function and re-raises the
        original exception once attempts are exhausted.
    """

    def decorator(func: F) -> F:
        func._api_name = api_name  # type: ignore[attr-defined]

        return retry(  # type: ignore[return-value]
            stop=stop_after_attempt(attempts),
            wait=wait_exponential_jitter(initial=initial_wait, max=max_wait, jitter=jitter),
            before_sleep=_before_sleep_log,
            retry_error_callback=_log_final_failure,
        )(func)

    return decorator
