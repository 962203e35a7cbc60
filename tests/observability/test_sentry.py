"""Tests for Sentry SDK initialization and the structlog-sentry bridge."""

from __future__ import annotations

from unittest.mock import patch

from mailagent.observability.sentry import get_sentry_processor, init_sentry


def test_init_sentry_noop_with_empty_dsn() -> None:
    with patch("mailagent.observability.sentry.sentry_sdk.init") as mock_init:
        assert init_sentry("") is False
        mock_init.assert_not_called()


def test_init_sentry_calls_sdk_with_dsn() -> None:
    test_dsn = "https://examplePublicKey@o0.ingest.sentry.io/0"
    with patch("mailagent.observability.sentry.sentry_sdk.init") as mock_init:
        assert init_sentry(test_dsn, environment="production") is True

    kwargs = mock_init.call_args.kwargs
    assert kwargs["dsn"] == test_dsn
    assert kwargs["environment"] == "production"
    assert kwargs["send_default_pii"] is False
    assert kwargs["traces_sample_rate"] == 0.0


def test_get_sentry_processor_returns_callable() -> None:
    assert callable(get_sentry_processor())
