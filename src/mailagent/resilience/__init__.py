"""Retry policy for calls to external HTTP APIs."""

from mailagent.resilience.retry import resilient_api_call

__all__ = ["resilient_api_call"]
