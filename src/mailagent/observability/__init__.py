"""Metrics and error reporting for the worker process."""
