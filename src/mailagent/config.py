"""Typed worker configuration using pydantic-settings.

``Settings`` reads environment variables and an optional ``.env`` file,
``get_settings()`` caches the parsed result, and ``validate_credentials()``
is the start-up gate for missing credentials.

This module imports nothing from ``mailagent`` so any module can use it.
"""

from __future__ import annotations

import shutil
import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Worker settings.  ``SecretStr`` fields are never rendered in logs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    health_port: int = 8080

    # -- Queue -----------------------------------------------------------------
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "email_claude:"
    dequeue_timeout_seconds: int = 30
    retry_poll_interval_seconds: float = 1.0

    # -- Storage ---------------------------------------------------------------
    sessions_db_path: Path = Path("data/sessions.db")
    projects_dir: Path = Path("projects")

    # -- Collaborators ---------------------------------------------------------
    github_owner: str = ""
    agent_command: str = "claude"
    agent_model: str = ""
    agent_timeout_seconds: float | None = None

    # -- Mail ------------------------------------------------------------------
    from_domain: str = ""
    resend_api_key: SecretStr = SecretStr("")

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings``; ``get_settings.cache_clear()`` resets it."""
    try:
        return Settings()
    except ValidationError as exc:
        # exc.errors() only; the exception text may include secret values
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Check that the worker can reach its collaborators.

    In production a missing credential prints a summary to stderr and exits
    with status 1.  In development each problem is logged as a warning.

    Args:
        settings: The loaded settings.
    """
    errors: list[str] = []

    if not settings.resend_api_key.get_secret_value():
        errors.append("RESEND_API_KEY is empty or not set")

    if not settings.from_domain:
        errors.append("FROM_DOMAIN is empty or not set")

    if not settings.github_owner:
        errors.append("GITHUB_OWNER is empty or not set")

    for tool in (settings.agent_command, "git", "gh"):
        if shutil.which(tool) is None:
            errors.append(f"Executable not found on PATH: {tool}")

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required configuration for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
