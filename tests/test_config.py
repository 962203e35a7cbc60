"""Tests for Settings, credential validation and the get_settings cache."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from mailagent.config import Settings, get_settings, validate_credentials

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


def _complete(**overrides) -> Settings:
    values = {
        "resend_api_key": "re_test",
        "from_domain": "mail.example.com",
        "github_owner": "acme",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.health_port == 8080
        assert s.redis_url == "redis://localhost:6379/0"
        assert s.redis_prefix == "email_claude:"
        assert s.dequeue_timeout_seconds == 30
        assert s.sessions_db_path == Path("data/sessions.db")
        assert s.agent_command == "claude"
        assert s.agent_timeout_seconds is None
        assert s.resend_api_key.get_secret_value() == ""

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.setenv("REDIS_URL", "redis://queue:6379/2")
        monkeypatch.setenv("RESEND_API_KEY", "re_secret")
        monkeypatch.setenv("AGENT_TIMEOUT_SECONDS", "900")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.redis_url == "redis://queue:6379/2"
        assert s.resend_api_key.get_secret_value() == "re_secret"
        assert s.agent_timeout_seconds == 900.0
        assert "re_secret" not in repr(s)


# ---------------------------------------------------------------------------
# Credential validation
# ---------------------------------------------------------------------------


class TestValidateCredentials:
    def test_production_missing_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        settings = _complete(production=True, resend_api_key="")

        with patch("mailagent.config.shutil.which", return_value="/usr/bin/tool"):
            with pytest.raises(SystemExit) as exc_info:
                validate_credentials(settings)

        assert exc_info.value.code == 1
        assert "RESEND_API_KEY" in capsys.readouterr().err

    def test_production_missing_executable_exits(self) -> None:
        settings = _complete(production=True)

        with patch("mailagent.config.shutil.which", return_value=None):
            with pytest.raises(SystemExit):
                validate_credentials(settings)

    def test_production_valid(self) -> None:
        settings = _complete(production=True)

        with patch("mailagent.config.shutil.which", return_value="/usr/bin/tool"):
            validate_credentials(settings)

    def test_dev_mode_warns_without_exit(self) -> None:
        settings = Settings(_env_file=None, production=False)  # type: ignore[call-arg]

        with patch("mailagent.config.shutil.which", return_value=None):
            validate_credentials(settings)


class TestGetSettingsCached:
    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRODUCTION", raising=False)

        assert get_settings() is get_settings()
