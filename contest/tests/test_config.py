"""Tests for settings loading and environment checks."""

from datetime import timedelta
from pathlib import Path

import pytest

from contest.config import (
    check_required_env_vars,
    get_allowed_origins,
    load_settings,
)
from contest.errors import ConfigurationError


@pytest.fixture
def env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "DEDUPE_SALT",
        "REMINDER_OFFSET_MINUTES",
        "STORE_TIMEOUT_SECONDS",
        "EMAIL_TIMEOUT_SECONDS",
        "SCHEDULER_TIMEOUT_SECONDS",
        "CONTEST_RULES_PATH",
        "LANDING_PAGE_URL",
        "FRONTEND_URL",
        "ADMIN_API_TOKEN",
        "RAILWAY_ENVIRONMENT",
        "DEV_MODE",
        "FROM_EMAIL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/contest")
    monkeypatch.setenv("DEDUPE_SALT", "a-long-random-secret")
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, env):
        settings = load_settings()

        assert settings.reminder_offset == timedelta(days=3)
        assert settings.store_timeout_seconds == 10.0
        assert settings.sendgrid_api_key is None
        assert settings.contest_rules_path is None

    def test_overrides(self, env):
        env.setenv("REMINDER_OFFSET_MINUTES", "90")
        env.setenv("LANDING_PAGE_URL", "https://contest.example.com/")
        env.setenv("SCHEDULER_TIMEOUT_SECONDS", "2.5")
        env.setenv("CONTEST_RULES_PATH", "/etc/contest/rules.yaml")

        settings = load_settings()

        assert settings.reminder_offset == timedelta(minutes=90)
        assert settings.landing_page_url == "https://contest.example.com"
        assert settings.contest_rules_path == Path("/etc/contest/rules.yaml")
        assert settings.scheduler_timeout_seconds == 2.5

    def test_missing_database_url(self, env):
        env.delenv("DATABASE_URL")
        with pytest.raises(ConfigurationError):
            load_settings()

    @pytest.mark.parametrize("salt", ["", "replace-me", "  CHANGEME "])
    def test_placeholder_salt_rejected(self, env, salt):
        env.setenv("DEDUPE_SALT", salt)
        with pytest.raises(ConfigurationError):
            load_settings()

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_bad_numbers_rejected(self, env, value):
        env.setenv("REMINDER_OFFSET_MINUTES", value)
        with pytest.raises(ConfigurationError):
            load_settings()


class TestCheckRequiredEnvVars:
    def test_production_missing_is_error(self, env):
        env.setenv("RAILWAY_ENVIRONMENT", "production")
        env.delenv("DEDUPE_SALT")

        ok, messages = check_required_env_vars()

        assert ok is False
        assert any(m.startswith("DEDUPE_SALT") for m in messages)

    def test_dev_mode_only_warns_for_required(self, env):
        env.setenv("DEV_MODE", "true")

        ok, messages = check_required_env_vars()

        assert ok is True
        assert not any(m.startswith("SENDGRID_API_KEY") for m in messages)


class TestAllowedOrigins:
    def test_includes_configured_urls_once(self, env):
        env.setenv("FRONTEND_URL", "https://contest.example.com/")
        env.setenv("LANDING_PAGE_URL", "https://contest.example.com")

        origins = get_allowed_origins()

        assert origins.count("https://contest.example.com") == 1
        assert "http://localhost:3000" in origins
