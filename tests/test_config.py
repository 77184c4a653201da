"""Tests for environment-driven settings."""

import pytest

from m3u_relay.config import DEFAULT_USER_AGENT, ENV_PREFIX, Settings, load_settings

ENV_NAMES = (
    "HOST",
    "PORT",
    "DEBUG",
    "LOG_LEVEL",
    "MAX_UPLOAD_MB",
    "CHUNK_SIZE",
    "RELAY_CHUNK_SIZE",
    "CONNECT_TIMEOUT",
    "READ_TIMEOUT",
    "USER_AGENT",
    "ACCEPT_LANGUAGE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings(dotenv=False)
        assert settings == Settings()
        assert settings.max_upload_bytes == 50 * 1024 * 1024
        assert settings.user_agent == DEFAULT_USER_AGENT

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("M3U_RELAY_PORT", "9000")
        monkeypatch.setenv("M3U_RELAY_DEBUG", "yes")
        monkeypatch.setenv("M3U_RELAY_LOG_LEVEL", "debug")
        monkeypatch.setenv("M3U_RELAY_MAX_UPLOAD_MB", "5")
        monkeypatch.setenv("M3U_RELAY_READ_TIMEOUT", "2.5")
        monkeypatch.setenv("M3U_RELAY_USER_AGENT", "Player/2")

        settings = load_settings(dotenv=False)

        assert settings.port == 9000
        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.max_upload_bytes == 5 * 1024 * 1024
        assert settings.max_upload_mb == 5
        assert settings.read_timeout == 2.5
        assert settings.user_agent == "Player/2"

    def test_malformed_numbers_are_ignored(self, monkeypatch):
        monkeypatch.setenv("M3U_RELAY_PORT", "eighty")
        monkeypatch.setenv("M3U_RELAY_CONNECT_TIMEOUT", "soon")
        settings = load_settings(dotenv=False)
        assert settings.port == 8000
        assert settings.connect_timeout == 10.0
