"""Unit tests for handle settings."""

import pytest
from pydantic import ValidationError

from src.settings.app import EasySettings, get_settings


class TestEasySettings:
    """Tests for EasySettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults allow 40 retries and no user agent."""
        for name in ("EASY_MAX_RETRIES", "EASY_USER_AGENT", "EASY_VERBOSE"):
            monkeypatch.delenv(name, raising=False)

        settings = EasySettings(_env_file=None)

        assert settings.max_retries == 40
        assert settings.user_agent is None
        assert settings.verbose is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """EASY_-prefixed variables override defaults."""
        monkeypatch.setenv("EASY_MAX_RETRIES", "5")
        monkeypatch.setenv("EASY_USER_AGENT", "bot/1.0")
        monkeypatch.setenv("EASY_VERBOSE", "true")

        settings = get_settings()

        assert settings.max_retries == 5
        assert settings.user_agent == "bot/1.0"
        assert settings.verbose is True

    def test_negative_retries_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The retry limit cannot be negative."""
        monkeypatch.setenv("EASY_MAX_RETRIES", "-1")

        with pytest.raises(ValidationError):
            EasySettings(_env_file=None)
