"""
Tests for environment-driven settings.
"""

import logging

import pytest
from pydantic import ValidationError

from mentalpoker.config import Settings, configure_logging
from mentalpoker.core.rules import DEFAULT_SLASH_PERCENTAGE, DEFAULT_TIMEOUT_SECONDS
from mentalpoker.session import GameSession


@pytest.fixture
def clean_env(monkeypatch):
    """No MENTALPOKER_* variables set."""
    for name in ("TIMEOUT_SECONDS", "SLASH_PERCENTAGE", "LOG_LEVEL", "MAX_PLAYERS"):
        monkeypatch.delenv(f"MENTALPOKER_{name}", raising=False)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert settings.slash_percentage == DEFAULT_SLASH_PERCENTAGE
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("MENTALPOKER_TIMEOUT_SECONDS", "30")
        clean_env.setenv("MENTALPOKER_SLASH_PERCENTAGE", "50")
        clean_env.setenv("MENTALPOKER_LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.timeout_seconds == 30
        assert settings.slash_percentage == 50
        assert settings.log_level == "DEBUG"

    def test_out_of_range(self, clean_env):
        clean_env.setenv("MENTALPOKER_SLASH_PERCENTAGE", "150")
        with pytest.raises(ValidationError):
            Settings.from_env()

    def test_configure_logging(self):
        configure_logging("warning")
        assert logging.getLogger().level <= logging.WARNING


class TestSessionDefaults:
    """New games pick up the session's settings."""

    def test_timeout_and_slash_defaults(self, store, ledger, clock):
        session = GameSession(store, ledger, clock=clock, settings=Settings(timeout_seconds=10, slash_percentage=50))
        config = session.create_game("host", "g1", max_players=2, small_blind=5, min_buy_in=100)
        assert config["timeout_seconds"] == 10
        assert config["slash_percentage"] == 50

        session.join("g1", "alice", 200)
        session.join("g1", "bob", 200)
        clock.advance(11)
        assert session.slash("g1", "alice") == 100

    def test_explicit_values_win(self, session):
        config = session.create_game(
            "host", "g1", max_players=3, small_blind=5, min_buy_in=100,
            timeout_seconds=60, slash_percentage=0,
        )
        assert config["timeout_seconds"] == 60
        assert config["slash_percentage"] == 0
