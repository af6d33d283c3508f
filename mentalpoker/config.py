"""Runtime configuration and logging setup."""

from __future__ import annotations
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from mentalpoker.core.rules import (
    DEFAULT_TIMEOUT_SECONDS, DEFAULT_SLASH_PERCENTAGE, MIN_PLAYERS, MAX_PLAYERS,
)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    """Defaults applied to new games, loaded from environment variables."""

    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    slash_percentage: int = Field(default=DEFAULT_SLASH_PERCENTAGE, ge=0, le=100)
    log_level: str = "INFO"
    max_players: int = Field(default=MAX_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)

    @classmethod
    def from_env(cls) -> Settings:
        """Read MENTALPOKER_* variables, after loading a .env file if present."""
        load_dotenv()
        return cls(
            timeout_seconds=int(os.getenv("MENTALPOKER_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))),
            slash_percentage=int(os.getenv("MENTALPOKER_SLASH_PERCENTAGE", str(DEFAULT_SLASH_PERCENTAGE))),
            log_level=os.getenv("MENTALPOKER_LOG_LEVEL", "INFO").upper(),
            max_players=int(os.getenv("MENTALPOKER_MAX_PLAYERS", str(MAX_PLAYERS))),
        )


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler. Only entry points call this."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
