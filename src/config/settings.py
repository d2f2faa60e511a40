"""
VibeJo - Application Settings

Loads configuration from environment variables using Pydantic Settings
and applies the configured log level.
"""

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Table
    human_player_id: str = "1"
    human_name: str = "Player 1"
    bot_count: int = Field(default=2, ge=1, le=3)
    target_score: int = Field(default=100, gt=0)

    # Bot pacing (milliseconds)
    bot_delay_min_ms: float = Field(default=100, ge=0)
    bot_delay_max_ms: float = Field(default=300, ge=0)

    # Application
    debug: bool = False
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def _check_delay_range(self) -> "Settings":
        if self.bot_delay_min_ms > self.bot_delay_max_ms:
            raise ValueError("bot_delay_min_ms must not exceed bot_delay_max_ms")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=_LOG_FORMAT)
