"""Engine defaults loaded from the environment."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Puzzle engine settings configuration."""

    # Autogeneration defaults
    DEFAULT_HORIZONTAL_PIECES_COUNT: int = 5
    DEFAULT_VERTICAL_PIECES_COUNT: int = 5

    # Canvas geometry defaults, in canvas units
    DEFAULT_PIECE_SIZE: float = 50.0
    DEFAULT_PROXIMITY: float = 10.0

    # Ratio between canvas units and puzzle units; reserves the stroke/border
    # margin around each rendered edge.
    CANVAS_SCALE_FACTOR: float = 2.0

    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", env_prefix="PUZZLE_")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create instance
settings = get_settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the ``puzzle_engine`` logger.

    Args:
        level: Logging level name. Defaults to ``settings.LOG_LEVEL``.
    """
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("puzzle_engine").setLevel((level or settings.LOG_LEVEL).upper())
