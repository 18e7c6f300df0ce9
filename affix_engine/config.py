"""
Engine configuration settings.
"""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings


class EngineSettings(BaseSettings):
    """Engine settings."""

    # Logging
    LOG_LEVEL: str = "INFO"

    # Run affix offers
    DEFAULT_OFFER_COUNT: int = 3

    # Dice
    DEFAULT_HAND_SIZE: int = 5

    # Authored content
    DATA_DIR: Path = Path(__file__).parent.parent / "data"

    model_config = {"env_file": ".env", "env_prefix": "AFFIX_ENGINE_", "extra": "ignore"}


settings = EngineSettings()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
