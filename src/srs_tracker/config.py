"""Application configuration loaded from environment variables."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INTERVALS = [1, 3, 7, 14, 30, 90, 180, 365]
DEFAULT_DB_PATH = str(Path.home() / ".srs_tracker" / "tracker.db")


class Settings(BaseSettings):
    """Settings for the scheduler, the review queue and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="SRS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Scheduling
    intervals: list[int] = Field(
        default_factory=lambda: list(DEFAULT_INTERVALS),
        description="Retention interval in days for each mastery level",
    )
    initial_interval: int = Field(default=1, description="Interval used below level 0")
    easy_bonus: float = 1.3
    hard_penalty: float = 0.6

    # Storage
    db_path: str = DEFAULT_DB_PATH

    # CLI
    learner_id: int = 1
    due_limit: int = 20
    upcoming_days: int = 7
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    return Settings()
