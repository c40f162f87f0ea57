"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Rent Reminders"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/reminders.db"

    # Cron entry point
    cron_secret: str

    # Reminders
    reminder_retention_days: int = 90

    # Paths
    base_dir: Path = Path(__file__).parent
    configs_dir: Path = base_dir / "configs"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("cron_secret")
    @classmethod
    def validate_cron_secret(cls, value: str) -> str:
        """Fail closed if CRON_SECRET is weak or placeholder quality."""
        if not value:
            raise ValueError("CRON_SECRET must be set.")

        if len(value) < 32:
            raise ValueError("CRON_SECRET must be at least 32 characters.")

        weak_values = {"changeme", "your-cron-secret", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered or "your-cron-secret" in lowered:
            raise ValueError("CRON_SECRET must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("CRON_SECRET entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("reminder_retention_days")
    @classmethod
    def validate_retention_days(cls, value: int) -> int:
        if value < 1:
            raise ValueError("REMINDER_RETENTION_DAYS must be at least 1.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
