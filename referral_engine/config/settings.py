"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq and the sweep lock)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    # Day boundaries for daily task bonuses
    timezone: str = Field(
        default="Asia/Karachi",
        description="IANA timezone used to compute the start of a task day",
    )
    default_daily_task_quota: int = Field(
        default=10,
        gt=0,
        description="Daily task quota when user has neither plan nor position",
    )

    # Daily bonus sweep
    daily_bonus_sweep_enabled: bool = Field(
        default=True,
        description="Allow the scheduled daily bonus sweep to run",
    )
    daily_bonus_lock_timeout: int = Field(
        default=600,
        gt=0,
        description="Distributed lock timeout for the sweep, in seconds",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject timezone names unknown to the tz database."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return level

    @property
    def tzinfo(self) -> ZoneInfo:
        """Configured timezone as tzinfo."""
        return ZoneInfo(self.timezone)


# Global settings instance
settings = Settings()
