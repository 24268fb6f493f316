"""
Application configuration using Pydantic Settings.

Values are read from environment variables (and an optional .env file).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./schedule_engine.db"

    # ===========================================
    # Rule resolution bounds
    # ===========================================
    # Maximum one-day advances a single blackout rule may perform
    BLACKOUT_MAX_ATTEMPTS: int = Field(default=365, ge=1)
    # Maximum re-evaluations of a business-days rule (weekend/holiday rechecks)
    BUSINESS_DAY_MAX_PASSES: int = Field(default=365, ge=1)
    # Maximum full passes over all rules before giving up on a stable date
    RULE_MAX_PASSES: int = Field(default=8, ge=1)

    # ===========================================
    # Occurrence calculation
    # ===========================================
    SEASONAL_SCAN_MONTHS: int = Field(default=12, ge=1)
    UPCOMING_OCCURRENCES_LIMIT: int = Field(default=10, ge=1)
    DUE_SCHEDULES_LIMIT: int = Field(default=500, ge=1)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
