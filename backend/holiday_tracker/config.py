from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Holiday Tracker"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://holiday_tracker:holiday_tracker@db:5432/holiday_tracker"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Fallbacks used until an admin stores an override in system_setting.
    default_holiday_allowance: int = Field(default=20, ge=1, le=50)
    default_visibility_mode: Literal["all_see_all", "department_only", "admin_only"] = "all_see_all"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
