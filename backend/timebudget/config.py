from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="TB_", case_sensitive=False)
    """Application runtime configuration."""

    app_name: str = "TimeBudget"
    host: str = "127.0.0.1"
    port: int = 8080

    sqlite_path: Path = Path("./data/timebudget.db")

    timezone: str = os.getenv("TZ", "Europe/Berlin")
    log_level: str = "INFO"

    # Timer policy
    concurrent_window_minutes: float = Field(default=0.5, ge=0)
    stale_after_minutes: float = Field(default=24 * 60, gt=0)
    single_running: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if not value:
            return "INFO"
        return str(value).strip().upper()


settings = Settings()

# The SQLite file needs its parent directory
settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
