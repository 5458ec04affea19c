"""Configuration management for recipe-planner."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"
    log_level: str = "info"

    # Which record store to read from. Defaults to test for safety.
    database: Literal["production", "test"] = "test"

    # Supabase (production)
    supabase_url: str
    supabase_key: str

    # Supabase (test copy of the record tables)
    supabase_test_url: str | None = None
    supabase_test_key: str | None = None

    # API Security
    api_key: str | None = None

    # Limits
    max_planned_meals: int = 200

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def record_store_url(self) -> str:
        """URL of the record store selected by `database`."""
        if self.database == "test" and self.supabase_test_url:
            return self.supabase_test_url
        return self.supabase_url

    @property
    def record_store_key(self) -> str:
        if self.database == "test" and self.supabase_test_key:
            return self.supabase_test_key
        return self.supabase_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
