"""Application settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from CASEFLOW_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="CASEFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Database
    database_url: str = "sqlite:///./caseflow.db"
    database_echo: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
