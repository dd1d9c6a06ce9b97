"""
Application configuration using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Tuning knobs for the pagination/persistence engine."""

    model_config = SettingsConfigDict(env_prefix="INGEST_")

    default_query: str = Field(
        default="LightSpeed",
        description="Search string used when the caller sends no `q`",
    )
    default_max_results: int = Field(default=200, ge=1)
    page_size: int = Field(
        default=100,
        ge=1,
        description="Posts requested per upstream page",
    )
    persist_batch_size: int = Field(
        default=10,
        ge=1,
        description="Articles persisted concurrently per sub-batch",
    )

    # Pacing and retry
    inter_request_delay_ms: int = Field(default=1500, ge=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(
        default=3000,
        ge=0,
        description="Linear backoff step: delay = base * attempt",
    )

    # Response shaping
    response_id_limit: int = Field(default=100, ge=0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Webz News Ingest"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./news_ingest.db",
        description="Async database URL (SQLAlchemy format)",
    )

    # Upstream news API
    webz_api_url: str = Field(default="https://api.webz.io/newsApiLite")
    webz_api_key: str | None = Field(default=None)
    webz_pagination_base_url: str = Field(
        default="https://api.webz.io",
        description="Base used to resolve relative `next` cursors",
    )
    request_timeout_seconds: float = Field(default=15.0, gt=0)

    # Ingestion engine (nested)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
