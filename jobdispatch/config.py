"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

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

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Scheduler Configuration
    scheduler_enabled: bool = True
    scheduler_poll_interval_ms: int = Field(default=10_000, gt=0)
    scheduler_max_retries: int = Field(default=3, ge=0)
    scheduler_pool_size: int = Field(default=2, ge=1)
    scheduler_shutdown_await_ms: int = Field(default=5_000, gt=0)

    # Worker liveness
    worker_heartbeat_timeout_ms: int = Field(default=30_000, gt=0)
    liveness_interval_ms: int = Field(default=10_000, gt=0)

    # Dispatch Configuration
    dispatch_timeout_ms: int = Field(default=5_000, gt=0)
    dispatch_max_attempts: int = Field(default=3, ge=1)
    dispatch_backoff_ms: int = Field(default=500, ge=0)
    dispatch_backoff_multiplier: float = Field(default=2.0, ge=1.0)
    dispatch_path: str = "/execute-job"

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "job-dispatcher"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
