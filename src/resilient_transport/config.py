"""
Configuration settings for the resilient HTTP transport.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "resilient-transport"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry & Backoff ===
    RETRY_BACKOFF_TIMEOUT: float = 60.0  # total retry budget, seconds
    RETRY_MAX_INTERVAL: float = 5.0  # cap for a single backoff interval
    RETRY_RANDOMIZATION_FACTOR: float = 0.5  # additive jitter, [0, 1]
    RETRY_REQUEST_TIMEOUT: Optional[float] = None  # per-attempt deadline

    # === Diagnostics ===
    RETRY_LOG_REQUEST: bool = False  # attach request dumps to retry errors
    RETRY_LOG_RESPONSE: bool = False  # attach response dumps to retry errors
    RETRY_DUMP_MAX_CHARS: int = 4096  # longest dump kept in a log event

    # === Monitoring ===
    METRICS_ENABLED: bool = True


# Global settings instance
settings = Settings()
