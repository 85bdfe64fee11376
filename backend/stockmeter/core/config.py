"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "StockMeter API"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8001

    # Database (async SQLAlchemy URL)
    database_url: str = "sqlite+aiosqlite:///./data/stockmeter.db"

    # Redis (quota counters)
    redis_url: str = "redis://localhost:6379"

    # CORS
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # Admission I/O timeouts (seconds)
    lookup_timeout_seconds: float = 2.0
    quota_timeout_seconds: float = 1.0
    audit_timeout_seconds: float = 2.0

    # Quota windows (seconds)
    daily_window_seconds: int = 86400
    minute_window_seconds: int = 60

    # Pagination
    default_page_size: int = 20
    stock_list_max_limit: int = 100
    series_max_limit: int = 500

    # Indicator defaults
    default_sma_period: int = 20
    default_rsi_period: int = 14

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
