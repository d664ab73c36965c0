"""Application configuration using pydantic-settings."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_cache_dir() -> Path:
    """Per-user cache location, following the XDG base directory convention."""
    base = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
    return Path(base) / "reeltracker"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AMC catalog API
    amc_api_key: str = ""
    amc_base_url: str = "https://api.amctheatres.com/v2"
    request_timeout: int = 30

    # Fetch sizing
    showtimes_page_size: int = 1000
    movies_batch_size: int = 50
    window_page_size: int = 1000
    movie_window_lookback_days: int = 30
    movie_window_lookahead_days: int = 60

    # Classification thresholds
    standard_threshold: int = 10
    special_event_threshold: int = 5
    special_event_max_days: int = 1
    inclusive_count_threshold: bool = True

    # Zone for theatres whose time zone is unknown (system zone when empty)
    local_time_zone: str = ""

    # Content cache
    cache_dir: Path | None = Field(default_factory=default_cache_dir)
    image_cache_ttl_days: float = 90
    image_cache_max_bytes: int = 100 * 1024 * 1024
    payload_cache_ttl_hours: float = 24
    payload_cache_max_bytes: int = 20 * 1024 * 1024
    memory_cache_size: int = 50
    # HTTPS hosts images may be downloaded from
    image_hosts: list[str] = ["amc-theatres-res.cloudinary.com"]
    cache_purge_interval_hours: int = 24

    # Logging
    log_level: str = "INFO"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = []


# Global settings instance
settings = Settings()
