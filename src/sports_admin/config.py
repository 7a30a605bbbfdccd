"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Data-layer settings loaded from ``SPORTS_ADMIN_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="SPORTS_ADMIN_", env_file=None)

    # Backend
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout_seconds: float = 10.0
    auth_token: Optional[str] = None

    # Stores
    default_page_size: int = 10
    cache_reads: bool = True
    cache_ttl_seconds: Optional[float] = None

    # Retries (network, timeout and 5xx failures only)
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_backoff_factor: float = 2.0
    retry_max_delay: float = 10.0

    # Debug
    trace_http: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
