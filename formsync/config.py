"""Configuration settings for the form sync client."""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Backend API
    api_base_url: str = "http://localhost:4000"
    api_token: str = ""  # Bearer token, sent when non-empty
    request_timeout_seconds: float = 30.0

    # Durable queue store
    queue_backend: str = "file"  # "file", "redis" or "memory"
    queue_storage_key: str = "autosave_queue"
    queue_file_path: str = ".formsync/autosave_queue.json"
    redis_url: str = "redis://localhost:6379"
    storage_fail_open: bool = True  # False: raise StorageError instead of treating the queue as empty

    # Autosave
    debounce_ms: int = 2000

    # Retry policy
    max_attempts: int = 5
    backoff_base_ms: int = 1000
    backoff_max_ms: int = 60000

    # Report polling
    poll_interval_ms: int = 1500
    poll_timeout_ms: int = 60000
    poll_max_consecutive_errors: Optional[int] = None  # None = retry fetch errors until timeout

    # Connectivity
    connectivity_check_url: Optional[str] = None  # Defaults to {api_base_url}/api/health
    connectivity_check_interval_seconds: float = 5.0

    # Server
    port: int = 5055
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "text"

    # CORS (comma-separated list of allowed origins)
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def health_url(self) -> str:
        return self.connectivity_check_url or f"{self.api_base_url.rstrip('/')}/api/health"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clear_settings_cache():
    """Clear settings cache (useful for testing)."""
    get_settings.cache_clear()
