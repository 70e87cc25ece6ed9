"""
Name: Accounts Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables when first read
  - Provide defaults that keep the core usable without any environment

Collaborators:
  - crosscutting/logger.py: log level and format
  - crosscutting/tracing.py: otel_enabled / otel_service_name
  - crosscutting/metrics.py: metrics_enabled
  - infrastructure/repositories/cached_user_store.py: cache TTL and size

Constraints:
  - No business logic, pure configuration
  - Password hashing parameters are NOT configurable (library defaults)

Notes:
  - Singleton via lru_cache; tests call get_settings.cache_clear()
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        log_level: Root level for the accounts logger (default: INFO)
        log_json: Emit JSON records instead of plain text (default: True)
        otel_enabled: Enable OpenTelemetry tracing (default: False)
        otel_service_name: service.name resource attribute
        metrics_enabled: Record Prometheus business metrics (default: True)
        user_cache_ttl_seconds: TTL of cached user lookups (default: 300)
        user_cache_max_entries: LRU bound of the user cache (default: 10_000)
    """

    app_env: str = "development"

    # Observability
    log_level: str = "INFO"
    log_json: bool = True
    otel_enabled: bool = False
    otel_service_name: str = "accounts"
    metrics_enabled: bool = True

    # Storage cache
    user_cache_ttl_seconds: float = 300.0
    user_cache_max_entries: int = 10_000

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return level

    @field_validator("user_cache_ttl_seconds")
    @classmethod
    def cache_ttl_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("user_cache_ttl_seconds must be greater than 0")
        return v

    @field_validator("user_cache_max_entries")
    @classmethod
    def cache_size_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("user_cache_max_entries must be greater than 0")
        return v

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    return Settings()
