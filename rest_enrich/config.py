"""Application configuration for the REST enrichment service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="REST_ENRICH_", extra="allow")

    # General
    environment: str = "development"
    log_level: str = "INFO"

    # Filter definition (request template, target, fallback, tags)
    filter_config_path: str = "filters/rest.json"

    # HTTP executor
    request_timeout_seconds: float = Field(default=10.0, description="Per-request timeout owned by the executor")
    user_agent: str = Field(default="rest-enrich/1.0", description="Default User-Agent header")

    # Pipeline driver
    max_concurrent_records: int = Field(default=8, ge=1)
    batch_size: int = Field(default=50, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
