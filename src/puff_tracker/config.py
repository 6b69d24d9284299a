"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    cache_dir: Path = Path(".cache/puff_tracker")
    profile_cache_key: str = "cachedUserProfile"
    profile_cache_ttl_seconds: int = 3600
    entries_page_size: int = 20
    timezone: str = "UTC"
    locale: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
