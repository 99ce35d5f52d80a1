"""
Centralized configuration for the Tradepost backend.

All settings are loaded from environment variables (prefixed with TRADEPOST_)
with sensible defaults. Supabase settings are grouped under supabase_*.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADEPOST_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Tradepost"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_db_url: str = ""  # direct Postgres URL, migrations only

    # Identity
    oauth_redirect_url: str = "http://localhost:3000/auth/callback"
    password_reset_redirect_url: str = ""

    # Document store
    users_collection: str = "users"
    default_query_limit: int = 20

    # Profile defaults
    default_rating: float = 5.0


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
