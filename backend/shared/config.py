"""
Centralized configuration for the Rentable client core.

All settings are loaded from environment variables with sensible defaults.
Backend-specific settings are namespaced (e.g., SUPABASE_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Rentable"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Profile storage
    profiles_table: str = "profiles"
    avatars_bucket: str = "avatars"
    max_profile_image_bytes: int = 1_048_576
    profile_image_quality: int = 70  # JPEG quality, 0-100

    # Deep links
    deep_link_scheme: str = "rentable"

    # Chat assistant
    google_api_key: str = ""
    assistant_model: str = "gemini-2.5-flash"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
