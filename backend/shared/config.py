"""
Centralized configuration for the Campus Portal backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, PROFILE_*).
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
    app_name: str = "Campus Portal API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Supabase (identity provider + profile store)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"

    # Profiles
    profiles_table: str = "profiles"
    profile_store_backend: str = "supabase"  # "supabase" or "memory"
    placeholder_email_domain: str = "phone.placeholder.invalid"

    # Phone sign-in
    challenge_anchor_id: str = "phone-sign-in"
    otp_expiry_seconds: int = 600


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
