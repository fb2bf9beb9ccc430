"""
Centralized configuration for the FamilyHub backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, EMAIL_*).
"""

from functools import lru_cache
from typing import Literal
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
    app_name: str = "FamilyHub API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000", "https://familyhub.care"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["Content-Type", "Authorization", "X-Requested-With"]
    cors_max_age: int = 86400

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Backends
    storage_backend: Literal["supabase", "memory"] = "supabase"
    identity_backend: Literal["supabase", "memory"] = "supabase"
    email_backend: Literal["console", "relay"] = "console"

    # Email relay
    email_relay_url: str = ""
    email_relay_api_key: str = ""
    email_relay_timeout: float = 10.0
    email_from_address: str = "FamilyHub <noreply@familyhub.care>"

    # Frontend URLs (for links in emails)
    app_url: str = "http://localhost:3000"

    # Token lifetimes
    verification_code_ttl_minutes: int = 15
    login_code_ttl_minutes: int = 10
    backup_recovery_code_ttl_minutes: int = 10
    magic_link_ttl_minutes: int = 15
    invitation_ttl_days: int = 7
    recovery_code_ttl_days: int = 730

    # Rate limiting
    rate_limit_fail_closed: bool = False

    # Signup policy
    disposable_email_domains: list[str] = [
        "10minutemail.com",
        "tempmail.org",
        "guerrillamail.com",
        "mailinator.com",
        "throwaway.email",
    ]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
