"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000"
    frontend_url: str = "http://localhost:3000"

    # Return raw verification / magic-link tokens in API responses.
    # Never enable in production.
    expose_dev_tokens: bool = False

    # ==========================================================================
    # Authentication
    # ==========================================================================

    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    magic_link_max_uses: int = 3
    magic_link_expire_minutes: int = 15
    password_reset_expire_minutes: int = 60
    email_change_expire_minutes: int = 60

    # ==========================================================================
    # Memorials
    # ==========================================================================

    default_memorial_slots: int = 0
    slug_length: int = 8

    # ==========================================================================
    # Email (AWS SES)
    # ==========================================================================

    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    mail_from_email: str = "noreply@inmemorialof.com"
    mail_endpoint_url: str = ""  # e.g. http://localhost:4566 for a local SES

    # ==========================================================================
    # Storage
    # ==========================================================================

    # Empty means in-memory storage (lost on restart)
    data_dir: str = ""

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
