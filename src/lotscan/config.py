"""Configuration management for lotscan."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScannerSettings(BaseSettings):
    """Scan parsing and resolution settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_input_length: int = Field(default=255, ge=1)
    # Store a code -> identity mapping when a scan resolves through the
    # GTIN/SKU fallback, so the next scan of the same string hits exactly.
    register_fallback_matches: bool = True


class UserSettings(BaseSettings):
    """User identification settings for local development."""

    model_config = SettingsConfigDict(
        env_prefix="USER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # For local development - set USER_EMAIL and USER_ORG_ID in .env
    email: str = ""
    name: str = ""
    org_id: str = ""


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    @property
    def scanner(self) -> ScannerSettings:
        """Get scan parsing and resolution settings."""
        return ScannerSettings()

    @property
    def user(self) -> UserSettings:
        """Get user identification settings."""
        return UserSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
