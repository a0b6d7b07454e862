"""
Configuration settings for quizbank.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    store_path: Path = Field(
        default=Path.home() / ".quizbank" / "store.json",
        description="JSON file holding every saved quiz",
    )
    default_category: str = Field(
        default="Default",
        description="Category assigned to newly created quizzes",
    )

    # ========================================
    # Import / Export
    # ========================================
    csv_encoding: str = Field(
        default="utf-8",
        description="Encoding used when reading and writing CSV files",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr by the CLI",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
