"""
Application configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite:///./attestcheck.db"

    # Attestation uploads
    max_attestation_size_mb: int = 10

    # Extraction oracle (OpenAI-compatible vision endpoint)
    extraction_api_key: Optional[str] = None
    extraction_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    extraction_model: str = "gemini-2.5-flash"
    extraction_timeout_seconds: float = 60.0

    # Analysis store
    store_max_retries: int = 3

    # Application
    debug: bool = False
    log_level: str = "INFO"

    @property
    def max_attestation_size_bytes(self) -> int:
        """Get maximum decoded attestation size in bytes."""
        return self.max_attestation_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
