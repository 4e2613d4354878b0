"""Configuration settings for the Lekka ledger core."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Lekka API
    api_url: str = Field(
        default="http://localhost:3000/api", validation_alias="LEKKA_API_URL"
    )
    api_timeout: float = Field(default=120.0, validation_alias="LEKKA_API_TIMEOUT")
    # Resends of the same request (same idempotency key); the posting
    # protocol never issues a fresh attempt on its own.
    api_max_retries: int = Field(default=0, validation_alias="LEKKA_API_MAX_RETRIES")

    # Chart of accounts override (YAML keyword lists)
    chart_of_accounts: str | None = Field(
        default=None, validation_alias="LEKKA_CHART_OF_ACCOUNTS"
    )

    # Bank reconciliation
    reco_date_from: str = Field(
        default="1900-01-01", validation_alias="LEKKA_RECO_DATE_FROM"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
