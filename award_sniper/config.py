from __future__ import annotations

import pathlib
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

REPO_DIR = pathlib.Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    amadeus_client_id: str = Field("", alias="AMADEUS_CLIENT_ID")
    amadeus_client_secret: str = Field("", alias="AMADEUS_CLIENT_SECRET")
    amadeus_base_url: str = Field(
        "https://test.api.amadeus.com", alias="AMADEUS_BASE_URL"
    )
    brave_api_key: str = Field("", alias="BRAVE_API_KEY")
    seats_aero_api_key: str = Field("", alias="SEATS_AERO_API_KEY")

    db_path: str = Field(
        str(REPO_DIR / "award_sniper.db"), alias="AWARD_SNIPER_DB"
    )
    currency: str = Field("USD", alias="CURRENCY")
    http_timeout_s: float = Field(15.0, alias="HTTP_TIMEOUT_S")
    cache_max_entries: int = Field(256, alias="CACHE_MAX_ENTRIES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str = Field("award_sniper.log", alias="LOG_FILE")

    @field_validator("http_timeout_s")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_S must be greater than 0")
        return v

    @field_validator("cache_max_entries")
    @classmethod
    def _cache_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("CACHE_MAX_ENTRIES must be greater than 0")
        return v

    @field_validator("currency", "log_level")
    @classmethod
    def _upper(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v.strip().upper()


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings", "REPO_DIR"]
