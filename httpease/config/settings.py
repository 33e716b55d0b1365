"""Configuration models and utilities for httpease clients."""

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client defaults loaded from environment variables."""

    base_url: str = Field(default="http://localhost/", alias="HTTPEASE_BASE_URL")
    timeout: Optional[float] = Field(default=60.0, ge=0, alias="HTTPEASE_TIMEOUT")
    strict_decoding: bool = Field(default=True, alias="HTTPEASE_STRICT_DECODING")
    default_headers: Dict[str, str] = Field(
        default_factory=dict, alias="HTTPEASE_DEFAULT_HEADERS"
    )

    model_config = SettingsConfigDict(
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        env_parse_none_str="none",
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
