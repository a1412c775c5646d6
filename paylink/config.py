"""
Configuration and settings for the payment details service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    api_prefix: str = Field(default="")
    log_level: str = Field(default="INFO")

    # Any SQLAlchemy URL (Postgres in production, SQLite locally).
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Uploaded QR images
    uploads_dir: str = Field(default="uploads")
    uploads_url_prefix: str = Field(default="/uploads")
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
