"""Application configuration settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import EmailStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "DocSign"
    debug: bool = False
    log_level: str = "INFO"
    secret_key: str = "change-me-in-production-use-a-real-secret-key"

    # API
    api_v1_prefix: str = "/api/v1"

    # Database
    database_url: str = "sqlite+aiosqlite:///./docsign.db"

    # Storage
    storage_path: Path = Path("./storage")
    max_upload_size: int = 25 * 1024 * 1024  # 25 MB
    allowed_mime_types: list[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/png",
        "image/jpeg",
    ]

    # Notifications
    email_from: EmailStr | None = None

    # Signing links
    signing_link_base_url: str = "http://localhost:3000"

    # Security
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
