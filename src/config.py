"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars that don't match field names
    )

    # Application
    app_name: str = "Team Performance Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # API
    api_prefix: str = "/api/v1"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Collaboration backend (tasks, chat, feed, files, team structure)
    backend_base_url: str = Field(
        default="http://localhost:5000",
        validation_alias=AliasChoices("backend_base_url", "collab_api_url"),
    )
    backend_session_cookie: SecretStr = Field(default=SecretStr(""))
    backend_session_cookie_name: str = "connect.sid"
    backend_timeout_seconds: float = 30.0
    backend_page_limit: int = 1000  # Posts and files are fetched in one page

    # Dashboard fallback
    synthetic_fallback_enabled: bool = True
    synthetic_team_size: int = 5

    # Observability
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
