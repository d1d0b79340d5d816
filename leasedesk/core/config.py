"""Application configuration utilities."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings derived from environment variables."""

    api_base_url: str = Field(
        default="https://localhost:7153/api", alias="LEASEDESK_API_URL"
    )
    api_timeout_seconds: float = Field(default=10.0, alias="LEASEDESK_API_TIMEOUT")
    database_url: str = Field(
        default="sqlite:///./leasedesk.db", alias="DATABASE_URL"
    )
    notification_url: str | None = Field(default=None, alias="NOTIFICATION_URL")
    notification_timeout_seconds: float = Field(
        default=5.0, alias="NOTIFICATION_TIMEOUT"
    )
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def notifications_enabled(self) -> bool:
        """Return ``True`` when an email integration endpoint is configured."""

        return bool(self.notification_url)

    @property
    def allowed_origins(self) -> list[str]:
        """Return the CORS origins as a list."""

        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
