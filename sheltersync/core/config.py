"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "ShelterSync API"
    api_v1_prefix: str = "/api/v1"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    secret_key: str = Field(..., alias="SECRET_KEY")
    jwt_secret_key: str = Field(default="", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        60 * 24 * 7, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    max_login_attempts: int = Field(5, alias="MAX_LOGIN_ATTEMPTS")
    login_lock_minutes: int = Field(120, alias="LOGIN_LOCK_MINUTES")
    password_reset_ttl_minutes: int = Field(10, alias="PASSWORD_RESET_TTL_MINUTES")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int | None = Field(default=None, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_from: str | None = Field(default=None, alias="SMTP_FROM")
    notification_max_attempts: int = Field(2, alias="NOTIFICATION_MAX_ATTEMPTS")

    client_url: str = Field("http://localhost:3000", alias="CLIENT_URL")

    default_admin_email: str | None = Field(default=None, alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str | None = Field(
        default=None, alias="DEFAULT_ADMIN_PASSWORD"
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")

    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_login: str = Field("10/minute", alias="RATE_LIMIT_LOGIN")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        case_sensitive=False,
    )

    def model_post_init(self, __context: Any) -> None:
        """Populate JWT secret from the generic secret when not provided."""

        if not self.jwt_secret_key:
            object.__setattr__(self, "jwt_secret_key", self.secret_key)

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_port)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
