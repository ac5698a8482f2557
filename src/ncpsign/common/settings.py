"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://ncloud.apigw.ntruss.com"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Gateway
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="NCP API Gateway base URL",
    )

    # Credentials
    access_key: str | None = Field(
        default=None,
        description="NCP API access key",
    )
    secret_key: SecretStr | None = Field(
        default=None,
        description="NCP API secret key",
    )

    # Timeouts
    http_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level name",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
