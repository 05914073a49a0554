"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
Values come from environment variables or an optional ``.env`` file and are
validated at startup to fail fast on misconfigurations.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are cached to avoid repeated parsing and are treated as
    stable for the lifetime of the process.

    Example:
        >>> settings = get_settings()
        >>> print(settings.temp_dir)
        '/tmp/hls-conversions'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        alias="ENVIRONMENT",
        description="Deployment environment",
    )
    port: int = Field(
        default=8001,
        ge=1,
        le=65535,
        alias="PORT",
        description="HTTP listen port",
    )

    # Encoder
    ffmpeg_path: str = Field(
        default="ffmpeg",
        alias="FFMPEG_PATH",
        description="Path to the ffmpeg executable",
    )
    temp_dir: str = Field(
        default="/tmp/hls-conversions",
        alias="TEMP_DIR",
        description="Root directory for per-job workspaces",
    )

    # Callbacks
    callback_url: str = Field(
        default="",
        alias="CALLBACK_URL",
        description="When set, every callback is sent here instead of the request URL",
    )
    callback_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        alias="CALLBACK_TIMEOUT_SECONDS",
        description="Timeout for a single callback POST",
    )
    webhook_secret: str = Field(
        default="",
        alias="WEBHOOK_SECRET",
        description="Secret for HMAC-SHA256 callback signatures",
    )

    # S3 Configuration
    aws_bucket: str = Field(
        default="",
        alias="AWS_BUCKET",
        description="Bucket holding sources and HLS output",
    )
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION",
        description="AWS region for S3",
    )
    aws_access_key_id: str = Field(
        default="",
        alias="AWS_ACCESS_KEY_ID",
        description="Static access key (optional, default chain otherwise)",
    )
    aws_secret_access_key: str = Field(
        default="",
        alias="AWS_SECRET_ACCESS_KEY",
        description="Static secret key (optional, default chain otherwise)",
    )
    s3_endpoint_url: str = Field(
        default="",
        alias="S3_ENDPOINT_URL",
        description="Custom S3 endpoint (MinIO, LocalStack)",
    )

    # Queue
    queue_capacity: int = Field(
        default=100,
        ge=1,
        le=10000,
        alias="QUEUE_CAPACITY",
        description="Maximum number of jobs waiting for the worker",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("callback_url", "s3_endpoint_url", mode="before")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Ensure optional URLs use an HTTP scheme."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @property
    def has_static_credentials(self) -> bool:
        """Static credentials are only used when both halves are present."""
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
