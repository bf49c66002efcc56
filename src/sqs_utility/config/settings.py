"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures defaults for the SQS utility from environment variables
(prefixed SQS_UTILITY_) with validation. Supports .env files for
local development against emulated endpoints such as localstack.
"""

import re
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SQS_UTILITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="SQS Utility", description="Application name")
    app_version: str = Field(default="0.3.0", description="Application version")
    log_level: str = Field(default="WARNING", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="eu-west-2", description="AWS region")
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom SQS endpoint URL (e.g. http://localhost:4566)"
    )

    # Receive settings
    default_limit: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of messages received by list/extract"
    )
    default_timeout: int = Field(
        default=30,
        ge=1,
        description="Wall-clock seconds allowed for list/extract"
    )
    receive_wait_time: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Long-poll wait time in seconds for each receive call"
    )

    @field_validator('aws_region')
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate AWS region name format."""
        if not v or not isinstance(v, str):
            raise ValueError("aws_region must be a non-empty string")

        if not re.match(r'^[a-z]{2}(-[a-z]+)+-\d$', v):
            raise ValueError(f"aws_region is not a valid region name: {v}")

        return v

    @field_validator('endpoint_url')
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate endpoint URL scheme."""
        if v is None or v == '':
            return None
        if not v.startswith(('http://', 'https://')):
            raise ValueError("endpoint_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


# Global settings instance
settings = Settings()
