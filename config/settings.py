"""Configuration settings using Pydantic."""

import re
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"b": 1, "kb": 1024, "mb": 1024 ** 2, "gb": 1024 ** 3}


class Environment(str, Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


def parse_byte_size(value) -> int:
    """
    Parse a human readable size such as ``1mb`` or ``512kb`` into bytes.

    Args:
        value: Integer byte count or size string

    Returns:
        Size in bytes

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        return value

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid size: {value!r}")

    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Server Configuration
    host: str = "127.0.0.1"
    port: int = Field(default=5331, gt=0, lt=65536)
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias=AliasChoices("environment", "app_env", "node_env"),
    )
    cors_origins: str = Field(
        default="http://localhost:5332,http://localhost:5333",
        validation_alias=AliasChoices("cors_origins", "client_url"),
    )
    trust_proxy: bool = False
    max_request_size: int = Field(default=1024 ** 2, gt=0)
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    # Rate Limiting
    rate_limit_window_ms: int = Field(default=60000, gt=0)
    rate_limit_max_requests: int = Field(default=10, gt=0)

    # Review Limits
    max_code_length: int = Field(default=50000, gt=0)

    # AWS Bedrock Configuration
    aws_region: str = "us-east-1"
    aws_profile: Optional[str] = None
    claude_model: str = "anthropic.claude-3-haiku-20240307-v1:0"
    claude_max_tokens: int = Field(default=4096, gt=0)
    claude_temperature: float = Field(default=0.7, ge=0.0, le=1.0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("max_request_size", mode="before")
    @classmethod
    def _parse_request_size(cls, value):
        return parse_byte_size(value)

    @field_validator("aws_profile", mode="before")
    @classmethod
    def _blank_profile_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str) -> str:
        fmt = value.strip().lower()
        if fmt not in ("json", "console"):
            raise ValueError(f"Unknown log format: {value}")
        return fmt

    @property
    def allowed_origins(self) -> List[str]:
        """Origins allowed to call the API, parsed from the comma separated list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000.0

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def rate_limit_enabled(self) -> bool:
        """The limiter is only bypassed for local development."""
        return self.environment != Environment.DEVELOPMENT


def load_settings(**overrides) -> Settings:
    """
    Build the settings once at process start.

    Invalid values raise ``pydantic.ValidationError`` instead of falling
    back to defaults.
    """
    return Settings(**overrides)
