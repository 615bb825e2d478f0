"""
Configuration management using Pydantic Settings.
Every field has a default so the client can start without a .env file.
"""

from datetime import timedelta, timezone
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote match API
    api_base_url: str = Field(
        default="https://capkeosportnestjs-production.up.railway.app/api/v1",
        description="Base URL of the remote match API",
        json_schema_extra={"env": "API_BASE_URL"},
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with every API request",
        json_schema_extra={"env": "API_TOKEN"},
    )
    request_timeout: float = Field(
        default=10.0, gt=0, description="HTTP request timeout in seconds"
    )
    retry_attempts: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Extra attempts for GET requests that fail to connect",
    )
    retry_delay: float = Field(
        default=1.0, ge=0, description="Fixed delay between retries in seconds"
    )

    # Cache
    page_limit: int = Field(
        default=20, ge=1, le=100, description="Page size for bucket fetches"
    )
    state_file: Optional[str] = Field(
        default=None,
        description="JSON file holding persisted client state (selected match)",
        json_schema_extra={"env": "STATE_FILE"},
    )

    # Schedule
    match_duration_minutes: int = Field(
        default=120, description="Assumed length of a match, used for the live stage"
    )
    match_utc_offset_hours: int = Field(
        default=7,
        ge=-12,
        le=14,
        description="UTC offset used for schedule strings without a timezone",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level for 'capkeo'")

    # Sandbox server
    sandbox_api_token: str = Field(
        default="sandbox-token",
        min_length=8,
        description="Bearer token accepted by the sandbox API",
    )
    sandbox_api_prefix: str = Field(
        default="/api/v1", description="Route prefix of the sandbox API"
    )

    @field_validator("match_duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("match_duration_minutes must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def match_duration(self) -> timedelta:
        return timedelta(minutes=self.match_duration_minutes)

    @property
    def match_timezone(self) -> timezone:
        return timezone(timedelta(hours=self.match_utc_offset_hours))

    model_config = {
        "env_prefix": "CAPKEO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Settings are loaded once and cached for performance.
    """
    return Settings()
