"""Settings for the persons console."""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the persons console.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from environment variables and, for local development, from a .env file.

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (persons_api_base_url, poll_interval_seconds, ...).
    """

    # Remote persons API
    persons_api_base_url: str = "http://localhost:8000/api"
    """Base URL of the remote persons API (list, delete, stats and long-task endpoints live under it)."""

    request_timeout_seconds: float = 10.0
    """Timeout applied to every call made to the persons API."""

    default_ordering: str = "-created_date"
    """Initial ordering sent to the persons API, in its `<field|-field>` wire form."""

    # Background job polling
    poll_interval_seconds: float = 1.0
    """Delay before the first status query of a background job."""

    poll_backoff_factor: float = 1.5
    """Multiplier applied to the delay after every PENDING status."""

    poll_max_interval_seconds: float = 10.0
    """Upper bound for the delay between two status queries."""

    poll_max_attempts: int = 120
    """Number of status queries after which a job is reported as timed out."""

    # List presentation
    loading_delay_seconds: float = 0.0
    """Cosmetic delay before the loading flag drops after a fetch (0 disables it)."""

    # Logging
    log_level: str = "INFO"
    """Minimum level for the console sink."""

    log_file_path: Optional[str] = None
    """Optional path of a JSON-serialized log file."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )

    @field_validator("persons_api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the API base URL is HTTP(S) and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("persons_api_base_url must be an http:// or https:// URL")
        return v.rstrip("/")

    @field_validator("request_timeout_seconds", "poll_max_interval_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate that timeouts and interval caps are greater than 0."""
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("poll_interval_seconds", "loading_delay_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Validate that delays are not negative."""
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("poll_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v: float) -> float:
        """Validate that the backoff never shrinks the interval."""
        if v < 1:
            raise ValueError("poll_backoff_factor must be at least 1")
        return v

    @field_validator("poll_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        """Validate that at least one status query is allowed."""
        if v <= 0:
            raise ValueError("poll_max_attempts must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        v_upper = v.upper()
        if v_upper not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("log_level must be a loguru level name")
        return v_upper
