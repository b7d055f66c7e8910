"""
Configuration management for the Vercel preview waiter.

Step inputs arrive from GitHub Actions as ``INPUT_<NAME>`` environment
variables. This module loads and validates them with Pydantic Settings.
"""

from typing import Any

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .polling.retry_budget import RetryBudget

DEFAULT_VERCEL_TEAM = "coprime"


class Settings(BaseSettings):
    """Step inputs and runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    token: str = Field(..., description="GitHub token used to look up pull requests")
    vercel_token: str = Field(..., description="Vercel API token")
    vercel_password: str = Field(
        default="", description="Shared secret for password protected previews"
    )

    # Deployment selection
    environment: str = Field(
        default="", description="Deployment environment (informational)"
    )
    vercel_team: str = Field(
        default=DEFAULT_VERCEL_TEAM, description="Vercel team id or slug"
    )
    vercel_api_url: str = Field(
        default="https://api.vercel.com", description="Vercel API URL"
    )
    allow_inactive: bool = Field(
        default=False, description="Legacy flag, accepted for compatibility"
    )

    # Polling
    max_timeout: float = Field(
        default=720, ge=0, description="Deployment resolution budget in seconds"
    )
    url_max_timeout: float | None = Field(
        default=None,
        ge=0,
        description="URL health budget in seconds (defaults to max_timeout)",
    )
    check_interval: float = Field(
        default=2, gt=0, description="Delay between attempts in seconds"
    )
    request_timeout: float | None = Field(
        default=None, gt=0, description="Per-request timeout in seconds"
    )
    path: str = Field(default="/", description="Path to check on each preview URL")
    require_success_status: bool = Field(
        default=False,
        description="Only count responses with a status below 400 as healthy",
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format")

    @field_validator(
        "vercel_team",
        "vercel_api_url",
        "allow_inactive",
        "max_timeout",
        "url_max_timeout",
        "check_interval",
        "request_timeout",
        "path",
        "require_success_status",
        "log_level",
        "log_format",
        mode="before",
    )
    @classmethod
    def blank_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        """Treat blank inputs as unset; Actions passes "" for omitted inputs."""
        if isinstance(v, str) and not v.strip():
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("vercel_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return v.lower()

    @property
    def bypass_secret(self) -> str | None:
        """Get the bypass secret, or None when protection bypass is off."""
        return self.vercel_password or None

    @property
    def effective_request_timeout(self) -> float:
        """Per-request timeout, kept below the poll interval by default."""
        if self.request_timeout is not None:
            return self.request_timeout
        return self.check_interval * 0.75

    @property
    def deployment_budget(self) -> RetryBudget:
        """Budget for waiting on deployments to settle."""
        return RetryBudget.from_seconds(self.max_timeout, self.check_interval)

    @property
    def url_budget(self) -> RetryBudget:
        """Budget for each preview URL health poll."""
        max_wait = (
            self.url_max_timeout
            if self.url_max_timeout is not None
            else self.max_timeout
        )
        return RetryBudget.from_seconds(max_wait, self.check_interval)


# Global settings instance - initialized lazily to avoid import-time errors
_settings_instance = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()  # type: ignore[call-arg]
        except ValidationError as e:
            missing = [
                str(error["loc"][0])
                for error in e.errors()
                if error["type"] == "missing" and error["loc"]
            ]
            if missing:
                fields = ", ".join(f"`{name}`" for name in missing)
                raise ConfigurationError(
                    f"Required field(s) {fields} were not provided",
                    context={"missing": missing},
                ) from e
            raise ConfigurationError(f"Invalid configuration: {e}") from e
    return _settings_instance
