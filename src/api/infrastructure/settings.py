"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from iam.domain.services.policy import IAMPolicy

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class IAMSettings(BaseSettings):
    """Policy and logging settings of the IAM engine.

    Environment variables:
        IAM_MAX_FAILED_LOGIN_ATTEMPTS: Failures before lockout (default: 5)
        IAM_LOCKOUT_DURATION_MINUTES: Lock window in minutes (default: 30)
        IAM_LIMITS_WARNING_RATIO: Usage ratio raising a limits warning (default: 0.9)
        IAM_NAME_MAX_LENGTH: Maximum entity name length (default: 100)
        IAM_DESCRIPTION_MAX_LENGTH: Maximum description length (default: 500)
        IAM_PASSWORD_HISTORY_SIZE: Previous password hashes kept (default: 5)
        IAM_LOG_LEVEL: Minimum log level (default: INFO)
    """

    model_config = SettingsConfigDict(
        env_prefix="IAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_failed_login_attempts: int = Field(
        default=5,
        description="Consecutive failed logins that lock an account",
        ge=1,
    )
    lockout_duration_minutes: int = Field(
        default=30,
        description="Minutes an account stays locked",
        ge=1,
    )
    limits_warning_ratio: float = Field(
        default=0.9,
        description="Share of a limit at which aggregates emit a warning",
        gt=0,
        le=1,
    )
    name_max_length: int = Field(
        default=100, description="Maximum entity name length", ge=1
    )
    description_max_length: int = Field(
        default=500, description="Maximum entity description length", ge=1
    )
    password_history_size: int = Field(
        default=5,
        description="Number of previous password hashes that cannot be reused",
        ge=0,
    )
    log_level: LogLevel = Field(default="INFO", description="Minimum log level")

    @model_validator(mode="after")
    def validate_lengths(self) -> "IAMSettings":
        """Validate description length >= name length."""
        if self.description_max_length < self.name_max_length:
            raise ValueError(
                f"description_max_length ({self.description_max_length}) must be "
                f">= name_max_length ({self.name_max_length})"
            )
        return self

    def as_policy(self) -> IAMPolicy:
        """Build the policy object consumed by the domain services."""
        return IAMPolicy(
            max_failed_login_attempts=self.max_failed_login_attempts,
            lockout_duration_minutes=self.lockout_duration_minutes,
            limits_warning_ratio=self.limits_warning_ratio,
            name_max_length=self.name_max_length,
            description_max_length=self.description_max_length,
            password_history_size=self.password_history_size,
        )


@lru_cache
def get_iam_settings() -> IAMSettings:
    """Get cached IAM settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return IAMSettings()
