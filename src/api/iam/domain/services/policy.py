"""Tunable rules applied by the IAM domain services."""

from __future__ import annotations

from dataclasses import dataclass

from iam.domain.aggregates.base import DEFAULT_LIMITS_WARNING_RATIO
from iam.domain.aggregates.user import DEFAULT_PASSWORD_HISTORY_SIZE
from iam.domain.entities.user import DEFAULT_LOCK_MINUTES, DEFAULT_MAX_FAILED_LOGINS


@dataclass(frozen=True)
class IAMPolicy:
    """Policy values the domain services enforce.

    The defaults match the built-in behaviour of the entities and
    aggregates. Deployments build their own instance from configuration.
    """

    max_failed_login_attempts: int = DEFAULT_MAX_FAILED_LOGINS
    lockout_duration_minutes: int = DEFAULT_LOCK_MINUTES
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    name_max_length: int = 100
    description_max_length: int = 500
    password_history_size: int = DEFAULT_PASSWORD_HISTORY_SIZE
