"""User domain events for IAM context.

Besides the membership, settings and status events shared with the other
aggregates, users emit login, lockout, profile and password events.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class UserEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "user_id"


@dataclass(frozen=True)
class UserSettingsUpdated(UserEvent):
    user_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class UserRoleAssigned(UserEvent):
    user_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserRoleRemoved(UserEvent):
    user_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserPermissionAssigned(UserEvent):
    user_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserPermissionRemoved(UserEvent):
    user_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserOrganizationAdded(UserEvent):
    user_id: str
    organization_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserOrganizationRemoved(UserEvent):
    user_id: str
    organization_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserDepartmentAdded(UserEvent):
    user_id: str
    department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserDepartmentRemoved(UserEvent):
    user_id: str
    department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserStatusChanged(UserEvent):
    user_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class UserLimitsWarning(UserEvent):
    user_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime


@dataclass(frozen=True)
class UserProfileUpdated(UserEvent):
    """Event raised when profile fields change.

    Attributes:
        user_id: The ULID of the user
        changed_fields: Names of the profile fields that changed
        occurred_at: When the event occurred (UTC)
    """

    user_id: str
    changed_fields: tuple[str, ...]
    occurred_at: datetime


@dataclass(frozen=True)
class UserPasswordChanged(UserEvent):
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserLoginSucceeded(UserEvent):
    user_id: str
    ip_address: str
    user_agent: str
    occurred_at: datetime


@dataclass(frozen=True)
class UserLoginFailed(UserEvent):
    """Event raised for every failed login attempt.

    Attributes:
        user_id: The ULID of the user
        ip_address: Client address of the attempt
        user_agent: Client user agent of the attempt
        failure_reason: Why the attempt failed, if known
        consecutive_failures: Failed attempts since the last success
        occurred_at: When the event occurred (UTC)
    """

    user_id: str
    ip_address: str
    user_agent: str
    failure_reason: Optional[str]
    consecutive_failures: int
    occurred_at: datetime


@dataclass(frozen=True)
class UserLocked(UserEvent):
    """Event raised when an account is locked.

    Attributes:
        user_id: The ULID of the user
        locked_until: When the lock expires (UTC)
        reason: Why the account was locked
        occurred_at: When the event occurred (UTC)
    """

    user_id: str
    locked_until: datetime
    reason: str
    occurred_at: datetime
