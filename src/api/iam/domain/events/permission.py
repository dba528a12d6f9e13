"""Permission domain events for IAM context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class PermissionEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "permission_id"


@dataclass(frozen=True)
class PermissionSettingsUpdated(PermissionEvent):
    permission_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionRoleAssigned(PermissionEvent):
    permission_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionRoleRemoved(PermissionEvent):
    permission_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionUserAssigned(PermissionEvent):
    permission_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionUserRemoved(PermissionEvent):
    permission_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionSubPermissionAdded(PermissionEvent):
    permission_id: str
    sub_permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionSubPermissionRemoved(PermissionEvent):
    permission_id: str
    sub_permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionStatusChanged(PermissionEvent):
    permission_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class PermissionLimitsWarning(PermissionEvent):
    permission_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime
