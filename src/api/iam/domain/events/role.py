"""Role domain events for IAM context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class RoleEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "role_id"


@dataclass(frozen=True)
class RoleSettingsUpdated(RoleEvent):
    role_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class RolePermissionAssigned(RoleEvent):
    role_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RolePermissionRemoved(RoleEvent):
    role_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RoleMemberAdded(RoleEvent):
    role_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RoleMemberRemoved(RoleEvent):
    role_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RoleSubRoleAdded(RoleEvent):
    role_id: str
    sub_role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RoleSubRoleRemoved(RoleEvent):
    role_id: str
    sub_role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class RoleStatusChanged(RoleEvent):
    role_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class RoleLimitsWarning(RoleEvent):
    role_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime
