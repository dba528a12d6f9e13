"""Department domain events for IAM context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class DepartmentEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "department_id"


@dataclass(frozen=True)
class DepartmentSettingsUpdated(DepartmentEvent):
    department_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentSubDepartmentAdded(DepartmentEvent):
    department_id: str
    sub_department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentSubDepartmentRemoved(DepartmentEvent):
    department_id: str
    sub_department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentUserAdded(DepartmentEvent):
    department_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentUserRemoved(DepartmentEvent):
    department_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentRoleAdded(DepartmentEvent):
    department_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentRoleRemoved(DepartmentEvent):
    department_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentStatusChanged(DepartmentEvent):
    department_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class DepartmentLimitsWarning(DepartmentEvent):
    department_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime
