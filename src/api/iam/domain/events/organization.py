"""Organization domain events for IAM context.

Events emitted by the OrganizationAggregate for settings, membership and
status changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class OrganizationEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "organization_id"


@dataclass(frozen=True)
class OrganizationSettingsUpdated(OrganizationEvent):
    """Event raised when aggregate settings change.

    Attributes:
        organization_id: The ULID of the organization
        changes: The settings that were changed, with their new values
        occurred_at: When the event occurred (UTC)
    """

    organization_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationDepartmentAdded(OrganizationEvent):
    organization_id: str
    department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationDepartmentRemoved(OrganizationEvent):
    organization_id: str
    department_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationRoleAdded(OrganizationEvent):
    organization_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationRoleRemoved(OrganizationEvent):
    organization_id: str
    role_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationPermissionAdded(OrganizationEvent):
    organization_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationPermissionRemoved(OrganizationEvent):
    organization_id: str
    permission_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationUserAdded(OrganizationEvent):
    organization_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationUserRemoved(OrganizationEvent):
    organization_id: str
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationStatusChanged(OrganizationEvent):
    """Event raised when an organization changes status.

    Attributes:
        organization_id: The ULID of the organization
        old_status: Status before the change
        new_status: Status after the change
        reason: Optional free-text justification
        occurred_at: When the event occurred (UTC)
    """

    organization_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class OrganizationLimitsWarning(OrganizationEvent):
    """Event raised when counters approach their configured maximum.

    This is a monitoring signal; nothing is blocked.

    Attributes:
        organization_id: The ULID of the organization
        warnings: One message per counter at or above the warning ratio
        occurred_at: When the event occurred (UTC)
    """

    organization_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime
