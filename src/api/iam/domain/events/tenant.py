"""Tenant domain events for IAM context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional

from iam.domain.events.base import IAMEvent


@dataclass(frozen=True)
class TenantEvent(IAMEvent):
    AGGREGATE_ID_FIELD: ClassVar[str] = "tenant_id"


@dataclass(frozen=True)
class TenantConfigurationUpdated(TenantEvent):
    tenant_id: str
    changes: dict[str, Any]
    occurred_at: datetime


@dataclass(frozen=True)
class TenantStatusChanged(TenantEvent):
    tenant_id: str
    old_status: str
    new_status: str
    reason: Optional[str]
    occurred_at: datetime


@dataclass(frozen=True)
class TenantLimitsWarning(TenantEvent):
    tenant_id: str
    warnings: tuple[str, ...]
    occurred_at: datetime
