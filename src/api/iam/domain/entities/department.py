"""Department entity for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from iam.domain.entities.base import (
    EntityStatus,
    MemberSet,
    Named,
    StatusLifecycle,
    TreeNode,
    require_text,
    utc_now,
)
from iam.domain.value_objects import (
    DepartmentCode,
    DepartmentId,
    OrganizationId,
    TenantId,
    UserId,
)


class DepartmentType(StrEnum):
    """Kind of department."""

    FUNCTIONAL = "functional"
    BUSINESS = "business"
    PROJECT = "project"
    TEAM = "team"
    GROUP = "group"
    UNIT = "unit"
    SECTION = "section"
    DIVISION = "division"


@dataclass
class Department(StatusLifecycle, Named, TreeNode, MemberSet):
    """Department within an organization.

    Structurally the same as an Organization but scoped to an organization:
    codes are unique per organization and the department tree may not
    cross organization boundaries.
    """

    id: DepartmentId
    organization_id: OrganizationId
    tenant_id: TenantId
    code: DepartmentCode
    name: str
    type: DepartmentType = DepartmentType.FUNCTIONAL
    description: str | None = None
    parent_id: DepartmentId | None = None
    manager_id: UserId | None = None
    status: EntityStatus = EntityStatus.ACTIVE
    settings: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    _child_ids: set[DepartmentId] = field(default_factory=set, repr=False)
    _member_ids: set[UserId] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self._coerce_status()
        self.name = require_text(self.name, "Department name")
        if self.parent_id is not None:
            self.set_parent(self.parent_id)

    @classmethod
    def create(
        cls,
        organization_id: OrganizationId,
        tenant_id: TenantId,
        code: DepartmentCode,
        name: str,
        type: DepartmentType = DepartmentType.FUNCTIONAL,
        parent_id: DepartmentId | None = None,
        description: str | None = None,
        manager_id: UserId | None = None,
    ) -> Department:
        """Factory method for creating a new department with a fresh id."""
        return cls(
            id=DepartmentId.generate(),
            organization_id=organization_id,
            tenant_id=tenant_id,
            code=code,
            name=name,
            type=type,
            parent_id=parent_id,
            description=description,
            manager_id=manager_id,
        )

    def update_type(self, new_type: DepartmentType) -> None:
        self.type = DepartmentType(new_type)
        self.updated_at = utc_now()

    def assign_manager(self, manager_id: UserId | None) -> None:
        self.manager_id = manager_id
        self.updated_at = utc_now()

    def update_settings(self, settings: dict[str, Any]) -> None:
        self.settings = {**self.settings, **settings}
        self.updated_at = utc_now()

    def update_metadata(self, metadata: dict[str, Any]) -> None:
        self.metadata = {**self.metadata, **metadata}
        self.updated_at = utc_now()
