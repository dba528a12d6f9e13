"""Organization entity for IAM context."""

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
    replace_fields,
    require_text,
    utc_now,
)
from iam.domain.exceptions import ValidationError
from iam.domain.value_objects import (
    OrganizationCode,
    OrganizationId,
    TenantId,
    UserId,
)


class OrganizationType(StrEnum):
    """Kind of organizational unit."""

    COMPANY = "company"
    DEPARTMENT = "department"
    DIVISION = "division"
    BRANCH = "branch"
    TEAM = "team"
    PROJECT = "project"
    FUNCTIONAL = "functional"
    BUSINESS_UNIT = "business_unit"


@dataclass(frozen=True)
class OrganizationLimits:
    """Resource quotas granted to an organization."""

    max_users: int = 1000
    max_departments: int = 100
    max_roles: int = 50
    max_projects: int = 100
    storage_limit: int = 100
    api_rate_limit: int = 1000

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if not isinstance(value, int) or value < 0:
                raise ValidationError(
                    f"Organization limit {name} must be a non-negative integer"
                )


@dataclass
class Organization(StatusLifecycle, Named, TreeNode, MemberSet):
    """Organization within a tenant.

    Organizations form a tree per tenant through ``parent_id``. The tree is
    kept free of cycles: ``set_parent`` refuses the organization's own id,
    and the domain service refuses moves under a descendant.

    Business rules:
    - Code is unique within the tenant (checked by the domain service)
    - Name cannot be blank
    - Created ACTIVE; deleted only when it has no children and no members
    """

    id: OrganizationId
    tenant_id: TenantId
    code: OrganizationCode
    name: str
    type: OrganizationType = OrganizationType.COMPANY
    description: str | None = None
    parent_id: OrganizationId | None = None
    status: EntityStatus = EntityStatus.ACTIVE
    limits: OrganizationLimits = field(default_factory=OrganizationLimits)
    settings: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    _child_ids: set[OrganizationId] = field(default_factory=set, repr=False)
    _member_ids: set[UserId] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self._coerce_status()
        self.name = require_text(self.name, "Organization name")
        if self.parent_id is not None:
            self.set_parent(self.parent_id)

    @classmethod
    def create(
        cls,
        tenant_id: TenantId,
        code: OrganizationCode,
        name: str,
        type: OrganizationType = OrganizationType.COMPANY,
        parent_id: OrganizationId | None = None,
        description: str | None = None,
    ) -> Organization:
        """Factory method for creating a new organization with a fresh id."""
        return cls(
            id=OrganizationId.generate(),
            tenant_id=tenant_id,
            code=code,
            name=name,
            type=type,
            parent_id=parent_id,
            description=description,
        )

    def update_type(self, new_type: OrganizationType) -> None:
        self.type = OrganizationType(new_type)
        self.updated_at = utc_now()

    def update_limits(self, **changes: int) -> None:
        """Replace individual quotas, keeping the others.

        Raises:
            ValidationError: If a quota is unknown or negative
        """
        self.limits = replace_fields(self.limits, "organization limits", changes)
        self.updated_at = utc_now()

    def update_settings(self, settings: dict[str, Any]) -> None:
        self.settings = {**self.settings, **settings}
        self.updated_at = utc_now()

    def update_metadata(self, metadata: dict[str, Any]) -> None:
        self.metadata = {**self.metadata, **metadata}
        self.updated_at = utc_now()
