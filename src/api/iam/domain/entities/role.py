"""Role entity for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

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
from iam.domain.exceptions import StateError, ValidationError
from iam.domain.value_objects import OrganizationId, RoleCode, RoleId, UserId

AccessKind = Literal["read", "write", "delete", "execute"]


class RoleType(StrEnum):
    SYSTEM = "system"
    CUSTOM = "custom"
    FUNCTIONAL = "functional"
    BUSINESS = "business"
    PROJECT = "project"
    TEMPORARY = "temporary"


class RoleScope(StrEnum):
    GLOBAL = "global"
    ORGANIZATION = "organization"
    DEPARTMENT = "department"
    PROJECT = "project"
    USER = "user"


@dataclass(frozen=True)
class ResourceAccess:
    """Access flags a role grants on one resource."""

    read: bool = False
    write: bool = False
    delete: bool = False
    execute: bool = False

    def allows(self, kind: AccessKind) -> bool:
        return bool(getattr(self, kind))


def clone_permissions(
    permissions: dict[str, ResourceAccess],
) -> dict[str, ResourceAccess]:
    """Copy a resource permission map so the copy shares no state."""
    return {resource: replace(access) for resource, access in permissions.items()}


@dataclass(frozen=True)
class RoleSettings:
    """Delegation and expiry policy of a role."""

    allow_delegation: bool = False
    require_approval: bool = False
    auto_expire: bool = False
    expiration_days: int = 365
    max_delegations: int = 5


@dataclass(frozen=True)
class RoleLimits:
    """Quotas of a role."""

    max_members: int = 1000
    max_sub_roles: int = 10
    max_permissions: int = 100
    max_delegations: int = 5
    session_timeout: int = 480
    concurrent_sessions: int = 3

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if not isinstance(value, int) or value < 0:
                raise ValidationError(
                    f"Role limit {name} must be a non-negative integer"
                )


@dataclass
class Role(StatusLifecycle, Named, TreeNode, MemberSet):
    """Role within an organization.

    Roles form an inheritance tree through ``parent_id`` and grant access
    flags per resource.

    Business rules:
    - Code is unique within the organization (checked by the domain service)
    - A SYSTEM role cannot be disabled and its type cannot change
    - A role cannot be its own parent
    """

    id: RoleId
    organization_id: OrganizationId
    code: RoleCode
    name: str
    type: RoleType = RoleType.CUSTOM
    scope: RoleScope = RoleScope.ORGANIZATION
    description: str | None = None
    parent_id: RoleId | None = None
    status: EntityStatus = EntityStatus.ACTIVE
    settings: RoleSettings = field(default_factory=RoleSettings)
    limits: RoleLimits = field(default_factory=RoleLimits)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    _permissions: dict[str, ResourceAccess] = field(default_factory=dict, repr=False)
    _child_ids: set[RoleId] = field(default_factory=set, repr=False)
    _member_ids: set[UserId] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self._coerce_status()
        self.type = RoleType(self.type)
        self.name = require_text(self.name, "Role name")
        if self.parent_id is not None:
            self.set_parent(self.parent_id)

    @classmethod
    def create(
        cls,
        organization_id: OrganizationId,
        code: RoleCode,
        name: str,
        type: RoleType = RoleType.CUSTOM,
        scope: RoleScope = RoleScope.ORGANIZATION,
        parent_id: RoleId | None = None,
        description: str | None = None,
    ) -> Role:
        """Factory method for creating a new role with a fresh id."""
        return cls(
            id=RoleId.generate(),
            organization_id=organization_id,
            code=code,
            name=name,
            type=type,
            scope=scope,
            parent_id=parent_id,
            description=description,
        )

    @property
    def is_system(self) -> bool:
        return self.type is RoleType.SYSTEM

    @property
    def permissions(self) -> dict[str, ResourceAccess]:
        """Independent copy of the resource permission map."""
        return clone_permissions(self._permissions)

    def change_status(self, new_status: EntityStatus | str) -> None:
        if self.is_system and new_status == EntityStatus.DISABLED:
            raise StateError(f"System role {self.code} cannot be disabled")
        super().change_status(new_status)

    def update_type(self, new_type: RoleType) -> None:
        """Change the role type.

        Raises:
            StateError: If the role is a SYSTEM role
        """
        new_type = RoleType(new_type)
        if self.is_system and new_type is not RoleType.SYSTEM:
            raise StateError(f"Cannot change the type of system role {self.code}")
        self.type = new_type
        self.updated_at = utc_now()

    def update_scope(self, new_scope: RoleScope) -> None:
        self.scope = RoleScope(new_scope)
        self.updated_at = utc_now()

    def add_permission(
        self,
        resource: str,
        read: bool = False,
        write: bool = False,
        delete: bool = False,
        execute: bool = False,
    ) -> None:
        """Grant access flags on a resource, replacing any previous grant."""
        resource = require_text(resource, "Permission resource")
        self._permissions[resource] = ResourceAccess(
            read=read, write=write, delete=delete, execute=execute
        )
        self.updated_at = utc_now()

    def remove_permission(self, resource: str) -> None:
        if self._permissions.pop(resource, None) is not None:
            self.updated_at = utc_now()

    def has_permission(self, resource: str, kind: AccessKind) -> bool:
        access = self._permissions.get(resource)
        return access.allows(kind) if access else False

    def update_settings(self, **changes: Any) -> None:
        """Replace individual settings, keeping the others.

        Raises:
            ValidationError: If a setting is unknown
        """
        self.settings = replace_fields(self.settings, "role settings", changes)
        self.updated_at = utc_now()

    def update_limits(self, **changes: int) -> None:
        """Replace individual quotas, keeping the others.

        Raises:
            ValidationError: If a quota is unknown or negative
        """
        self.limits = replace_fields(self.limits, "role limits", changes)
        self.updated_at = utc_now()

    def can_add_member(self) -> bool:
        return len(self._member_ids) < self.limits.max_members

    def can_add_child(self) -> bool:
        return len(self._child_ids) < self.limits.max_sub_roles

    def can_add_permission(self) -> bool:
        return len(self._permissions) < self.limits.max_permissions
