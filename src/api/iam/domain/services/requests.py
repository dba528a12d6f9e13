"""Command inputs accepted by the IAM domain services.

Requests are plain field bags. Codes, names and credentials arrive as raw
strings and are validated by the receiving service, which reports every
problem at once. ``None`` on an update request means "leave unchanged".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from iam.domain.entities import (
    DepartmentType,
    OrganizationType,
    PermissionAction,
    PermissionScope,
    PermissionType,
    RoleScope,
    RoleType,
    UserType,
)
from iam.domain.value_objects import (
    DepartmentId,
    OrganizationId,
    PermissionId,
    RoleId,
    TenantId,
    UserId,
)


@dataclass
class CreateTenantRequest:
    code: str
    name: str
    description: str | None = None
    max_users: int = 1000
    max_organizations: int = 10
    contact_email: str | None = None
    contact_phone: str | None = None


@dataclass
class CreateOrganizationRequest:
    tenant_id: TenantId
    code: str
    name: str
    type: OrganizationType = OrganizationType.COMPANY
    parent_id: OrganizationId | None = None
    description: str | None = None


@dataclass
class UpdateOrganizationRequest:
    name: str | None = None
    description: str | None = None
    type: OrganizationType | None = None
    parent_id: OrganizationId | None = None
    limits: dict[str, int] = field(default_factory=dict)
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreateDepartmentRequest:
    organization_id: OrganizationId
    code: str
    name: str
    type: DepartmentType = DepartmentType.FUNCTIONAL
    parent_id: DepartmentId | None = None
    manager_id: UserId | None = None
    description: str | None = None


@dataclass
class UpdateDepartmentRequest:
    name: str | None = None
    description: str | None = None
    type: DepartmentType | None = None
    parent_id: DepartmentId | None = None
    manager_id: UserId | None = None


@dataclass
class CreateRoleRequest:
    organization_id: OrganizationId
    code: str
    name: str
    type: RoleType = RoleType.CUSTOM
    scope: RoleScope = RoleScope.ORGANIZATION
    parent_id: RoleId | None = None
    description: str | None = None


@dataclass
class UpdateRoleRequest:
    name: str | None = None
    description: str | None = None
    type: RoleType | None = None
    scope: RoleScope | None = None
    parent_id: RoleId | None = None


@dataclass
class CreatePermissionRequest:
    organization_id: OrganizationId
    code: str
    name: str
    type: PermissionType = PermissionType.CUSTOM
    scope: PermissionScope = PermissionScope.ORGANIZATION
    action: PermissionAction = PermissionAction.READ
    parent_id: PermissionId | None = None
    description: str | None = None


@dataclass
class UpdatePermissionRequest:
    name: str | None = None
    description: str | None = None
    type: PermissionType | None = None
    scope: PermissionScope | None = None
    action: PermissionAction | None = None
    parent_id: PermissionId | None = None
    limits: dict[str, int] = field(default_factory=dict)


@dataclass
class CreateUserRequest:
    tenant_id: TenantId
    username: str
    email: str
    password: str = field(repr=False)
    first_name: str
    last_name: str
    organization_id: OrganizationId | None = None
    type: UserType = UserType.INTERNAL
    display_name: str | None = None
    phone: str | None = None


@dataclass
class UpdateUserRequest:
    email: str | None = None
    organization_id: OrganizationId | None = None
    profile: dict[str, Any] = field(default_factory=dict)
