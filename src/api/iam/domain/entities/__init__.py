"""Entities for IAM context.

Entities hold mutable state and expose controlled mutators. They enforce
local rules (status transitions, no self-parenting, non-blank names) and
leave cross-entity rules to aggregates and domain services.
"""

from iam.domain.entities.base import EntityStatus
from iam.domain.entities.department import Department, DepartmentType
from iam.domain.entities.organization import (
    Organization,
    OrganizationLimits,
    OrganizationType,
)
from iam.domain.entities.permission import (
    Permission,
    PermissionAction,
    PermissionLimits,
    PermissionScope,
    PermissionType,
)
from iam.domain.entities.role import (
    ResourceAccess,
    Role,
    RoleLimits,
    RoleScope,
    RoleSettings,
    RoleType,
    clone_permissions,
)
from iam.domain.entities.tenant import Tenant, TenantStatus
from iam.domain.entities.user import (
    LoginRecord,
    User,
    UserProfile,
    UserStatus,
    UserType,
)

__all__ = [
    "EntityStatus",
    # Tenant
    "Tenant",
    "TenantStatus",
    # Organization
    "Organization",
    "OrganizationLimits",
    "OrganizationType",
    # Department
    "Department",
    "DepartmentType",
    # Role
    "ResourceAccess",
    "Role",
    "RoleLimits",
    "RoleScope",
    "RoleSettings",
    "RoleType",
    "clone_permissions",
    # Permission
    "Permission",
    "PermissionAction",
    "PermissionLimits",
    "PermissionScope",
    "PermissionType",
    # User
    "LoginRecord",
    "User",
    "UserProfile",
    "UserStatus",
    "UserType",
]
