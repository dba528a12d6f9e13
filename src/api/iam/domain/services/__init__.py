"""Domain services for IAM context.

Domain services enforce the rules that span several entities: scoped
uniqueness of codes and names, parent validity, cycle-free moves and
guarded deletion. They depend only on the repository protocols.
"""

from iam.domain.services.department_service import DepartmentDomainService
from iam.domain.services.hierarchy import (
    HierarchyNode,
    build_tree,
    collect_ancestors,
    collect_descendant_ids,
)
from iam.domain.services.organization_service import OrganizationDomainService
from iam.domain.services.permission_service import PermissionDomainService
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import (
    CreateDepartmentRequest,
    CreateOrganizationRequest,
    CreatePermissionRequest,
    CreateRoleRequest,
    CreateTenantRequest,
    CreateUserRequest,
    UpdateDepartmentRequest,
    UpdateOrganizationRequest,
    UpdatePermissionRequest,
    UpdateRoleRequest,
    UpdateUserRequest,
)
from iam.domain.services.role_service import RoleDomainService
from iam.domain.services.tenant_service import TenantDomainService
from iam.domain.services.user_service import UserDomainService

__all__ = [
    # Services
    "TenantDomainService",
    "OrganizationDomainService",
    "DepartmentDomainService",
    "RoleDomainService",
    "PermissionDomainService",
    "UserDomainService",
    # Policy
    "IAMPolicy",
    # Requests
    "CreateTenantRequest",
    "CreateOrganizationRequest",
    "UpdateOrganizationRequest",
    "CreateDepartmentRequest",
    "UpdateDepartmentRequest",
    "CreateRoleRequest",
    "UpdateRoleRequest",
    "CreatePermissionRequest",
    "UpdatePermissionRequest",
    "CreateUserRequest",
    "UpdateUserRequest",
    # Tree traversal
    "HierarchyNode",
    "build_tree",
    "collect_ancestors",
    "collect_descendant_ids",
]
