"""Ports (interfaces) for IAM bounded context.

Ports define the contracts for repositories without specifying
implementation details. This allows for dependency inversion and makes the
domain layer independent of infrastructure.
"""

from iam.ports.exceptions import ConcurrentModificationError, DuplicateCodeError
from iam.ports.repositories import (
    IDepartmentRepository,
    IOrganizationRepository,
    IPermissionRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)

__all__ = [
    "IDepartmentRepository",
    "IOrganizationRepository",
    "IPermissionRepository",
    "IRoleRepository",
    "ITenantRepository",
    "IUserRepository",
    "ConcurrentModificationError",
    "DuplicateCodeError",
]
