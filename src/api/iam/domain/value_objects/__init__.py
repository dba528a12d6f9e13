"""Value objects for IAM domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers, codes and credentials.
"""

from iam.domain.value_objects.auth_token import AuthToken, TokenType
from iam.domain.value_objects.codes import (
    Code,
    DepartmentCode,
    OrganizationCode,
    PermissionCode,
    RoleCode,
    TenantCode,
)
from iam.domain.value_objects.credentials import (
    Email,
    Password,
    PasswordStrength,
    Username,
)
from iam.domain.value_objects.identifiers import (
    DepartmentId,
    EntityId,
    OrganizationId,
    PermissionId,
    RoleId,
    TenantId,
    UserId,
)

__all__ = [
    # Identifiers
    "EntityId",
    "TenantId",
    "OrganizationId",
    "DepartmentId",
    "RoleId",
    "PermissionId",
    "UserId",
    # Codes
    "Code",
    "TenantCode",
    "OrganizationCode",
    "DepartmentCode",
    "RoleCode",
    "PermissionCode",
    # Credentials
    "Username",
    "Email",
    "Password",
    "PasswordStrength",
    # Tokens
    "AuthToken",
    "TokenType",
]
