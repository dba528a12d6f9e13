"""Repository protocols (ports) for IAM bounded context.

Repository protocols define the interface for persisting and retrieving
IAM entities. The domain services depend only on these protocols; storage
adapters implement them outside the domain.

All lookups return None (single result) or an empty list (many results)
when nothing matches. Code lookups are case-insensitive because codes are
normalized by their value objects before they reach the repository.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from iam.domain.entities import Department, Organization, Permission, Role, Tenant, User
from iam.domain.value_objects import (
    DepartmentCode,
    DepartmentId,
    Email,
    OrganizationCode,
    OrganizationId,
    PermissionCode,
    PermissionId,
    RoleCode,
    RoleId,
    TenantCode,
    TenantId,
    UserId,
    Username,
)


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for Tenant persistence.

    Tenant codes and names are globally unique.
    """

    def find_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by its ID.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant, or None if not found
        """
        ...

    def find_by_code(self, code: TenantCode) -> Tenant | None:
        """Retrieve a tenant by its code."""
        ...

    def find_by_name(self, name: str) -> Tenant | None:
        """Retrieve a tenant by its name."""
        ...

    def save(self, tenant: Tenant) -> None:
        """Persist a tenant.

        Creates a new tenant or updates an existing one.

        Args:
            tenant: The Tenant to persist

        Raises:
            DuplicateCodeError: If another tenant already uses the code
            ConcurrentModificationError: If the tenant changed since it was read
        """
        ...

    def delete(self, tenant_id: TenantId) -> bool:
        """Delete a tenant.

        Returns:
            True if deleted, False if not found
        """
        ...


@runtime_checkable
class IOrganizationRepository(Protocol):
    """Repository for Organization persistence.

    Organization codes and names are unique within a tenant.
    """

    def find_by_id(self, organization_id: OrganizationId) -> Organization | None:
        """Retrieve an organization by its ID.

        Args:
            organization_id: The unique identifier of the organization

        Returns:
            The Organization, or None if not found
        """
        ...

    def find_by_code(
        self, code: OrganizationCode, tenant_id: TenantId
    ) -> Organization | None:
        """Retrieve an organization by code within a tenant.

        Args:
            code: The organization code
            tenant_id: The tenant to search within

        Returns:
            The Organization, or None if not found
        """
        ...

    def find_by_name(self, name: str, tenant_id: TenantId) -> Organization | None:
        """Retrieve an organization by name within a tenant."""
        ...

    def find_by_parent(self, parent_id: OrganizationId) -> list[Organization]:
        """List the direct children of an organization.

        Args:
            parent_id: The parent organization

        Returns:
            The child organizations, empty if there are none
        """
        ...

    def find_by_tenant(self, tenant_id: TenantId) -> list[Organization]:
        """List all organizations in a tenant."""
        ...

    def get_descendants(self, organization_id: OrganizationId) -> list[Organization]:
        """List every organization below the given one, at any depth."""
        ...

    def count_by_tenant(self, tenant_id: TenantId) -> int:
        """Count the organizations in a tenant."""
        ...

    def save(self, organization: Organization) -> None:
        """Persist an organization.

        Args:
            organization: The Organization to persist (includes tenant_id)

        Raises:
            DuplicateCodeError: If the code already exists in the tenant
            ConcurrentModificationError: If the organization changed since
                it was read
        """
        ...

    def delete(self, organization_id: OrganizationId) -> bool:
        """Delete an organization.

        Returns:
            True if deleted, False if not found
        """
        ...


@runtime_checkable
class IDepartmentRepository(Protocol):
    """Repository for Department persistence.

    Department codes and names are unique within an organization.
    """

    def find_by_id(self, department_id: DepartmentId) -> Department | None:
        """Retrieve a department by its ID."""
        ...

    def find_by_code(
        self, code: DepartmentCode, organization_id: OrganizationId
    ) -> Department | None:
        """Retrieve a department by code within an organization."""
        ...

    def find_by_name(
        self, name: str, organization_id: OrganizationId
    ) -> Department | None:
        """Retrieve a department by name within an organization."""
        ...

    def find_by_parent(self, parent_id: DepartmentId) -> list[Department]:
        """List the direct children of a department."""
        ...

    def find_by_organization(self, organization_id: OrganizationId) -> list[Department]:
        """List all departments of an organization."""
        ...

    def get_descendants(self, department_id: DepartmentId) -> list[Department]:
        """List every department below the given one, at any depth."""
        ...

    def save(self, department: Department) -> None:
        """Persist a department.

        Raises:
            DuplicateCodeError: If the code already exists in the organization
            ConcurrentModificationError: If the department changed since it
                was read
        """
        ...

    def delete(self, department_id: DepartmentId) -> bool:
        """Delete a department.

        Returns:
            True if deleted, False if not found
        """
        ...


@runtime_checkable
class IRoleRepository(Protocol):
    """Repository for Role persistence.

    Role codes and names are unique within an organization. The same code
    may be used by roles of different organizations.
    """

    def find_by_id(self, role_id: RoleId) -> Role | None:
        """Retrieve a role by its ID."""
        ...

    def find_by_code(
        self, code: RoleCode, organization_id: OrganizationId
    ) -> Role | None:
        """Retrieve a role by code within an organization."""
        ...

    def find_by_name(self, name: str, organization_id: OrganizationId) -> Role | None:
        """Retrieve a role by name within an organization."""
        ...

    def find_by_parent(self, parent_id: RoleId) -> list[Role]:
        """List the direct sub-roles of a role."""
        ...

    def find_by_organization(self, organization_id: OrganizationId) -> list[Role]:
        """List all roles of an organization."""
        ...

    def get_descendants(self, role_id: RoleId) -> list[Role]:
        """List every role below the given one, at any depth."""
        ...

    def clone_role(self, source_id: RoleId, code: RoleCode, name: str) -> Role:
        """Copy a role under a new code and name.

        The copy receives a fresh id, the source's organization, type,
        scope, settings, limits and permission map, and no members or
        sub-roles.

        Args:
            source_id: The role to copy
            code: Code of the new role
            name: Name of the new role

        Returns:
            The persisted copy

        Raises:
            DuplicateCodeError: If the code already exists in the organization
        """
        ...

    def save(self, role: Role) -> None:
        """Persist a role.

        Raises:
            DuplicateCodeError: If the code already exists in the organization
            ConcurrentModificationError: If the role changed since it was read
        """
        ...

    def delete(self, role_id: RoleId) -> bool:
        """Delete a role.

        Returns:
            True if deleted, False if not found
        """
        ...


@runtime_checkable
class IPermissionRepository(Protocol):
    """Repository for Permission persistence.

    Permission codes are unique within an organization.
    """

    def find_by_id(self, permission_id: PermissionId) -> Permission | None:
        """Retrieve a permission by its ID."""
        ...

    def find_by_code(
        self, code: PermissionCode, organization_id: OrganizationId
    ) -> Permission | None:
        """Retrieve a permission by code within an organization."""
        ...

    def find_by_name(
        self, name: str, organization_id: OrganizationId
    ) -> Permission | None:
        """Retrieve a permission by name within an organization."""
        ...

    def find_by_parent(self, parent_id: PermissionId) -> list[Permission]:
        """List the direct children of a permission."""
        ...

    def get_descendants(self, permission_id: PermissionId) -> list[Permission]:
        """List every permission below the given one, at any depth."""
        ...

    def save(self, permission: Permission) -> None:
        """Persist a permission.

        Raises:
            DuplicateCodeError: If the code already exists in the organization
        """
        ...

    def delete(self, permission_id: PermissionId) -> bool:
        """Delete a permission.

        Returns:
            True if deleted, False if not found
        """
        ...


@runtime_checkable
class IUserRepository(Protocol):
    """Repository for User persistence.

    Usernames and email addresses are unique within a tenant.
    """

    def find_by_id(self, user_id: UserId) -> User | None:
        """Retrieve a user by its ID."""
        ...

    def find_by_username(self, username: Username, tenant_id: TenantId) -> User | None:
        """Retrieve a user by username within a tenant."""
        ...

    def find_by_email(self, email: Email, tenant_id: TenantId) -> User | None:
        """Retrieve a user by email address within a tenant."""
        ...

    def find_by_organization(self, organization_id: OrganizationId) -> list[User]:
        """List the users whose primary organization is the given one."""
        ...

    def save(self, user: User) -> None:
        """Persist a user.

        Raises:
            DuplicateCodeError: If the username or email is already taken in
                the tenant
            ConcurrentModificationError: If the user changed since it was read
        """
        ...

    def delete(self, user_id: UserId) -> bool:
        """Delete a user.

        Returns:
            True if deleted, False if not found
        """
        ...
