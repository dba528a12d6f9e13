"""Fixtures for domain service tests.

The services are exercised against small in-memory repositories so that
tree traversals and uniqueness checks run against real data.
"""

from copy import deepcopy
from unittest.mock import create_autospec

import pytest

from iam.domain.entities import Organization, Role, Tenant, TenantStatus
from iam.domain.observability import DomainServiceProbe
from iam.domain.value_objects import OrganizationCode, TenantCode, TenantId


class InMemoryRepository:
    """Dict-backed repository shared by every entity family."""

    scope_attribute = "organization_id"

    def __init__(self):
        self.items = {}

    def find_by_id(self, entity_id):
        return self.items.get(entity_id)

    def find_by_code(self, code, scope_id=None):
        return next(
            (
                item
                for item in self.items.values()
                if item.code == code
                and (scope_id is None or self._scope(item) == scope_id)
            ),
            None,
        )

    def find_by_name(self, name, scope_id=None):
        return next(
            (
                item
                for item in self.items.values()
                if item.name == name
                and (scope_id is None or self._scope(item) == scope_id)
            ),
            None,
        )

    def find_by_parent(self, parent_id):
        return [item for item in self.items.values() if item.parent_id == parent_id]

    def get_descendants(self, entity_id):
        found, frontier = [], [entity_id]
        while frontier:
            children = self.find_by_parent(frontier.pop())
            found.extend(children)
            frontier.extend(child.id for child in children)
        return found

    def save(self, entity):
        self.items[entity.id] = entity

    def delete(self, entity_id):
        return self.items.pop(entity_id, None) is not None

    def _scope(self, item):
        return getattr(item, self.scope_attribute)


class InMemoryTenantRepository(InMemoryRepository):
    def find_by_code(self, code):
        return super().find_by_code(code)

    def find_by_name(self, name):
        return super().find_by_name(name)


class InMemoryOrganizationRepository(InMemoryRepository):
    scope_attribute = "tenant_id"

    def find_by_tenant(self, tenant_id):
        return [item for item in self.items.values() if item.tenant_id == tenant_id]

    def count_by_tenant(self, tenant_id):
        return len(self.find_by_tenant(tenant_id))


class InMemoryDepartmentRepository(InMemoryRepository):
    def find_by_organization(self, organization_id):
        return [
            item
            for item in self.items.values()
            if item.organization_id == organization_id
        ]


class InMemoryRoleRepository(InMemoryDepartmentRepository):
    def clone_role(self, source_id, code, name):
        source = self.items[source_id]
        clone = Role.create(
            organization_id=source.organization_id,
            code=code,
            name=name,
            type=source.type,
            scope=source.scope,
            description=source.description,
        )
        for resource, access in source.permissions.items():
            clone.add_permission(
                resource,
                read=access.read,
                write=access.write,
                delete=access.delete,
                execute=access.execute,
            )
        clone.settings = deepcopy(source.settings)
        self.save(clone)
        return clone


class InMemoryPermissionRepository(InMemoryRepository):
    pass


class InMemoryUserRepository(InMemoryRepository):
    def find_by_username(self, username, tenant_id):
        return next(
            (
                user
                for user in self.items.values()
                if user.username == username and user.tenant_id == tenant_id
            ),
            None,
        )

    def find_by_email(self, email, tenant_id):
        return next(
            (
                user
                for user in self.items.values()
                if user.email == email and user.tenant_id == tenant_id
            ),
            None,
        )

    def find_by_organization(self, organization_id):
        return [
            user
            for user in self.items.values()
            if user.organization_id == organization_id
        ]


@pytest.fixture
def mock_probe():
    """Create mock domain service probe."""
    return create_autospec(DomainServiceProbe, instance=True)


@pytest.fixture
def tenant_repository():
    return InMemoryTenantRepository()


@pytest.fixture
def organization_repository():
    return InMemoryOrganizationRepository()


@pytest.fixture
def department_repository():
    return InMemoryDepartmentRepository()


@pytest.fixture
def role_repository():
    return InMemoryRoleRepository()


@pytest.fixture
def permission_repository():
    return InMemoryPermissionRepository()


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def tenant(tenant_repository) -> Tenant:
    """An ACTIVE tenant stored in the tenant repository."""
    tenant = Tenant.create(code=TenantCode("acme"), name="Acme", max_organizations=5)
    tenant.change_status(TenantStatus.ACTIVE)
    tenant_repository.save(tenant)
    return tenant


@pytest.fixture
def tenant_id(tenant) -> TenantId:
    return tenant.id


@pytest.fixture
def organization(organization_repository, tenant_id) -> Organization:
    """An ACTIVE organization stored in the organization repository."""
    organization = Organization.create(
        tenant_id=tenant_id, code=OrganizationCode("ACME-HQ"), name="Acme HQ"
    )
    organization_repository.save(organization)
    return organization
