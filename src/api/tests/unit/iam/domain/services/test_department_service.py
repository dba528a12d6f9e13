"""Unit tests for DepartmentDomainService."""

import pytest

from iam.domain.entities import EntityStatus
from iam.domain.exceptions import (
    HierarchyError,
    NotFoundError,
    StateError,
    UniquenessError,
    ValidationError,
)
from iam.domain.services import (
    CreateDepartmentRequest,
    DepartmentDomainService,
    UpdateDepartmentRequest,
)
from iam.domain.value_objects import OrganizationId, UserId


@pytest.fixture
def service(department_repository, organization_repository, mock_probe):
    return DepartmentDomainService(
        department_repository=department_repository,
        organization_repository=organization_repository,
        probe=mock_probe,
    )


def create(service, organization_id, code, parent_id=None):
    return service.create_department(
        CreateDepartmentRequest(
            organization_id=organization_id,
            code=code,
            name=f"Department {code}",
            parent_id=parent_id,
        )
    )


class TestCreateDepartment:
    """Tests for DepartmentDomainService.create_department()."""

    def test_copies_tenant_from_organization(self, service, organization):
        department = create(service, organization.id, "PLATFORM")

        assert department.organization_id == organization.id
        assert department.tenant_id == organization.tenant_id
        assert department.status is EntityStatus.ACTIVE

    def test_rejects_unknown_organization(self, service):
        with pytest.raises(NotFoundError):
            create(service, OrganizationId.generate(), "PLATFORM")

    def test_rejects_inactive_organization(self, service, organization):
        organization.change_status(EntityStatus.SUSPENDED)

        with pytest.raises(StateError):
            create(service, organization.id, "PLATFORM")

    def test_code_unique_within_organization(self, service, organization):
        create(service, organization.id, "PLATFORM")

        with pytest.raises(UniquenessError):
            service.create_department(
                CreateDepartmentRequest(
                    organization_id=organization.id,
                    code="platform",
                    name="Another name",
                )
            )


class TestUpdateDepartment:
    """Tests for DepartmentDomainService.update_department()."""

    def test_assigns_manager(self, service, organization, mock_probe):
        department = create(service, organization.id, "PLATFORM")
        manager_id = UserId.generate()

        service.update_department(
            department.id, UpdateDepartmentRequest(manager_id=manager_id)
        )

        assert department.manager_id == manager_id
        assert mock_probe.entity_updated.call_args.kwargs["fields"] == ["manager_id"]

    def test_invalid_type_leaves_department_untouched(self, service, organization):
        department = create(service, organization.id, "PLATFORM")
        original_name = department.name

        with pytest.raises(ValidationError, match="guild"):
            service.update_department(
                department.id,
                UpdateDepartmentRequest(
                    name="Renamed", type="guild", manager_id=UserId.generate()
                ),
            )

        assert department.name == original_name
        assert department.manager_id is None


class TestMoveDepartment:
    """Tests for DepartmentDomainService.move_department()."""

    def test_rejects_cycle(self, service, organization):
        a = create(service, organization.id, "DEPT-A")
        b = create(service, organization.id, "DEPT-B", parent_id=a.id)
        c = create(service, organization.id, "DEPT-C", parent_id=b.id)

        with pytest.raises(HierarchyError):
            service.move_department(a.id, c.id)

    def test_moves_between_parents(self, service, organization):
        a = create(service, organization.id, "DEPT-A")
        b = create(service, organization.id, "DEPT-B")
        c = create(service, organization.id, "DEPT-C", parent_id=a.id)

        service.move_department(c.id, b.id)

        assert c.parent_id == b.id
        assert b.has_child(c.id)
        assert not a.has_child(c.id)


class TestDeleteDepartment:
    """Tests for DepartmentDomainService.delete_department()."""

    def test_refuses_department_with_members(self, service, organization):
        department = create(service, organization.id, "PLATFORM")
        department.add_member(UserId.generate())

        with pytest.raises(StateError):
            service.delete_department(department.id)

    def test_deletes_empty_department(
        self, service, organization, department_repository, mock_probe
    ):
        department = create(service, organization.id, "PLATFORM")

        service.delete_department(department.id)

        assert department_repository.find_by_id(department.id) is None
        mock_probe.entity_deleted.assert_called_once_with(
            entity_type="department", entity_id=department.id.value
        )


class TestDepartmentPathAndTree:
    """Tests for get_department_path() and get_department_tree()."""

    def test_path_and_tree(self, service, organization):
        platform = create(service, organization.id, "PLATFORM")
        runtime = create(service, organization.id, "RUNTIME", parent_id=platform.id)
        network = create(service, organization.id, "NETWORKING", parent_id=platform.id)

        assert service.get_department_path(runtime.id) == [platform, runtime]
        tree = service.get_department_tree(platform.id)
        assert {node.entity.id for node in tree.children} == {runtime.id, network.id}
