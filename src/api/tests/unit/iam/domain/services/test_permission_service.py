"""Unit tests for PermissionDomainService."""

import pytest

from iam.domain.entities import (
    EntityStatus,
    PermissionAction,
    PermissionLimits,
    PermissionScope,
    Role,
)
from iam.domain.exceptions import (
    CapacityError,
    HierarchyError,
    NotFoundError,
    StateError,
    UniquenessError,
    ValidationError,
)
from iam.domain.services import (
    CreatePermissionRequest,
    PermissionDomainService,
    UpdatePermissionRequest,
)
from iam.domain.value_objects import OrganizationId, RoleCode, RoleId, UserId


@pytest.fixture
def service(permission_repository, mock_probe):
    return PermissionDomainService(permission_repository, probe=mock_probe)


@pytest.fixture
def organization_id() -> OrganizationId:
    return OrganizationId.generate()


def create(service, organization_id, code, parent_id=None):
    return service.create_permission(
        CreatePermissionRequest(
            organization_id=organization_id,
            code=code,
            name=f"Permission {code}",
            action=PermissionAction.READ,
            parent_id=parent_id,
        )
    )


class TestCreatePermission:
    """Tests for PermissionDomainService.create_permission()."""

    def test_keeps_code_case_and_parses_parts(self, service, organization_id):
        permission = create(service, organization_id, "Report:read:global")

        assert permission.code.value == "Report:read:global"
        assert permission.resource == "Report"
        assert permission.action_name == "read"
        assert permission.scope_name == "global"

    def test_code_unique_within_organization(self, service, organization_id):
        create(service, organization_id, "report:read:global")

        with pytest.raises(UniquenessError):
            service.create_permission(
                CreatePermissionRequest(
                    organization_id=organization_id,
                    code="report:read:global",
                    name="Different name",
                )
            )

    def test_links_parent_and_child(self, service, organization_id):
        parent = create(service, organization_id, "report:manage")
        child = create(service, organization_id, "report:read", parent_id=parent.id)

        assert child.parent_id == parent.id
        assert parent.has_child(child.id)


class TestPermissionLifecycle:
    """Tests for status changes, moves and deletion."""

    def test_rejects_cycle(self, service, organization_id):
        a = create(service, organization_id, "report:all")
        b = create(service, organization_id, "report:read", parent_id=a.id)

        with pytest.raises(HierarchyError):
            service.move_permission(a.id, b.id)

    def test_suspends_permission(self, service, organization_id):
        permission = create(service, organization_id, "report:read")

        service.change_permission_status(permission.id, "suspended")

        assert permission.status is EntityStatus.SUSPENDED

    def test_refuses_delete_while_granted_to_role(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        permission.add_role(RoleId.generate())

        with pytest.raises(StateError):
            service.delete_permission(permission.id)

    def test_deletes_unused_permission(
        self, service, permission_repository, organization_id
    ):
        permission = create(service, organization_id, "report:read")

        service.delete_permission(permission.id)

        assert permission_repository.find_by_id(permission.id) is None


class TestRoleGrants:
    """Tests for assign_to_role() and remove_from_role()."""

    def test_assign_and_remove(self, service, organization_id, mock_probe):
        permission = create(service, organization_id, "report:read")
        role_id = RoleId.generate()

        service.assign_to_role(permission.id, role_id)
        assert permission.has_role(role_id)
        mock_probe.entity_updated.assert_called_with(
            entity_type="permission",
            entity_id=permission.id.value,
            fields=["role_ids"],
        )

        service.remove_from_role(permission.id, role_id)
        assert not permission.has_role(role_id)

    def test_assign_twice_fails(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        role_id = RoleId.generate()
        service.assign_to_role(permission.id, role_id)

        with pytest.raises(StateError, match="already granted"):
            service.assign_to_role(permission.id, role_id)

    def test_role_capacity(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        permission.update_limits(max_roles=1)
        service.assign_to_role(permission.id, RoleId.generate())

        with pytest.raises(CapacityError):
            service.assign_to_role(permission.id, RoleId.generate())

    def test_suspended_permission_cannot_be_granted(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        service.change_permission_status(permission.id, EntityStatus.SUSPENDED)

        with pytest.raises(StateError):
            service.assign_to_role(permission.id, RoleId.generate())

    def test_remove_ungranted_role_fails(self, service, organization_id):
        permission = create(service, organization_id, "report:read")

        with pytest.raises(StateError):
            service.remove_from_role(permission.id, RoleId.generate())

    def test_checks_role_when_repository_given(
        self, permission_repository, role_repository, organization_id
    ):
        service = PermissionDomainService(
            permission_repository, role_repository=role_repository
        )
        permission = create(service, organization_id, "report:read")
        foreign_role = Role.create(
            organization_id=OrganizationId.generate(),
            code=RoleCode("EDITOR"),
            name="Editor",
        )
        role_repository.save(foreign_role)

        with pytest.raises(NotFoundError):
            service.assign_to_role(permission.id, RoleId.generate())
        with pytest.raises(ValidationError, match="another organization"):
            service.assign_to_role(permission.id, foreign_role.id)


class TestUserGrants:
    """Tests for assign_to_user() and remove_from_user()."""

    def test_assign_and_remove(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        user_id = UserId.generate()

        service.assign_to_user(permission.id, user_id)
        assert permission.has_user(user_id)

        service.remove_from_user(permission.id, user_id)
        assert not permission.has_user(user_id)

    def test_user_capacity(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        permission.update_limits(max_users=0)

        with pytest.raises(CapacityError):
            service.assign_to_user(permission.id, UserId.generate())

    def test_unknown_user_when_repository_given(
        self, permission_repository, user_repository, organization_id
    ):
        service = PermissionDomainService(
            permission_repository, user_repository=user_repository
        )
        permission = create(service, organization_id, "report:read")

        with pytest.raises(NotFoundError):
            service.assign_to_user(permission.id, UserId.generate())


class TestUpdatePermission:
    """Tests for PermissionDomainService.update_permission()."""

    def test_updates_fields(self, service, organization_id, mock_probe):
        permission = create(service, organization_id, "report:read")

        service.update_permission(
            permission.id,
            UpdatePermissionRequest(
                name="Read reports",
                action=PermissionAction.VIEW,
                limits={"max_users": 5},
            ),
        )

        assert permission.name == "Read reports"
        assert permission.action is PermissionAction.VIEW
        assert permission.limits.max_users == 5
        fields = mock_probe.entity_updated.call_args.kwargs["fields"]
        assert fields == ["name", "action", "limits"]

    def test_invalid_change_leaves_permission_untouched(
        self, service, organization_id
    ):
        permission = create(service, organization_id, "report:read")
        original_name = permission.name

        with pytest.raises(ValidationError) as exc_info:
            service.update_permission(
                permission.id,
                UpdatePermissionRequest(
                    name="Renamed", scope="galaxy", limits={"max_rolez": 1}
                ),
            )

        assert len(exc_info.value.violations) == 2
        assert permission.name == original_name
        assert permission.scope is PermissionScope.ORGANIZATION

    def test_limit_cannot_drop_below_grants(self, service, organization_id):
        permission = create(service, organization_id, "report:read")
        service.assign_to_role(permission.id, RoleId.generate())
        service.assign_to_role(permission.id, RoleId.generate())

        with pytest.raises(CapacityError):
            service.update_permission(
                permission.id, UpdatePermissionRequest(limits={"max_roles": 1})
            )

        assert permission.limits.max_roles == PermissionLimits().max_roles


class TestClonePermission:
    """Tests for PermissionDomainService.clone_permission()."""

    def test_copies_definition_without_grants(self, service, organization_id):
        source = create(service, organization_id, "report:read")
        source.update_limits(max_users=7)
        service.assign_to_role(source.id, RoleId.generate())

        clone = service.clone_permission(source.id, "report:read:global", "Copy")

        assert clone.id != source.id
        assert clone.organization_id == source.organization_id
        assert clone.action is source.action
        assert clone.limits.max_users == 7
        assert clone.role_ids == frozenset()
        assert clone.parent_id is None

    def test_rejects_taken_code(self, service, organization_id):
        source = create(service, organization_id, "report:read")

        with pytest.raises(UniquenessError):
            service.clone_permission(source.id, "report:read", "Copy")


class TestPermissionHierarchy:
    """Tests for get_permission_path() and get_permission_hierarchy()."""

    def test_path_and_hierarchy(self, service, organization_id):
        manage = create(service, organization_id, "report:manage")
        read = create(service, organization_id, "report:read", parent_id=manage.id)

        assert service.get_permission_path(read.id) == [manage, read]
        hierarchy = service.get_permission_hierarchy(manage.id)
        assert [node.entity for node in hierarchy.children] == [read]
