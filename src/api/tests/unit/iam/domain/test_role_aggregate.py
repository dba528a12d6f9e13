"""Unit tests for RoleAggregate."""

from unittest.mock import create_autospec

import pytest

from iam.domain.aggregates import RoleAggregate, RoleAggregateSettings
from iam.domain.entities import EntityStatus, Role, RoleType
from iam.domain.events import RolePermissionAssigned, RoleStatusChanged
from iam.domain.exceptions import CapacityError, StateError
from iam.domain.observability import AggregateProbe
from iam.domain.value_objects import (
    OrganizationId,
    PermissionId,
    RoleCode,
    RoleId,
    UserId,
)


@pytest.fixture
def mock_probe():
    return create_autospec(AggregateProbe, instance=True)


def make_role(type=RoleType.CUSTOM) -> Role:
    return Role.create(
        organization_id=OrganizationId.generate(),
        code=RoleCode("EDITOR"),
        name="Editor",
        type=type,
    )


@pytest.fixture
def aggregate(mock_probe) -> RoleAggregate:
    return RoleAggregate.create(make_role(), probe=mock_probe)


class TestPermissions:
    """Tests for permission assignment."""

    def test_assign_permission(self, aggregate):
        permission_id = PermissionId.generate()

        aggregate.assign_permission(permission_id)

        assert aggregate.has_permission(permission_id)
        (event,) = aggregate.collect_events()
        assert isinstance(event, RolePermissionAssigned)
        assert event.permission_id == permission_id.value

    def test_assignment_stops_at_maximum(self, aggregate, mock_probe):
        aggregate.update_settings(max_permissions=2)
        aggregate.assign_permission(PermissionId.generate())
        aggregate.assign_permission(PermissionId.generate())

        assert not aggregate.can_assign_permission()
        with pytest.raises(CapacityError):
            aggregate.assign_permission(PermissionId.generate())

        assert aggregate.statistics.permission_count == 2
        mock_probe.capacity_exceeded.assert_called_once_with(
            aggregate="role",
            aggregate_id=aggregate.id.value,
            collection="permissions",
            limit=2,
        )


class TestMembersAndSubRoles:
    """Tests for users and sub-roles."""

    def test_add_user_mirrors_entity(self, aggregate):
        user_id = UserId.generate()

        aggregate.add_user(user_id)

        assert aggregate.role.has_member(user_id)
        assert aggregate.users == frozenset({user_id})

    def test_duplicate_user_is_rejected(self, aggregate):
        user_id = UserId.generate()
        aggregate.add_user(user_id)

        with pytest.raises(StateError, match="already exists"):
            aggregate.add_user(user_id)

    def test_sub_roles_link_entity_children(self, aggregate):
        child_id = RoleId.generate()

        aggregate.add_sub_role(child_id)
        assert aggregate.role.has_child(child_id)

        aggregate.remove_sub_role(child_id)
        assert not aggregate.role.has_child(child_id)


class TestSystemRole:
    """Tests for SYSTEM role protection."""

    def test_system_role_cannot_be_disabled(self, mock_probe):
        aggregate = RoleAggregate.create(
            make_role(RoleType.SYSTEM), probe=mock_probe
        )

        assert aggregate.is_system
        with pytest.raises(StateError):
            aggregate.change_status(EntityStatus.DISABLED)

        assert aggregate.status is EntityStatus.ACTIVE
        assert aggregate.collect_events() == []
        mock_probe.status_changed.assert_not_called()

    def test_custom_role_can_be_disabled(self, aggregate):
        aggregate.change_status(EntityStatus.DISABLED, reason="retired")

        (event,) = aggregate.collect_events()
        assert isinstance(event, RoleStatusChanged)
        assert event.new_status == "disabled"


class TestMemberCaps:
    """Tests for the member cap shared by the role and its aggregate."""

    def test_settings_follow_role_limits(self):
        role = make_role()
        role.update_limits(max_members=3, max_sub_roles=2)

        aggregate = RoleAggregate.create(role)

        assert aggregate.settings.max_users == 3
        assert aggregate.settings.max_sub_roles == 2

    def test_explicit_settings_are_written_to_role(self):
        role = make_role()

        RoleAggregate.create(role, settings=RoleAggregateSettings(max_users=1))

        assert role.limits.max_members == 1

    def test_settings_update_reaches_role(self, aggregate):
        aggregate.add_user(UserId.generate())

        aggregate.update_settings(max_users=1)

        assert aggregate.role.limits.max_members == 1
        assert not aggregate.role.can_add_member()
        assert not aggregate.can_add_user()

    def test_role_limit_is_enforced(self, aggregate):
        aggregate.role.update_limits(max_members=1)
        aggregate.add_user(UserId.generate())

        with pytest.raises(CapacityError):
            aggregate.add_user(UserId.generate())
