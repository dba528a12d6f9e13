"""Unit tests for DepartmentAggregate."""

from unittest.mock import create_autospec

import pytest

from iam.domain.aggregates import DepartmentAggregate, DepartmentAggregateSettings
from iam.domain.entities import Department
from iam.domain.events import DepartmentSubDepartmentAdded, DepartmentUserRemoved
from iam.domain.exceptions import CapacityError, HierarchyError
from iam.domain.observability import AggregateProbe
from iam.domain.value_objects import (
    DepartmentCode,
    DepartmentId,
    OrganizationId,
    RoleId,
    TenantId,
    UserId,
)


@pytest.fixture
def mock_probe():
    return create_autospec(AggregateProbe, instance=True)


@pytest.fixture
def aggregate(mock_probe) -> DepartmentAggregate:
    department = Department.create(
        organization_id=OrganizationId.generate(),
        tenant_id=TenantId.generate(),
        code=DepartmentCode("ENG"),
        name="Engineering",
    )
    return DepartmentAggregate.create(department, probe=mock_probe)


class TestSubDepartments:
    """Tests for the sub-department set."""

    def test_add_links_entity_child(self, aggregate):
        child_id = DepartmentId.generate()

        aggregate.add_sub_department(child_id)

        assert aggregate.department.has_child(child_id)
        assert aggregate.sub_departments == frozenset({child_id})
        (event,) = aggregate.collect_events()
        assert isinstance(event, DepartmentSubDepartmentAdded)
        assert event.sub_department_id == child_id.value

    def test_cannot_add_itself(self, aggregate):
        with pytest.raises(HierarchyError):
            aggregate.add_sub_department(aggregate.id)

        assert aggregate.statistics.sub_department_count == 0
        assert aggregate.collect_events() == []

    def test_respects_maximum(self, mock_probe):
        department = Department.create(
            organization_id=OrganizationId.generate(),
            tenant_id=TenantId.generate(),
            code=DepartmentCode("ENG"),
            name="Engineering",
        )
        aggregate = DepartmentAggregate.create(
            department,
            settings=DepartmentAggregateSettings(max_sub_departments=1),
            probe=mock_probe,
        )
        aggregate.add_sub_department(DepartmentId.generate())

        assert not aggregate.can_add_sub_department()
        with pytest.raises(CapacityError):
            aggregate.add_sub_department(DepartmentId.generate())


class TestUsersAndRoles:
    """Tests for user and role assignment."""

    def test_user_assignment_can_be_closed(self, aggregate):
        aggregate.update_settings(allow_user_assignment=False)

        with pytest.raises(CapacityError):
            aggregate.add_user(UserId.generate())

    def test_remove_user_updates_entity(self, aggregate, mock_probe):
        user_id = UserId.generate()
        aggregate.add_user(user_id)
        aggregate.collect_events()

        aggregate.remove_user(user_id)

        assert not aggregate.department.has_member(user_id)
        (event,) = aggregate.collect_events()
        assert isinstance(event, DepartmentUserRemoved)
        mock_probe.member_removed.assert_called_once()

    def test_roles_are_counted(self, aggregate):
        aggregate.add_role(RoleId.generate())
        aggregate.add_role(RoleId.generate())

        assert aggregate.statistics.role_count == 2
        assert len(aggregate.roles) == 2
