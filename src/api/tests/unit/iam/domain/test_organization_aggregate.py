"""Unit tests for OrganizationAggregate.

Covers the membership sets, the settings guards, the limits warning and
status changes, together with the events and probe calls they produce.
"""

from unittest.mock import create_autospec

import pytest

from iam.domain.aggregates import (
    OrganizationAggregate,
    OrganizationAggregateSettings,
    OrganizationStatistics,
)
from iam.domain.entities import EntityStatus, Organization
from iam.domain.events import (
    OrganizationDepartmentAdded,
    OrganizationLimitsWarning,
    OrganizationSettingsUpdated,
    OrganizationStatusChanged,
)
from iam.domain.exceptions import CapacityError, StateError, ValidationError
from iam.domain.observability import AggregateProbe
from iam.domain.value_objects import (
    DepartmentId,
    OrganizationCode,
    RoleId,
    TenantId,
    UserId,
)


@pytest.fixture
def mock_probe():
    return create_autospec(AggregateProbe, instance=True)


@pytest.fixture
def aggregate(mock_probe) -> OrganizationAggregate:
    organization = Organization.create(
        tenant_id=TenantId.generate(),
        code=OrganizationCode("ACME-HQ"),
        name="Acme HQ",
    )
    return OrganizationAggregate.create(organization, probe=mock_probe)


class TestCreation:
    """Tests for OrganizationAggregate.create()."""

    def test_starts_empty(self, aggregate):
        assert aggregate.statistics == OrganizationStatistics()
        assert aggregate.departments == frozenset()
        assert aggregate.collect_events() == []

    def test_exposes_wrapped_entity(self, aggregate):
        assert aggregate.id == aggregate.organization.id
        assert aggregate.status is EntityStatus.ACTIVE

    def test_default_probe(self):
        organization = Organization.create(
            tenant_id=TenantId.generate(),
            code=OrganizationCode("ACME-HQ"),
            name="Acme HQ",
        )

        aggregate = OrganizationAggregate.create(organization)

        assert aggregate._probe is not None


class TestMembership:
    """Tests for adding and removing members."""

    def test_add_department_records_event(self, aggregate, mock_probe):
        department_id = DepartmentId.generate()

        aggregate.add_department(department_id)

        assert aggregate.has_department(department_id)
        assert aggregate.statistics.department_count == 1
        events = aggregate.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], OrganizationDepartmentAdded)
        assert events[0].department_id == department_id.value
        assert events[0].organization_id == aggregate.id.value
        mock_probe.member_added.assert_called_once_with(
            aggregate="organization",
            aggregate_id=aggregate.id.value,
            collection="departments",
            member_id=department_id.value,
        )

    def test_duplicate_add_is_rejected(self, aggregate):
        role_id = RoleId.generate()
        aggregate.add_role(role_id)
        aggregate.collect_events()

        with pytest.raises(StateError):
            aggregate.add_role(role_id)

        assert aggregate.statistics.role_count == 1
        assert aggregate.collect_events() == []

    def test_allow_flag_blocks_additions(self, aggregate, mock_probe):
        aggregate.update_settings(allow_department_creation=False)

        assert not aggregate.can_add_department()
        with pytest.raises(CapacityError):
            aggregate.add_department(DepartmentId.generate())

        mock_probe.capacity_exceeded.assert_called_once()

    def test_maximum_blocks_additions(self, aggregate):
        aggregate.update_settings(max_roles=1)
        aggregate.add_role(RoleId.generate())

        with pytest.raises(CapacityError, match="limit: 1"):
            aggregate.add_role(RoleId.generate())

    def test_remove_missing_member(self, aggregate):
        with pytest.raises(StateError):
            aggregate.remove_department(DepartmentId.generate())

    def test_users_are_mirrored_to_entity(self, aggregate):
        user_id = UserId.generate()

        aggregate.add_user(user_id)
        assert aggregate.organization.has_member(user_id)

        aggregate.remove_user(user_id)
        assert not aggregate.organization.has_member(user_id)
        assert aggregate.statistics.user_count == 0


class TestSettings:
    """Tests for update_settings()."""

    def test_applies_partial_update(self, aggregate):
        aggregate.update_settings(max_roles=20, features=["sso"])

        assert aggregate.settings.max_roles == 20
        assert aggregate.settings.max_departments == 100
        assert aggregate.is_feature_enabled("sso")
        (event,) = aggregate.collect_events()
        assert isinstance(event, OrganizationSettingsUpdated)
        assert event.changes["max_roles"] == 20

    def test_rejects_unknown_keys(self, aggregate):
        with pytest.raises(ValidationError, match="colour"):
            aggregate.update_settings(colour="blue")

    def test_rejects_negative_maximum(self, aggregate):
        with pytest.raises(ValidationError):
            aggregate.update_settings(max_users=-1)

    def test_cannot_shrink_below_usage(self, aggregate):
        aggregate.add_role(RoleId.generate())
        aggregate.add_role(RoleId.generate())

        with pytest.raises(CapacityError):
            aggregate.update_settings(max_roles=1)

        assert aggregate.settings == OrganizationAggregateSettings()


class TestStatistics:
    """Tests for update_statistics() and the limits warning."""

    def test_rejects_negative_counter(self, aggregate):
        with pytest.raises(ValidationError):
            aggregate.update_statistics(user_count=-1)

    def test_rejects_unknown_counter(self, aggregate):
        with pytest.raises(ValidationError):
            aggregate.update_statistics(project_count=1)

    def test_warns_when_close_to_limit(self, aggregate, mock_probe):
        aggregate.update_settings(max_roles=10)
        aggregate.collect_events()

        aggregate.update_statistics(role_count=9, user_count=10)

        (event,) = aggregate.collect_events()
        assert isinstance(event, OrganizationLimitsWarning)
        assert len(event.warnings) == 1
        assert "roles" in event.warnings[0]
        mock_probe.limits_warning.assert_called_once()

    def test_no_warning_below_ratio(self, aggregate):
        aggregate.update_statistics(role_count=10)

        assert aggregate.collect_events() == []

    def test_ratio_is_configurable(self):
        organization = Organization.create(
            tenant_id=TenantId.generate(),
            code=OrganizationCode("ACME-HQ"),
            name="Acme HQ",
        )
        aggregate = OrganizationAggregate.create(
            organization, limits_warning_ratio=0.5
        )

        aggregate.update_statistics(role_count=25)

        (event,) = aggregate.collect_events()
        assert "roles" in event.warnings[0]


class TestStatus:
    """Tests for change_status()."""

    def test_records_transition(self, aggregate, mock_probe):
        aggregate.change_status(EntityStatus.SUSPENDED, reason="audit")

        (event,) = aggregate.collect_events()
        assert isinstance(event, OrganizationStatusChanged)
        assert event.old_status == "active"
        assert event.new_status == "suspended"
        assert event.reason == "audit"
        mock_probe.status_changed.assert_called_once()

    def test_disabled_can_be_reactivated(self, aggregate):
        aggregate.change_status("disabled")
        aggregate.change_status("active")

        assert aggregate.status is EntityStatus.ACTIVE

    def test_rejects_unknown_status(self, aggregate):
        with pytest.raises(StateError):
            aggregate.change_status("archived")

        assert aggregate.collect_events() == []

    def test_rejects_same_status(self, aggregate):
        with pytest.raises(StateError):
            aggregate.change_status(EntityStatus.ACTIVE)


class TestEventCollection:
    """Tests for collect_events() and domain_events."""

    def test_collect_drains_in_order(self, aggregate):
        aggregate.add_department(DepartmentId.generate())
        aggregate.change_status("suspended")

        assert len(aggregate.domain_events) == 2
        events = aggregate.collect_events()

        assert [e.event_type for e in events] == [
            "OrganizationDepartmentAdded",
            "OrganizationStatusChanged",
        ]
        assert aggregate.collect_events() == []

    def test_clear_domain_events(self, aggregate):
        aggregate.add_department(DepartmentId.generate())

        aggregate.clear_domain_events()

        assert aggregate.domain_events == ()
