"""Unit tests for UserAggregate.

The user aggregate owns the account security state, so besides the
membership sets these tests cover the lockout policy and the password
history.
"""

from unittest.mock import create_autospec

import pytest

from iam.domain.aggregates import UserAggregate
from iam.domain.entities import User, UserProfile, UserStatus
from iam.domain.events import (
    UserLocked,
    UserLoginFailed,
    UserLoginSucceeded,
    UserPasswordChanged,
    UserProfileUpdated,
    UserRoleAssigned,
    UserStatusChanged,
)
from iam.domain.exceptions import StateError, ValidationError
from iam.domain.observability import AggregateProbe
from iam.domain.value_objects import (
    Email,
    OrganizationId,
    Password,
    RoleId,
    TenantId,
    Username,
)

PASSWORD = "Correct7Horse"


def make_user(organization_id=None) -> User:
    user = User.create(
        tenant_id=TenantId.generate(),
        username=Username("jdoe"),
        email=Email("jdoe@example.com"),
        password=Password(PASSWORD),
        profile=UserProfile(first_name="Jane", last_name="Doe"),
        organization_id=organization_id,
    )
    user.change_status(UserStatus.ACTIVE)
    return user


@pytest.fixture
def mock_probe():
    return create_autospec(AggregateProbe, instance=True)


@pytest.fixture
def aggregate(mock_probe) -> UserAggregate:
    return UserAggregate.create(make_user(), probe=mock_probe)


class TestCreation:
    """Tests for UserAggregate.create()."""

    def test_primary_organization_is_a_membership(self):
        organization_id = OrganizationId.generate()

        aggregate = UserAggregate.create(make_user(organization_id))

        assert aggregate.organizations == frozenset({organization_id})
        assert aggregate.statistics.organization_count == 1

    def test_policy_overrides(self):
        aggregate = UserAggregate.create(
            make_user(), max_failed_login_attempts=3, password_history_size=2
        )

        assert aggregate.max_failed_login_attempts == 3
        assert aggregate.password_history_size == 2


class TestMemberships:
    """Tests for roles and organizations."""

    def test_assign_role_mirrors_entity(self, aggregate):
        role_id = RoleId.generate()

        aggregate.assign_role(role_id)

        assert aggregate.user.has_role(role_id)
        (event,) = aggregate.collect_events()
        assert isinstance(event, UserRoleAssigned)
        assert event.role_id == role_id.value

    def test_first_organization_becomes_primary(self, aggregate):
        first = OrganizationId.generate()
        second = OrganizationId.generate()

        aggregate.join_organization(first)
        aggregate.join_organization(second)
        assert aggregate.user.organization_id == first

        aggregate.leave_organization(first)
        assert aggregate.user.organization_id == second


class TestLogin:
    """Tests for record_login() and the lockout policy."""

    def test_locks_after_max_failures(self, aggregate, mock_probe):
        for _ in range(5):
            aggregate.record_login("10.0.0.1", "pytest", False, "bad password")

        assert aggregate.is_locked
        events = aggregate.collect_events()
        failures = [e for e in events if isinstance(e, UserLoginFailed)]
        locks = [e for e in events if isinstance(e, UserLocked)]
        assert [e.consecutive_failures for e in failures] == [1, 2, 3, 4, 5]
        assert len(locks) == 1
        assert events[-1] is locks[0]
        assert mock_probe.login_failed.call_count == 5
        mock_probe.account_locked.assert_called_once()

    def test_failures_while_locked_do_not_relock(self, aggregate):
        for _ in range(6):
            aggregate.record_login("10.0.0.1", "pytest", False)

        locks = [e for e in aggregate.collect_events() if isinstance(e, UserLocked)]
        assert len(locks) == 1

    def test_success_unlocks_and_counts(self, aggregate):
        for _ in range(5):
            aggregate.record_login("10.0.0.1", "pytest", False)
        aggregate.collect_events()

        aggregate.record_login("10.0.0.1", "pytest", True)

        assert aggregate.is_active
        assert aggregate.user.login_attempts == 0
        assert aggregate.statistics.login_count == 1
        status_changed, succeeded = aggregate.collect_events()
        assert isinstance(status_changed, UserStatusChanged)
        assert status_changed.old_status == "locked"
        assert status_changed.new_status == "active"
        assert isinstance(succeeded, UserLoginSucceeded)

    def test_success_without_lock_emits_only_login_event(self, aggregate):
        aggregate.record_login("10.0.0.1", "pytest", True)

        (event,) = aggregate.collect_events()
        assert isinstance(event, UserLoginSucceeded)

    def test_lockout_does_not_lift_suspension(self, aggregate):
        aggregate.change_status(UserStatus.SUSPENDED)
        for _ in range(5):
            aggregate.record_login("10.0.0.1", "pytest", False)
        aggregate.collect_events()

        with pytest.raises(StateError):
            aggregate.record_login("10.0.0.1", "pytest", True)

        assert aggregate.collect_events() == []
        assert aggregate.statistics.login_count == 0

        aggregate.unlock()

        assert aggregate.user.status is UserStatus.SUSPENDED
        (event,) = aggregate.collect_events()
        assert event.new_status == "suspended"

    def test_threshold_follows_policy(self):
        aggregate = UserAggregate.create(make_user(), max_failed_login_attempts=2)

        aggregate.record_login("10.0.0.1", "pytest", False)
        aggregate.record_login("10.0.0.1", "pytest", False)

        assert aggregate.user.status is UserStatus.LOCKED


class TestLocking:
    """Tests for manual lock() and unlock()."""

    def test_manual_lock(self, aggregate):
        aggregate.lock(reason="investigation")

        status_changed, locked = aggregate.collect_events()
        assert isinstance(status_changed, UserStatusChanged)
        assert status_changed.new_status == "locked"
        assert isinstance(locked, UserLocked)
        assert locked.reason == "investigation"

    def test_unlock_requires_lock(self, aggregate):
        with pytest.raises(StateError):
            aggregate.unlock()

    def test_unlock(self, aggregate):
        aggregate.lock()
        aggregate.collect_events()

        aggregate.unlock(reason="cleared")

        assert aggregate.user.status is UserStatus.ACTIVE
        (event,) = aggregate.collect_events()
        assert event.old_status == "locked"
        assert event.reason == "cleared"


class TestPasswordHistory:
    """Tests for change_password()."""

    def test_rejects_current_password(self, aggregate):
        with pytest.raises(ValidationError):
            aggregate.change_password(Password(PASSWORD))

    def test_rejects_remembered_password(self, aggregate):
        aggregate.change_password(Password("Battery9Staple"))

        with pytest.raises(ValidationError):
            aggregate.change_password(Password(PASSWORD))

    def test_history_is_bounded(self):
        aggregate = UserAggregate.create(make_user(), password_history_size=1)

        aggregate.change_password(Password("Battery9Staple"))
        aggregate.change_password(Password("Purple4Monkey"))
        aggregate.change_password(Password(PASSWORD))

        assert len(aggregate.password_history) == 1
        assert aggregate.user.verify_password(PASSWORD)
        events = aggregate.collect_events()
        assert all(isinstance(e, UserPasswordChanged) for e in events)


class TestProfile:
    """Tests for update_profile()."""

    def test_records_changed_fields(self, aggregate):
        aggregate.update_profile(title="Engineer", language="fr")

        (event,) = aggregate.collect_events()
        assert isinstance(event, UserProfileUpdated)
        assert event.changed_fields == ("language", "title")

    def test_rejects_unknown_fields(self, aggregate):
        with pytest.raises(ValidationError, match="nickname"):
            aggregate.update_profile(nickname="JD")

    def test_rejects_blank_name(self, aggregate):
        with pytest.raises(ValidationError):
            aggregate.update_profile(first_name="")
