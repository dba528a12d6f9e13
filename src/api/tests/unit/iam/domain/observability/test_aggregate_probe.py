"""Unit tests for the aggregate observability probe."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import structlog

from iam.domain.observability import AggregateProbe, DefaultAggregateProbe


class TestDefaultAggregateProbeInit:
    """Tests for DefaultAggregateProbe initialization."""

    def test_creates_with_default_logger(self):
        """Should create default logger when none provided."""
        probe = DefaultAggregateProbe()

        assert probe._logger is not None

    def test_creates_with_custom_logger(self):
        """Should use provided logger."""
        custom_logger = structlog.get_logger()
        probe = DefaultAggregateProbe(logger=custom_logger)

        assert probe._logger is custom_logger

    def test_usable_as_protocol(self):
        probe: AggregateProbe = DefaultAggregateProbe()

        probe.member_added(
            aggregate="role",
            aggregate_id="role-1",
            collection="users",
            member_id="user-1",
        )


class TestMembershipLogging:
    """Tests for member_added and member_removed."""

    def test_logs_member_added_at_info_level(self):
        """Event name is prefixed with the aggregate kind."""
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.member_added(
            aggregate="organization",
            aggregate_id="org-123",
            collection="departments",
            member_id="dept-1",
        )

        mock_logger.info.assert_called_once()
        call_args = mock_logger.info.call_args
        assert call_args[0][0] == "organization_member_added"
        assert call_args[1]["aggregate_id"] == "org-123"
        assert call_args[1]["collection"] == "departments"
        assert call_args[1]["member_id"] == "dept-1"

    def test_logs_member_removed(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.member_removed(
            aggregate="department",
            aggregate_id="dept-1",
            collection="users",
            member_id="user-1",
        )

        assert mock_logger.info.call_args[0][0] == "department_member_removed"


class TestWarnings:
    """Tests for the probes logged at warning level."""

    def test_logs_capacity_exceeded(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.capacity_exceeded(
            aggregate="role",
            aggregate_id="role-1",
            collection="permissions",
            limit=100,
        )

        mock_logger.warning.assert_called_once()
        call_args = mock_logger.warning.call_args
        assert call_args[0][0] == "role_capacity_exceeded"
        assert call_args[1]["limit"] == 100

    def test_logs_limits_warning_as_list(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.limits_warning(
            aggregate="organization",
            aggregate_id="org-1",
            warnings=("roles count 45 is approaching the limit of 50",),
        )

        call_args = mock_logger.warning.call_args
        assert call_args[0][0] == "organization_limits_warning"
        assert call_args[1]["warnings"] == [
            "roles count 45 is approaching the limit of 50"
        ]

    def test_logs_account_locked_with_iso_timestamp(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)
        locked_until = datetime(2030, 1, 1, tzinfo=UTC)

        probe.account_locked(user_id="user-1", locked_until=locked_until)

        call_args = mock_logger.warning.call_args
        assert call_args[0][0] == "user_account_locked"
        assert call_args[1]["locked_until"] == "2030-01-01T00:00:00+00:00"

    def test_logs_login_failed(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.login_failed(user_id="user-1", consecutive_failures=3)

        mock_logger.warning.assert_called_once_with(
            "user_login_failed", user_id="user-1", consecutive_failures=3
        )


class TestStatusLogging:
    """Tests for status_changed and settings_updated."""

    def test_logs_status_changed(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.status_changed(
            aggregate="user",
            aggregate_id="user-1",
            old_status="active",
            new_status="suspended",
            reason=None,
        )

        mock_logger.info.assert_called_once_with(
            "user_status_changed",
            aggregate_id="user-1",
            old_status="active",
            new_status="suspended",
            reason=None,
        )

    def test_logs_settings_updated(self):
        mock_logger = MagicMock()
        probe = DefaultAggregateProbe(logger=mock_logger)

        probe.settings_updated(
            aggregate="role", aggregate_id="role-1", changes={"max_users": 10}
        )

        assert mock_logger.info.call_args[1]["changes"] == {"max_users": 10}
