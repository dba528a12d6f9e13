"""Unit tests for the domain service observability probe."""

from unittest.mock import MagicMock

from iam.domain.observability import DefaultDomainServiceProbe


class TestDefaultDomainServiceProbe:
    """Tests for DefaultDomainServiceProbe."""

    def test_creates_with_default_logger(self):
        probe = DefaultDomainServiceProbe()

        assert probe._logger is not None

    def test_logs_entity_created(self):
        mock_logger = MagicMock()
        probe = DefaultDomainServiceProbe(logger=mock_logger)

        probe.entity_created(
            entity_type="organization", entity_id="org-1", scope_id="tenant-1"
        )

        mock_logger.info.assert_called_once_with(
            "organization_created", entity_id="org-1", scope_id="tenant-1"
        )

    def test_logs_creation_failure_at_warning_level(self):
        mock_logger = MagicMock()
        probe = DefaultDomainServiceProbe(logger=mock_logger)

        probe.entity_creation_failed(
            entity_type="role", violations=("Role name cannot be empty",)
        )

        mock_logger.warning.assert_called_once_with(
            "role_creation_failed", violations=["Role name cannot be empty"]
        )

    def test_logs_moves(self):
        mock_logger = MagicMock()
        probe = DefaultDomainServiceProbe(logger=mock_logger)

        probe.entity_moved(
            entity_type="department",
            entity_id="dept-2",
            old_parent_id=None,
            new_parent_id="dept-1",
        )
        probe.entity_move_rejected(
            entity_type="department", entity_id="dept-1", reason="cycle"
        )

        assert mock_logger.info.call_args[0][0] == "department_moved"
        assert mock_logger.info.call_args[1]["new_parent_id"] == "dept-1"
        assert mock_logger.warning.call_args[0][0] == "department_move_rejected"

    def test_logs_not_found_at_debug_level(self):
        mock_logger = MagicMock()
        probe = DefaultDomainServiceProbe(logger=mock_logger)

        probe.entity_not_found(entity_type="tenant", entity_id="t-1")

        mock_logger.debug.assert_called_once_with("tenant_not_found", entity_id="t-1")

    def test_logs_login_recorded(self):
        mock_logger = MagicMock()
        probe = DefaultDomainServiceProbe(logger=mock_logger)

        probe.login_recorded(user_id="user-1", success=False, consecutive_failures=2)

        mock_logger.info.assert_called_once_with(
            "user_login_recorded",
            user_id="user-1",
            success=False,
            consecutive_failures=2,
        )
