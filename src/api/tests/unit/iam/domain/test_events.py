"""Unit tests for IAM domain events.

Domain events capture facts about things that have happened in the domain.
They are immutable and carry all the information needed to describe
the occurrence of the event.
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from iam.domain.events import (
    DepartmentSubDepartmentAdded,
    OrganizationStatusChanged,
    RoleMemberAdded,
    UserLocked,
)


class TestEventShape:
    """Tests shared by every domain event."""

    def test_event_type_is_class_name(self):
        event = RoleMemberAdded(
            role_id="01ARZCX0P0HZGQP3MZXQQ0NNZZ",
            user_id="01ARZCX0P0HZGQP3MZXQQ0NNYY",
            occurred_at=datetime.now(UTC),
        )

        assert event.event_type == "RoleMemberAdded"

    def test_aggregate_id_reads_the_owning_id_field(self):
        event = DepartmentSubDepartmentAdded(
            department_id="01ARZCX0P0HZGQP3MZXQQ0NNZZ",
            sub_department_id="01ARZCX0P0HZGQP3MZXQQ0NNYY",
            occurred_at=datetime.now(UTC),
        )

        assert event.aggregate_id == "01ARZCX0P0HZGQP3MZXQQ0NNZZ"

    def test_events_are_immutable(self):
        event = OrganizationStatusChanged(
            organization_id="01ARZCX0P0HZGQP3MZXQQ0NNZZ",
            old_status="active",
            new_status="suspended",
            reason=None,
            occurred_at=datetime.now(UTC),
        )

        with pytest.raises(FrozenInstanceError):
            event.new_status = "disabled"

    def test_events_compare_by_value(self):
        occurred_at = datetime.now(UTC)
        kwargs = dict(
            user_id="01ARZCX0P0HZGQP3MZXQQ0NNZZ",
            locked_until=occurred_at,
            reason="manual",
            occurred_at=occurred_at,
        )

        assert UserLocked(**kwargs) == UserLocked(**kwargs)
