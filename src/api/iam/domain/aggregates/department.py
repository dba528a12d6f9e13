"""Department aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Membership,
)
from iam.domain.entities import Department
from iam.domain.entities.base import utc_now
from iam.domain.events import (
    DepartmentLimitsWarning,
    DepartmentRoleAdded,
    DepartmentRoleRemoved,
    DepartmentSettingsUpdated,
    DepartmentStatusChanged,
    DepartmentSubDepartmentAdded,
    DepartmentSubDepartmentRemoved,
    DepartmentUserAdded,
    DepartmentUserRemoved,
    IAMEvent,
)
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe
from iam.domain.value_objects import DepartmentId, RoleId, UserId


@dataclass(frozen=True)
class DepartmentAggregateSettings:
    allow_sub_department_creation: bool = True
    allow_user_assignment: bool = True
    allow_role_assignment: bool = True
    max_sub_departments: int = 20
    max_users: int = 500
    max_roles: int = 50
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DepartmentStatistics:
    sub_department_count: int = 0
    user_count: int = 0
    role_count: int = 0
    active_user_count: int = 0


@dataclass
class DepartmentAggregate(AggregateRoot):
    """Consistency boundary around a department.

    Sub-departments and users are mirrored into the wrapped Department's
    child and member sets, so adding the department itself as a
    sub-department raises HierarchyError.
    """

    department: Department
    settings: DepartmentAggregateSettings = field(
        default_factory=DepartmentAggregateSettings
    )
    statistics: DepartmentStatistics = field(default_factory=DepartmentStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    _sub_department_ids: set[DepartmentId] = field(default_factory=set, repr=False)
    _user_ids: set[UserId] = field(default_factory=set, repr=False)
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "department"
    MEMBERSHIPS: ClassVar[dict[str, Membership]] = {
        "sub_departments": Membership(
            label="sub-department",
            attribute="_sub_department_ids",
            count_field="sub_department_count",
            max_setting="max_sub_departments",
            allow_setting="allow_sub_department_creation",
            added_event=DepartmentSubDepartmentAdded,
            removed_event=DepartmentSubDepartmentRemoved,
            member_field="sub_department_id",
            entity_add="add_child",
            entity_remove="remove_child",
        ),
        "users": Membership(
            label="user",
            attribute="_user_ids",
            count_field="user_count",
            max_setting="max_users",
            allow_setting="allow_user_assignment",
            added_event=DepartmentUserAdded,
            removed_event=DepartmentUserRemoved,
            member_field="user_id",
            entity_add="add_member",
            entity_remove="remove_member",
        ),
        "roles": Membership(
            label="role",
            attribute="_role_ids",
            count_field="role_count",
            max_setting="max_roles",
            allow_setting="allow_role_assignment",
            added_event=DepartmentRoleAdded,
            removed_event=DepartmentRoleRemoved,
            member_field="role_id",
        ),
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = DepartmentSettingsUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = DepartmentStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = DepartmentLimitsWarning

    @classmethod
    def create(
        cls,
        department: Department,
        settings: DepartmentAggregateSettings | None = None,
        probe: AggregateProbe | None = None,
        limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO,
    ) -> DepartmentAggregate:
        return cls(
            department=department,
            settings=settings or DepartmentAggregateSettings(),
            limits_warning_ratio=limits_warning_ratio,
            _probe=probe or DefaultAggregateProbe(),
        )

    @property
    def root(self) -> Department:
        return self.department

    @property
    def sub_departments(self) -> frozenset[DepartmentId]:
        return self.members_of("sub_departments")

    @property
    def users(self) -> frozenset[UserId]:
        return self.members_of("users")

    @property
    def roles(self) -> frozenset[RoleId]:
        return self.members_of("roles")

    def can_add_sub_department(self) -> bool:
        return self.can_add("sub_departments")

    def can_add_user(self) -> bool:
        return self.can_add("users")

    def can_add_role(self) -> bool:
        return self.can_add("roles")

    def add_sub_department(self, department_id: DepartmentId) -> None:
        """Attach a child department.

        Raises:
            HierarchyError: If department_id is this department's own id
            StateError: If the child is already attached
            CapacityError: If sub-departments are disabled or the maximum
                is reached
        """
        self._add("sub_departments", department_id)

    def remove_sub_department(self, department_id: DepartmentId) -> None:
        self._remove("sub_departments", department_id)

    def add_user(self, user_id: UserId) -> None:
        self._add("users", user_id)

    def remove_user(self, user_id: UserId) -> None:
        self._remove("users", user_id)

    def add_role(self, role_id: RoleId) -> None:
        self._add("roles", role_id)

    def remove_role(self, role_id: RoleId) -> None:
        self._remove("roles", role_id)

    def has_sub_department(self, department_id: DepartmentId) -> bool:
        return self.has("sub_departments", department_id)

    def has_user(self, user_id: UserId) -> bool:
        return self.has("users", user_id)

    def has_role(self, role_id: RoleId) -> bool:
        return self.has("roles", role_id)
