"""Organization aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Membership,
)
from iam.domain.entities import Organization
from iam.domain.entities.base import utc_now
from iam.domain.events import (
    IAMEvent,
    OrganizationDepartmentAdded,
    OrganizationDepartmentRemoved,
    OrganizationLimitsWarning,
    OrganizationPermissionAdded,
    OrganizationPermissionRemoved,
    OrganizationRoleAdded,
    OrganizationRoleRemoved,
    OrganizationSettingsUpdated,
    OrganizationStatusChanged,
    OrganizationUserAdded,
    OrganizationUserRemoved,
)
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe
from iam.domain.value_objects import DepartmentId, PermissionId, RoleId, UserId


@dataclass(frozen=True)
class OrganizationAggregateSettings:
    allow_department_creation: bool = True
    allow_role_creation: bool = True
    allow_permission_creation: bool = True
    max_departments: int = 100
    max_roles: int = 50
    max_permissions: int = 200
    max_users: int = 1000
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrganizationStatistics:
    department_count: int = 0
    role_count: int = 0
    permission_count: int = 0
    user_count: int = 0
    active_user_count: int = 0


@dataclass
class OrganizationAggregate(AggregateRoot):
    """Consistency boundary around an organization.

    Tracks the departments, roles, permissions and users that belong to the
    organization and enforces the per-organization quotas.

    Business rules:
    - An id can only be added once to each membership set
    - Departments, roles and permissions can only be added while the
      matching allow flag is set
    - No set may grow beyond its ``max_*`` setting
    - A ``max_*`` setting cannot be lowered below the current count

    Event collection:
    - All mutating operations record domain events
    - Events can be collected via collect_events()
    """

    organization: Organization
    settings: OrganizationAggregateSettings = field(
        default_factory=OrganizationAggregateSettings
    )
    statistics: OrganizationStatistics = field(default_factory=OrganizationStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    _department_ids: set[DepartmentId] = field(default_factory=set, repr=False)
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _permission_ids: set[PermissionId] = field(default_factory=set, repr=False)
    _user_ids: set[UserId] = field(default_factory=set, repr=False)
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "organization"
    MEMBERSHIPS: ClassVar[dict[str, Membership]] = {
        "departments": Membership(
            label="department",
            attribute="_department_ids",
            count_field="department_count",
            max_setting="max_departments",
            allow_setting="allow_department_creation",
            added_event=OrganizationDepartmentAdded,
            removed_event=OrganizationDepartmentRemoved,
            member_field="department_id",
        ),
        "roles": Membership(
            label="role",
            attribute="_role_ids",
            count_field="role_count",
            max_setting="max_roles",
            allow_setting="allow_role_creation",
            added_event=OrganizationRoleAdded,
            removed_event=OrganizationRoleRemoved,
            member_field="role_id",
        ),
        "permissions": Membership(
            label="permission",
            attribute="_permission_ids",
            count_field="permission_count",
            max_setting="max_permissions",
            allow_setting="allow_permission_creation",
            added_event=OrganizationPermissionAdded,
            removed_event=OrganizationPermissionRemoved,
            member_field="permission_id",
        ),
        "users": Membership(
            label="user",
            attribute="_user_ids",
            count_field="user_count",
            max_setting="max_users",
            allow_setting=None,
            added_event=OrganizationUserAdded,
            removed_event=OrganizationUserRemoved,
            member_field="user_id",
            entity_add="add_member",
            entity_remove="remove_member",
        ),
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = OrganizationSettingsUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = OrganizationStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = OrganizationLimitsWarning

    @classmethod
    def create(
        cls,
        organization: Organization,
        settings: OrganizationAggregateSettings | None = None,
        probe: AggregateProbe | None = None,
        limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO,
    ) -> OrganizationAggregate:
        """Wrap an organization in a fresh aggregate with empty statistics.

        Args:
            organization: The organization entity
            settings: Aggregate settings, defaults when omitted
            probe: Optional observability probe for domain events
            limits_warning_ratio: Fraction of a maximum that triggers a warning

        Returns:
            A new OrganizationAggregate
        """
        return cls(
            organization=organization,
            settings=settings or OrganizationAggregateSettings(),
            limits_warning_ratio=limits_warning_ratio,
            _probe=probe or DefaultAggregateProbe(),
        )

    @property
    def root(self) -> Organization:
        return self.organization

    @property
    def departments(self) -> frozenset[DepartmentId]:
        return self.members_of("departments")

    @property
    def roles(self) -> frozenset[RoleId]:
        return self.members_of("roles")

    @property
    def permissions(self) -> frozenset[PermissionId]:
        return self.members_of("permissions")

    @property
    def users(self) -> frozenset[UserId]:
        return self.members_of("users")

    def can_add_department(self) -> bool:
        return self.can_add("departments")

    def can_add_role(self) -> bool:
        return self.can_add("roles")

    def can_add_permission(self) -> bool:
        return self.can_add("permissions")

    def can_add_user(self) -> bool:
        return self.can_add("users")

    def add_department(self, department_id: DepartmentId) -> None:
        """Add a department to the organization.

        Raises:
            StateError: If the department is already part of the organization
            CapacityError: If department creation is disabled or the
                maximum is reached
        """
        self._add("departments", department_id)

    def remove_department(self, department_id: DepartmentId) -> None:
        self._remove("departments", department_id)

    def add_role(self, role_id: RoleId) -> None:
        self._add("roles", role_id)

    def remove_role(self, role_id: RoleId) -> None:
        self._remove("roles", role_id)

    def add_permission(self, permission_id: PermissionId) -> None:
        self._add("permissions", permission_id)

    def remove_permission(self, permission_id: PermissionId) -> None:
        self._remove("permissions", permission_id)

    def add_user(self, user_id: UserId) -> None:
        """Add a user to the organization.

        The user is mirrored into the organization entity's member set.
        """
        self._add("users", user_id)

    def remove_user(self, user_id: UserId) -> None:
        self._remove("users", user_id)

    def has_department(self, department_id: DepartmentId) -> bool:
        return self.has("departments", department_id)

    def has_role(self, role_id: RoleId) -> bool:
        return self.has("roles", role_id)

    def has_permission(self, permission_id: PermissionId) -> bool:
        return self.has("permissions", permission_id)

    def has_user(self, user_id: UserId) -> bool:
        return self.has("users", user_id)
