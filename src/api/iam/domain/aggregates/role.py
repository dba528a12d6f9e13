"""Role aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Membership,
)
from iam.domain.entities import Role
from iam.domain.entities.base import utc_now
from iam.domain.events import (
    IAMEvent,
    RoleLimitsWarning,
    RoleMemberAdded,
    RoleMemberRemoved,
    RolePermissionAssigned,
    RolePermissionRemoved,
    RoleSettingsUpdated,
    RoleStatusChanged,
    RoleSubRoleAdded,
    RoleSubRoleRemoved,
)
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe
from iam.domain.value_objects import PermissionId, RoleId, UserId


@dataclass(frozen=True)
class RoleAggregateSettings:
    allow_permission_assignment: bool = True
    allow_user_assignment: bool = True
    allow_sub_role_creation: bool = True
    max_permissions: int = 100
    max_users: int = 1000
    max_sub_roles: int = 10
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RoleStatistics:
    permission_count: int = 0
    user_count: int = 0
    sub_role_count: int = 0
    active_user_count: int = 0


@dataclass
class RoleAggregate(AggregateRoot):
    """Consistency boundary around a role.

    Business rules:
    - A SYSTEM role cannot be disabled (enforced by the Role entity and
      surfaced through change_status)
    - Members and sub-roles are mirrored into the wrapped Role entity
    - Permission, member and sub-role sets are capped by the role limits;
      ``settings.max_users`` mirrors ``role.limits.max_members``
    """

    role: Role
    settings: RoleAggregateSettings = field(default_factory=RoleAggregateSettings)
    statistics: RoleStatistics = field(default_factory=RoleStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    _permission_ids: set[PermissionId] = field(default_factory=set, repr=False)
    _user_ids: set[UserId] = field(default_factory=set, repr=False)
    _sub_role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "role"
    MEMBERSHIPS: ClassVar[dict[str, Membership]] = {
        "permissions": Membership(
            label="permission",
            attribute="_permission_ids",
            count_field="permission_count",
            max_setting="max_permissions",
            allow_setting="allow_permission_assignment",
            added_event=RolePermissionAssigned,
            removed_event=RolePermissionRemoved,
            member_field="permission_id",
        ),
        "users": Membership(
            label="member",
            attribute="_user_ids",
            count_field="user_count",
            max_setting="max_users",
            allow_setting="allow_user_assignment",
            added_event=RoleMemberAdded,
            removed_event=RoleMemberRemoved,
            member_field="user_id",
            entity_add="add_member",
            entity_remove="remove_member",
        ),
        "sub_roles": Membership(
            label="sub-role",
            attribute="_sub_role_ids",
            count_field="sub_role_count",
            max_setting="max_sub_roles",
            allow_setting="allow_sub_role_creation",
            added_event=RoleSubRoleAdded,
            removed_event=RoleSubRoleRemoved,
            member_field="sub_role_id",
            entity_add="add_child",
            entity_remove="remove_child",
        ),
    }
    ENTITY_LIMITS: ClassVar[dict[str, str]] = {
        "max_permissions": "max_permissions",
        "max_users": "max_members",
        "max_sub_roles": "max_sub_roles",
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = RoleSettingsUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = RoleStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = RoleLimitsWarning

    @classmethod
    def create(
        cls,
        role: Role,
        settings: RoleAggregateSettings | None = None,
        probe: AggregateProbe | None = None,
        limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO,
    ) -> RoleAggregate:
        """Wrap a role.

        Maxima of explicit settings are written to the role limits;
        without settings they are taken from the role limits.

        Raises:
            ValidationError: If a settings maximum is negative
        """
        aggregate = cls(
            role=role,
            settings=settings or RoleAggregateSettings(),
            limits_warning_ratio=limits_warning_ratio,
            _probe=probe or DefaultAggregateProbe(),
        )
        aggregate._sync_entity_limits(from_settings=settings is not None)
        return aggregate

    @property
    def root(self) -> Role:
        return self.role

    @property
    def is_system(self) -> bool:
        return self.role.is_system

    @property
    def permissions(self) -> frozenset[PermissionId]:
        return self.members_of("permissions")

    @property
    def users(self) -> frozenset[UserId]:
        return self.members_of("users")

    @property
    def sub_roles(self) -> frozenset[RoleId]:
        return self.members_of("sub_roles")

    def can_assign_permission(self) -> bool:
        return self.can_add("permissions")

    def can_add_user(self) -> bool:
        return self.can_add("users")

    def can_add_sub_role(self) -> bool:
        return self.can_add("sub_roles")

    def assign_permission(self, permission_id: PermissionId) -> None:
        """Grant a permission to the role.

        Raises:
            StateError: If the permission is already granted
            CapacityError: If permission assignment is disabled or the
                maximum is reached
        """
        self._add("permissions", permission_id)

    def remove_permission(self, permission_id: PermissionId) -> None:
        self._remove("permissions", permission_id)

    def add_user(self, user_id: UserId) -> None:
        self._add("users", user_id)

    def remove_user(self, user_id: UserId) -> None:
        self._remove("users", user_id)

    def add_sub_role(self, role_id: RoleId) -> None:
        self._add("sub_roles", role_id)

    def remove_sub_role(self, role_id: RoleId) -> None:
        self._remove("sub_roles", role_id)

    def has_permission(self, permission_id: PermissionId) -> bool:
        return self.has("permissions", permission_id)

    def has_user(self, user_id: UserId) -> bool:
        return self.has("users", user_id)

    def has_sub_role(self, role_id: RoleId) -> bool:
        return self.has("sub_roles", role_id)
