"""Permission aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Membership,
)
from iam.domain.entities import Permission
from iam.domain.entities.base import utc_now
from iam.domain.events import (
    IAMEvent,
    PermissionLimitsWarning,
    PermissionRoleAssigned,
    PermissionRoleRemoved,
    PermissionSettingsUpdated,
    PermissionStatusChanged,
    PermissionSubPermissionAdded,
    PermissionSubPermissionRemoved,
    PermissionUserAssigned,
    PermissionUserRemoved,
)
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe
from iam.domain.value_objects import PermissionId, RoleId, UserId


@dataclass(frozen=True)
class PermissionAggregateSettings:
    allow_role_assignment: bool = True
    allow_user_assignment: bool = True
    allow_sub_permission_creation: bool = True
    max_roles: int = 100
    max_users: int = 1000
    max_sub_permissions: int = 10
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PermissionStatistics:
    role_count: int = 0
    user_count: int = 0
    sub_permission_count: int = 0
    active_user_count: int = 0


@dataclass
class PermissionAggregate(AggregateRoot):
    """Consistency boundary around a permission.

    Business rules:
    - Role and user grants are mirrored into the wrapped Permission entity
    - Sub-permissions become children of the wrapped entity
    - Every grant set is capped by the permission limits, which the
      ``max_*`` settings mirror
    """

    permission: Permission
    settings: PermissionAggregateSettings = field(
        default_factory=PermissionAggregateSettings
    )
    statistics: PermissionStatistics = field(default_factory=PermissionStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _user_ids: set[UserId] = field(default_factory=set, repr=False)
    _sub_permission_ids: set[PermissionId] = field(default_factory=set, repr=False)
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "permission"
    MEMBERSHIPS: ClassVar[dict[str, Membership]] = {
        "roles": Membership(
            label="role",
            attribute="_role_ids",
            count_field="role_count",
            max_setting="max_roles",
            allow_setting="allow_role_assignment",
            added_event=PermissionRoleAssigned,
            removed_event=PermissionRoleRemoved,
            member_field="role_id",
            entity_add="add_role",
            entity_remove="remove_role",
        ),
        "users": Membership(
            label="user",
            attribute="_user_ids",
            count_field="user_count",
            max_setting="max_users",
            allow_setting="allow_user_assignment",
            added_event=PermissionUserAssigned,
            removed_event=PermissionUserRemoved,
            member_field="user_id",
            entity_add="add_user",
            entity_remove="remove_user",
        ),
        "sub_permissions": Membership(
            label="sub-permission",
            attribute="_sub_permission_ids",
            count_field="sub_permission_count",
            max_setting="max_sub_permissions",
            allow_setting="allow_sub_permission_creation",
            added_event=PermissionSubPermissionAdded,
            removed_event=PermissionSubPermissionRemoved,
            member_field="sub_permission_id",
            entity_add="add_child",
            entity_remove="remove_child",
        ),
    }
    ENTITY_LIMITS: ClassVar[dict[str, str]] = {
        "max_roles": "max_roles",
        "max_users": "max_users",
        "max_sub_permissions": "max_sub_permissions",
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = PermissionSettingsUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = PermissionStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = PermissionLimitsWarning

    @classmethod
    def create(
        cls,
        permission: Permission,
        settings: PermissionAggregateSettings | None = None,
        probe: AggregateProbe | None = None,
        limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO,
    ) -> PermissionAggregate:
        """Wrap a permission, seeding the grant sets from the entity.

        Maxima of explicit settings are written to the permission limits;
        without settings they are taken from the permission limits.

        Raises:
            ValidationError: If a settings maximum is negative
        """
        aggregate = cls(
            permission=permission,
            settings=settings or PermissionAggregateSettings(),
            limits_warning_ratio=limits_warning_ratio,
            _role_ids=set(permission.role_ids),
            _user_ids=set(permission.user_ids),
            _sub_permission_ids=set(permission.child_ids),
            _probe=probe or DefaultAggregateProbe(),
        )
        aggregate.statistics = PermissionStatistics(
            role_count=len(aggregate._role_ids),
            user_count=len(aggregate._user_ids),
            sub_permission_count=len(aggregate._sub_permission_ids),
        )
        aggregate._sync_entity_limits(from_settings=settings is not None)
        return aggregate

    @property
    def root(self) -> Permission:
        return self.permission

    @property
    def roles(self) -> frozenset[RoleId]:
        return self.members_of("roles")

    @property
    def users(self) -> frozenset[UserId]:
        return self.members_of("users")

    @property
    def sub_permissions(self) -> frozenset[PermissionId]:
        return self.members_of("sub_permissions")

    def can_assign_role(self) -> bool:
        return self.can_add("roles")

    def can_assign_user(self) -> bool:
        return self.can_add("users")

    def can_add_sub_permission(self) -> bool:
        return self.can_add("sub_permissions")

    def assign_to_role(self, role_id: RoleId) -> None:
        """Grant the permission to a role.

        Raises:
            StateError: If the role already holds the permission
            CapacityError: If role assignment is disabled or the maximum is
                reached
        """
        self._add("roles", role_id)

    def remove_from_role(self, role_id: RoleId) -> None:
        self._remove("roles", role_id)

    def assign_to_user(self, user_id: UserId) -> None:
        """Grant the permission directly to a user.

        Raises:
            StateError: If the user already holds the permission
            CapacityError: If user assignment is disabled or the maximum is
                reached
        """
        self._add("users", user_id)

    def remove_from_user(self, user_id: UserId) -> None:
        self._remove("users", user_id)

    def add_sub_permission(self, permission_id: PermissionId) -> None:
        self._add("sub_permissions", permission_id)

    def remove_sub_permission(self, permission_id: PermissionId) -> None:
        self._remove("sub_permissions", permission_id)

    def has_role(self, role_id: RoleId) -> bool:
        return self.has("roles", role_id)

    def has_user(self, user_id: UserId) -> bool:
        return self.has("users", user_id)

    def has_sub_permission(self, permission_id: PermissionId) -> bool:
        return self.has("sub_permissions", permission_id)
