"""User aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Membership,
)
from iam.domain.entities import User, UserStatus
from iam.domain.entities.base import utc_now
from iam.domain.entities.user import DEFAULT_LOCK_MINUTES, DEFAULT_MAX_FAILED_LOGINS
from iam.domain.events import (
    IAMEvent,
    UserDepartmentAdded,
    UserDepartmentRemoved,
    UserLimitsWarning,
    UserLocked,
    UserLoginFailed,
    UserLoginSucceeded,
    UserOrganizationAdded,
    UserOrganizationRemoved,
    UserPasswordChanged,
    UserPermissionAssigned,
    UserPermissionRemoved,
    UserProfileUpdated,
    UserRoleAssigned,
    UserRoleRemoved,
    UserSettingsUpdated,
    UserStatusChanged,
)
from iam.domain.exceptions import ValidationError
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe
from iam.domain.value_objects import (
    DepartmentId,
    OrganizationId,
    Password,
    PermissionId,
    RoleId,
)

DEFAULT_PASSWORD_HISTORY_SIZE = 5


@dataclass(frozen=True)
class UserAggregateSettings:
    allow_role_assignment: bool = True
    allow_permission_assignment: bool = True
    max_roles: int = 50
    max_permissions: int = 200
    max_organizations: int = 5
    max_departments: int = 10
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UserStatistics:
    role_count: int = 0
    permission_count: int = 0
    organization_count: int = 0
    department_count: int = 0
    login_count: int = 0


@dataclass
class UserAggregate(AggregateRoot):
    """Consistency boundary around a user account.

    Besides the membership sets shared with the other aggregates, the user
    aggregate owns the account security state: the lockout policy applied
    by record_login() and a bounded history of previous password hashes
    consulted by change_password().

    Business rules:
    - ``max_failed_login_attempts`` consecutive failures lock the account
      for ``lockout_duration_minutes``
    - A successful login resets the failure counter and lifts a lock,
      returning the user to the status held before it
    - Only a user that could log in before the lock may record a success
    - A new password may not match the current one or any remembered one
    """

    user: User
    settings: UserAggregateSettings = field(default_factory=UserAggregateSettings)
    statistics: UserStatistics = field(default_factory=UserStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    max_failed_login_attempts: int = DEFAULT_MAX_FAILED_LOGINS
    lockout_duration_minutes: int = DEFAULT_LOCK_MINUTES
    password_history_size: int = DEFAULT_PASSWORD_HISTORY_SIZE
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _permission_ids: set[PermissionId] = field(default_factory=set, repr=False)
    _organization_ids: set[OrganizationId] = field(default_factory=set, repr=False)
    _department_ids: set[DepartmentId] = field(default_factory=set, repr=False)
    _password_history: list[str] = field(default_factory=list, repr=False)
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "user"
    MEMBERSHIPS: ClassVar[dict[str, Membership]] = {
        "roles": Membership(
            label="role",
            attribute="_role_ids",
            count_field="role_count",
            max_setting="max_roles",
            allow_setting="allow_role_assignment",
            added_event=UserRoleAssigned,
            removed_event=UserRoleRemoved,
            member_field="role_id",
            entity_add="assign_role",
            entity_remove="remove_role",
        ),
        "permissions": Membership(
            label="permission",
            attribute="_permission_ids",
            count_field="permission_count",
            max_setting="max_permissions",
            allow_setting="allow_permission_assignment",
            added_event=UserPermissionAssigned,
            removed_event=UserPermissionRemoved,
            member_field="permission_id",
        ),
        "organizations": Membership(
            label="organization",
            attribute="_organization_ids",
            count_field="organization_count",
            max_setting="max_organizations",
            allow_setting=None,
            added_event=UserOrganizationAdded,
            removed_event=UserOrganizationRemoved,
            member_field="organization_id",
        ),
        "departments": Membership(
            label="department",
            attribute="_department_ids",
            count_field="department_count",
            max_setting="max_departments",
            allow_setting=None,
            added_event=UserDepartmentAdded,
            removed_event=UserDepartmentRemoved,
            member_field="department_id",
            entity_add="add_to_department",
            entity_remove="remove_from_department",
        ),
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = UserSettingsUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = UserStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = UserLimitsWarning

    @classmethod
    def create(
        cls,
        user: User,
        settings: UserAggregateSettings | None = None,
        probe: AggregateProbe | None = None,
        **policy: Any,
    ) -> UserAggregate:
        """Wrap a user in a fresh aggregate.

        Args:
            user: The user entity
            settings: Aggregate settings, defaults when omitted
            probe: Optional observability probe for domain events
            **policy: Overrides for limits_warning_ratio,
                max_failed_login_attempts, lockout_duration_minutes or
                password_history_size

        Returns:
            A new UserAggregate
        """
        aggregate = cls(
            user=user,
            settings=settings or UserAggregateSettings(),
            _probe=probe or DefaultAggregateProbe(),
            **policy,
        )
        if user.organization_id is not None:
            aggregate._organization_ids.add(user.organization_id)
            aggregate.statistics = replace(aggregate.statistics, organization_count=1)
        return aggregate

    @property
    def root(self) -> User:
        return self.user

    @property
    def roles(self) -> frozenset[RoleId]:
        return self.members_of("roles")

    @property
    def permissions(self) -> frozenset[PermissionId]:
        return self.members_of("permissions")

    @property
    def organizations(self) -> frozenset[OrganizationId]:
        return self.members_of("organizations")

    @property
    def departments(self) -> frozenset[DepartmentId]:
        return self.members_of("departments")

    @property
    def password_history(self) -> tuple[str, ...]:
        return tuple(self._password_history)

    @property
    def is_active(self) -> bool:
        return self.user.is_active

    @property
    def is_locked(self) -> bool:
        return self.user.is_locked

    def assign_role(self, role_id: RoleId) -> None:
        """Assign a role to the user.

        Raises:
            StateError: If the role is already assigned
            CapacityError: If role assignment is disabled or the maximum
                is reached
        """
        self._add("roles", role_id)

    def remove_role(self, role_id: RoleId) -> None:
        self._remove("roles", role_id)

    def assign_permission(self, permission_id: PermissionId) -> None:
        self._add("permissions", permission_id)

    def remove_permission(self, permission_id: PermissionId) -> None:
        self._remove("permissions", permission_id)

    def join_organization(self, organization_id: OrganizationId) -> None:
        """Add an organization membership.

        The first organization joined becomes the user's primary one.
        """
        self._add("organizations", organization_id)
        if self.user.organization_id is None:
            self.user.set_organization(organization_id)

    def leave_organization(self, organization_id: OrganizationId) -> None:
        self._remove("organizations", organization_id)
        if self.user.organization_id == organization_id:
            self.user.set_organization(next(iter(self._organization_ids), None))

    def join_department(self, department_id: DepartmentId) -> None:
        self._add("departments", department_id)

    def leave_department(self, department_id: DepartmentId) -> None:
        self._remove("departments", department_id)

    def has_role(self, role_id: RoleId) -> bool:
        return self.has("roles", role_id)

    def has_permission(self, permission_id: PermissionId) -> bool:
        return self.has("permissions", permission_id)

    def in_organization(self, organization_id: OrganizationId) -> bool:
        return self.has("organizations", organization_id)

    def in_department(self, department_id: DepartmentId) -> bool:
        return self.has("departments", department_id)

    def update_profile(self, **changes: Any) -> None:
        """Update profile fields and record which ones changed.

        Raises:
            ValidationError: If a field is unknown or a name is blank
        """
        known = {f.name for f in fields(self.user.profile)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")
        self.user.update_profile(**changes)
        self._touch()
        self._record(UserProfileUpdated, changed_fields=tuple(sorted(changes)))

    def change_password(self, new_password: Password) -> None:
        """Replace the password, remembering the previous hash.

        Raises:
            ValidationError: If the password matches the current password
                or one of the remembered ones
        """
        candidates = [self.user.password_hash, *self._password_history]
        if any(Password.verify_hash(new_password.value, h) for h in candidates):
            raise ValidationError("New password must differ from recent passwords")

        self._password_history.insert(0, self.user.password_hash)
        del self._password_history[self.password_history_size :]
        self.user.change_password(new_password)
        self._touch()
        self._record(UserPasswordChanged)

    def record_login(
        self,
        ip_address: str,
        user_agent: str,
        success: bool,
        failure_reason: str | None = None,
    ) -> None:
        """Record a login attempt and apply the lockout policy.

        Emits UserLoginSucceeded or UserLoginFailed, plus UserLocked when this
        failure is the one that locks the account. A success that lifts a
        lock also emits UserStatusChanged.

        Raises:
            StateError: If a success is recorded for a user that cannot log
                in; nothing is recorded in that case
        """
        old_status = self.user.status
        was_locked = old_status is UserStatus.LOCKED
        self.user.record_login(
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            failure_reason=failure_reason,
            max_failed_attempts=self.max_failed_login_attempts,
            lock_minutes=self.lockout_duration_minutes,
        )
        self._touch()

        if success:
            if was_locked:
                self._status_changed(old_status, "successful login")
            self.statistics = replace(
                self.statistics, login_count=self.statistics.login_count + 1
            )
            self._record(
                UserLoginSucceeded, ip_address=ip_address, user_agent=user_agent
            )
            return

        self._record(
            UserLoginFailed,
            ip_address=ip_address,
            user_agent=user_agent,
            failure_reason=failure_reason,
            consecutive_failures=self.user.login_attempts,
        )
        self._probe.login_failed(
            user_id=self.id.value,
            consecutive_failures=self.user.login_attempts,
        )
        if not was_locked and self.user.status is UserStatus.LOCKED:
            self._record_lock(
                f"{self.user.login_attempts} consecutive failed login attempts"
            )

    def lock(
        self, duration_minutes: int | None = None, reason: str = "manual"
    ) -> None:
        """Lock the account.

        Raises:
            StateError: If the user is disabled
            ValidationError: If the duration is not positive
        """
        old_status = self.user.status
        self.user.lock(duration_minutes or self.lockout_duration_minutes)
        self._status_changed(old_status, reason)
        self._record_lock(reason)

    def unlock(self, reason: str | None = None) -> None:
        """Lift the lock, returning the user to the status held before it.

        Raises:
            StateError: If the user is not locked
        """
        old_status = self.user.status
        self.user.unlock()
        self._status_changed(old_status, reason)

    def _record_lock(self, reason: str) -> None:
        self._record(UserLocked, locked_until=self.user.locked_until, reason=reason)
        self._probe.account_locked(
            user_id=self.id.value,
            locked_until=self.user.locked_until,
        )
