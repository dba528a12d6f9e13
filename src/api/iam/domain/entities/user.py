"""User entity for IAM context."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, ClassVar

from iam.domain.entities.base import StatusLifecycle, require_text, utc_now
from iam.domain.exceptions import StateError, ValidationError
from iam.domain.value_objects import (
    DepartmentId,
    Email,
    OrganizationId,
    Password,
    RoleId,
    TenantId,
    UserId,
    Username,
)

DEFAULT_MAX_FAILED_LOGINS = 5
DEFAULT_LOCK_MINUTES = 30


class UserStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    LOCKED = "locked"
    DISABLED = "disabled"


class UserType(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    SYSTEM = "system"
    GUEST = "guest"


USER_STATUS_TRANSITIONS: Mapping[StrEnum, frozenset[StrEnum]] = {
    UserStatus.PENDING: frozenset({UserStatus.ACTIVE, UserStatus.DISABLED}),
    UserStatus.ACTIVE: frozenset(
        {UserStatus.SUSPENDED, UserStatus.LOCKED, UserStatus.DISABLED}
    ),
    UserStatus.SUSPENDED: frozenset(
        {UserStatus.ACTIVE, UserStatus.LOCKED, UserStatus.DISABLED}
    ),
    UserStatus.LOCKED: frozenset({UserStatus.ACTIVE, UserStatus.DISABLED}),
    UserStatus.DISABLED: frozenset({UserStatus.ACTIVE}),
}


@dataclass(frozen=True)
class UserProfile:
    """Display information about a user."""

    first_name: str
    last_name: str
    display_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    title: str | None = None
    language: str = "en"
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        first_name = require_text(self.first_name, "First name")
        last_name = require_text(self.last_name, "Last name")
        object.__setattr__(self, "first_name", first_name)
        object.__setattr__(self, "last_name", last_name)

    @property
    def full_name(self) -> str:
        return self.display_name or f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class LoginRecord:
    """One login attempt."""

    occurred_at: datetime
    ip_address: str
    user_agent: str
    success: bool
    failure_reason: str | None = None


@dataclass
class User(StatusLifecycle):
    """User of a tenant.

    Users have a five-state lifecycle. Besides explicit transitions, a user
    is locked automatically after too many consecutive failed logins. The
    status held before the lock is kept and restored by ``unlock()`` or by
    the next successful login, so a lock never skips activation or lifts a
    suspension.

    Business rules:
    - Username and email are unique per tenant (checked by the domain service)
    - Created PENDING
    - A DISABLED user cannot be locked
    - Only a user that could log in before the lock may record a success
    - Login history keeps the most recent LOGIN_HISTORY_LIMIT attempts
    """

    id: UserId
    tenant_id: TenantId
    username: Username
    email: Email
    password_hash: str = field(repr=False)
    profile: UserProfile
    organization_id: OrganizationId | None = None
    type: UserType = UserType.INTERNAL
    status: UserStatus = UserStatus.PENDING
    login_attempts: int = 0
    locked_until: datetime | None = None
    last_login_at: datetime | None = None
    password_changed_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    _department_ids: set[DepartmentId] = field(default_factory=set, repr=False)
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _login_history: list[LoginRecord] = field(default_factory=list, repr=False)
    _status_before_lock: UserStatus | None = field(default=None, repr=False)

    STATUS_ENUM: ClassVar[type[StrEnum]] = UserStatus
    STATUS_TRANSITIONS: ClassVar[Mapping[StrEnum, frozenset[StrEnum]]] = (
        USER_STATUS_TRANSITIONS
    )
    LOGIN_HISTORY_LIMIT: ClassVar[int] = 100

    def __post_init__(self) -> None:
        self._coerce_status()
        self.type = UserType(self.type)

    @classmethod
    def create(
        cls,
        tenant_id: TenantId,
        username: Username,
        email: Email,
        password: Password,
        profile: UserProfile,
        organization_id: OrganizationId | None = None,
        type: UserType = UserType.INTERNAL,
    ) -> User:
        """Factory method for creating a new PENDING user with a fresh id."""
        now = utc_now()
        return cls(
            id=UserId.generate(),
            tenant_id=tenant_id,
            username=username,
            email=email,
            password_hash=password.hashed_value,
            profile=profile,
            organization_id=organization_id,
            type=type,
            password_changed_at=now,
            created_at=now,
            updated_at=now,
        )

    @property
    def department_ids(self) -> frozenset[DepartmentId]:
        return frozenset(self._department_ids)

    @property
    def role_ids(self) -> frozenset[RoleId]:
        return frozenset(self._role_ids)

    @property
    def login_history(self) -> tuple[LoginRecord, ...]:
        return tuple(self._login_history)

    @property
    def is_locked(self) -> bool:
        if self.status is UserStatus.LOCKED:
            return True
        return self.locked_until is not None and self.locked_until > utc_now()

    @property
    def is_active(self) -> bool:
        return self.status is UserStatus.ACTIVE and not self.is_locked

    @property
    def status_before_lock(self) -> UserStatus | None:
        """Status restored when the current lock is lifted."""
        if self.status is not UserStatus.LOCKED:
            return None
        return self._status_before_lock or UserStatus.ACTIVE

    @property
    def can_login(self) -> bool:
        """Whether a successful login may be recorded.

        True for ACTIVE users, and for LOCKED users that were ACTIVE when
        the lock was taken. A successful login lifts such a lock.
        """
        return (self.status_before_lock or self.status) is UserStatus.ACTIVE

    def lock(self, duration_minutes: int = DEFAULT_LOCK_MINUTES) -> None:
        """Lock the account for a number of minutes.

        Locking an already locked user extends the lock and keeps the
        status held before the first lock.

        Raises:
            StateError: If the user is disabled
            ValidationError: If the duration is not positive
        """
        if self.status is UserStatus.DISABLED:
            raise StateError("A disabled user cannot be locked")
        if duration_minutes <= 0:
            raise ValidationError("Lock duration must be positive")
        now = utc_now()
        if self.status is not UserStatus.LOCKED:
            self._status_before_lock = self.status
        self.status = UserStatus.LOCKED
        self.locked_until = now + timedelta(minutes=duration_minutes)
        self.updated_at = now

    def _release_lock(self) -> None:
        self.status = self.status_before_lock or self.status
        self._status_before_lock = None
        self.locked_until = None
        self.login_attempts = 0
        self.updated_at = utc_now()

    def unlock(self) -> None:
        """Lift the lock and reset the failure counter.

        The user returns to the status held before the lock (ACTIVE for
        users locked before this was tracked).

        Raises:
            StateError: If the user is not locked
        """
        if self.status is not UserStatus.LOCKED:
            raise StateError(f"User is not locked (status: {self.status.value})")
        self._release_lock()

    def change_status(self, new_status: UserStatus | str) -> None:
        if new_status == UserStatus.LOCKED:
            if not self.can_transition_to(UserStatus.LOCKED):
                raise StateError(
                    f"User cannot change status from {self.status.value} to locked"
                )
            self.lock()
        elif new_status == UserStatus.ACTIVE and self.status is UserStatus.LOCKED:
            self._release_lock()
            self.status = UserStatus.ACTIVE
        else:
            was_locked = self.status is UserStatus.LOCKED
            super().change_status(new_status)
            if was_locked:
                self._status_before_lock = None
                self.locked_until = None

    def record_login(
        self,
        ip_address: str,
        user_agent: str,
        success: bool,
        failure_reason: str | None = None,
        max_failed_attempts: int = DEFAULT_MAX_FAILED_LOGINS,
        lock_minutes: int = DEFAULT_LOCK_MINUTES,
    ) -> None:
        """Record a login attempt and apply the lockout policy.

        A failure increments ``login_attempts`` and locks the account once
        ``max_failed_attempts`` consecutive failures are reached. A success
        resets the counter, clears any lock and returns a LOCKED user to the
        status held before the lock.

        Raises:
            StateError: If a success is recorded for a user that cannot log
                in (see ``can_login``); nothing is recorded in that case
        """
        if success and not self.can_login:
            status = self.status_before_lock or self.status
            raise StateError(f"User cannot log in (status: {status.value})")
        now = utc_now()
        self._login_history.append(
            LoginRecord(
                occurred_at=now,
                ip_address=ip_address,
                user_agent=user_agent,
                success=success,
                failure_reason=None if success else failure_reason,
            )
        )
        del self._login_history[: -self.LOGIN_HISTORY_LIMIT]

        if success:
            self.last_login_at = now
            if self.status is UserStatus.LOCKED:
                self._release_lock()
            self.login_attempts = 0
            self.locked_until = None
            self.updated_at = now
            return

        self.login_attempts += 1
        self.updated_at = now
        if (
            self.login_attempts >= max_failed_attempts
            and self.status is not UserStatus.DISABLED
        ):
            self.lock(lock_minutes)

    def change_password(self, new_password: Password) -> None:
        self.password_hash = new_password.hashed_value
        self.password_changed_at = utc_now()
        self.updated_at = self.password_changed_at

    def verify_password(self, plain_password: str) -> bool:
        return Password.verify_hash(plain_password, self.password_hash)

    def update_profile(self, **changes: Any) -> None:
        """Replace individual profile fields.

        Raises:
            ValidationError: If a first or last name is blank
        """
        self.profile = replace(self.profile, **changes)
        self.updated_at = utc_now()

    def update_email(self, email: Email) -> None:
        self.email = email
        self.updated_at = utc_now()

    def set_organization(self, organization_id: OrganizationId | None) -> None:
        self.organization_id = organization_id
        self.updated_at = utc_now()

    def add_to_department(self, department_id: DepartmentId) -> None:
        if department_id not in self._department_ids:
            self._department_ids.add(department_id)
            self.updated_at = utc_now()

    def remove_from_department(self, department_id: DepartmentId) -> None:
        if department_id in self._department_ids:
            self._department_ids.discard(department_id)
            self.updated_at = utc_now()

    def in_department(self, department_id: DepartmentId) -> bool:
        return department_id in self._department_ids

    def assign_role(self, role_id: RoleId) -> None:
        if role_id not in self._role_ids:
            self._role_ids.add(role_id)
            self.updated_at = utc_now()

    def remove_role(self, role_id: RoleId) -> None:
        if role_id in self._role_ids:
            self._role_ids.discard(role_id)
            self.updated_at = utc_now()

    def has_role(self, role_id: RoleId) -> bool:
        return role_id in self._role_ids
