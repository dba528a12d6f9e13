"""User domain service for IAM bounded context.

Creates and updates users, runs the user status state machine and applies
the login lockout policy.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Any

from iam.domain.entities import User, UserProfile, UserStatus
from iam.domain.exceptions import (
    DomainError,
    FormatError,
    NotFoundError,
    StateError,
    UniquenessError,
    ValidationError,
)
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import DomainService
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import CreateUserRequest, UpdateUserRequest
from iam.domain.value_objects import (
    Email,
    OrganizationId,
    Password,
    TenantId,
    UserId,
    Username,
)
from iam.ports.repositories import IOrganizationRepository, IUserRepository

PROFILE_FIELDS = frozenset(f.name for f in fields(UserProfile))


class UserDomainService(DomainService):
    """Domain service for user management.

    Usernames and emails are unique per tenant. When an organization
    repository is supplied, a user's organization must exist, be ACTIVE
    and belong to the user's tenant.
    """

    ENTITY_TYPE = "user"

    def __init__(
        self,
        user_repository: IUserRepository,
        organization_repository: IOrganizationRepository | None = None,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        super().__init__(probe=probe, policy=policy)
        self._user_repository = user_repository
        self._organization_repository = organization_repository

    def get_user(self, user_id: UserId) -> User:
        """Load a user.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self._user_repository.find_by_id(user_id)
        if user is None:
            self._probe.entity_not_found(
                entity_type=self.ENTITY_TYPE, entity_id=str(user_id)
            )
            raise NotFoundError(f"User {user_id} not found")
        return user

    def create_user(self, request: CreateUserRequest) -> User:
        """Create a new PENDING user.

        Every check runs before failing, so the raised error lists all
        violations.

        Raises:
            ValidationError: If a required profile field is missing
            FormatError: If the username, email or password is invalid
            UniquenessError: If the username or email is taken in the tenant
            NotFoundError: If the organization does not exist
            StateError: If the organization is not ACTIVE
        """
        errors: list[DomainError] = []
        username = self._parse_code(
            Username, request.username, errors, field_label="Username"
        )
        email = self._parse_email(request.email, errors)
        password = self._parse_password(request.password, errors)
        profile = self._build_profile(request, errors)

        if username is not None:
            existing = self._user_repository.find_by_username(
                username, request.tenant_id
            )
            if existing is not None:
                errors.append(
                    UniquenessError(
                        f"Username {username} already exists in tenant "
                        f"{request.tenant_id}"
                    )
                )
        self._check_email_unique(email, request.tenant_id, errors)
        self._check_organization(request.organization_id, request.tenant_id, errors)
        self._fail_creation(errors)

        user = User.create(
            tenant_id=request.tenant_id,
            username=username,
            email=email,
            password=password,
            profile=profile,
            organization_id=request.organization_id,
            type=request.type,
        )
        self._persist(self._user_repository, user)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=user.id.value,
            scope_id=request.tenant_id.value,
        )
        return user

    def _parse_email(self, raw: str | None, errors: list[DomainError]) -> Email | None:
        if not raw or not raw.strip():
            errors.append(ValidationError("Email is required"))
            return None
        try:
            return Email(raw)
        except FormatError as e:
            errors.append(e)
            return None

    def _parse_password(
        self, raw: str | None, errors: list[DomainError]
    ) -> Password | None:
        if not raw:
            errors.append(ValidationError("Password is required"))
            return None
        try:
            return Password(raw)
        except FormatError as e:
            errors.append(e)
            return None

    def _build_profile(
        self, request: CreateUserRequest, errors: list[DomainError]
    ) -> UserProfile | None:
        try:
            return UserProfile(
                first_name=request.first_name,
                last_name=request.last_name,
                display_name=request.display_name,
                phone=request.phone,
            )
        except ValidationError as e:
            errors.append(e)
            return None

    def _check_email_unique(
        self,
        email: Email | None,
        tenant_id: TenantId,
        errors: list[DomainError],
        exclude_id: UserId | None = None,
    ) -> None:
        if email is None:
            return
        existing = self._user_repository.find_by_email(email, tenant_id)
        if existing is not None and existing.id != exclude_id:
            errors.append(
                UniquenessError(f"Email {email} already exists in tenant {tenant_id}")
            )

    def _check_organization(
        self,
        organization_id: OrganizationId | None,
        tenant_id: TenantId,
        errors: list[DomainError],
    ) -> None:
        if organization_id is None or self._organization_repository is None:
            return
        organization = self._organization_repository.find_by_id(organization_id)
        if organization is None:
            errors.append(NotFoundError(f"Organization {organization_id} not found"))
            return
        if organization.tenant_id != tenant_id:
            errors.append(
                ValidationError(
                    f"Organization {organization.code} belongs to another tenant"
                )
            )
        if not organization.is_active:
            errors.append(
                StateError(
                    f"Organization {organization.code} is not active "
                    f"(status: {organization.status.value})"
                )
            )

    def update_user(self, user_id: UserId, request: UpdateUserRequest) -> User:
        """Apply a partial update.

        Every change is validated before any is applied.

        Raises:
            NotFoundError: If the user or the new organization does not exist
            FormatError: If the new email is malformed
            UniquenessError: If the new email is taken in the tenant
            ValidationError: If a profile field is unknown or blank
        """
        user = self.get_user(user_id)
        errors: list[DomainError] = []

        email = None
        if request.email is not None:
            email = self._parse_email(request.email, errors)
            if email == user.email:
                email = None
            self._check_email_unique(email, user.tenant_id, errors, exclude_id=user.id)

        organization_id = request.organization_id
        if organization_id == user.organization_id:
            organization_id = None
        self._check_organization(organization_id, user.tenant_id, errors)

        unknown = set(request.profile) - PROFILE_FIELDS
        if unknown:
            errors.append(
                ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
            )
        elif request.profile:
            self._attempt(errors, lambda: replace(user.profile, **request.profile))
        if errors:
            raise DomainError.aggregate(errors)

        changed = self._apply_update(user, email, organization_id, request.profile)
        self._persist(self._user_repository, user)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE, entity_id=user.id.value, fields=changed
        )
        return user

    @staticmethod
    def _apply_update(
        user: User,
        email: Email | None,
        organization_id: OrganizationId | None,
        profile: dict[str, Any],
    ) -> list[str]:
        changed = []
        if profile:
            user.update_profile(**profile)
            changed.append("profile")
        if email is not None:
            user.update_email(email)
            changed.append("email")
        if organization_id is not None:
            user.set_organization(organization_id)
            changed.append("organization_id")
        return changed

    def change_user_status(
        self,
        user_id: UserId,
        new_status: UserStatus | str,
    ) -> User:
        """Run the user status state machine.

        Moving to LOCKED locks the account for the policy lockout duration;
        moving a LOCKED user to ACTIVE unlocks it.

        Raises:
            NotFoundError: If the user does not exist
            StateError: If the transition is not allowed
        """
        user = self.get_user(user_id)
        old_status = user.status
        if new_status == UserStatus.LOCKED and user.can_transition_to(
            UserStatus.LOCKED
        ):
            user.lock(self._policy.lockout_duration_minutes)
        else:
            user.change_status(new_status)
        self._persist(self._user_repository, user)
        self._probe.entity_status_changed(
            entity_type=self.ENTITY_TYPE,
            entity_id=user.id.value,
            old_status=old_status.value,
            new_status=user.status.value,
        )
        return user

    def record_login(
        self,
        user_id: UserId,
        ip_address: str,
        user_agent: str,
        success: bool,
        failure_reason: str | None = None,
    ) -> User:
        """Record a login attempt and apply the lockout policy.

        Raises:
            NotFoundError: If the user does not exist
            StateError: If a success is recorded for a user that cannot log in
        """
        user = self.get_user(user_id)
        user.record_login(
            ip_address,
            user_agent,
            success,
            failure_reason=failure_reason,
            max_failed_attempts=self._policy.max_failed_login_attempts,
            lock_minutes=self._policy.lockout_duration_minutes,
        )
        self._persist(self._user_repository, user)
        self._probe.login_recorded(
            user_id=user.id.value,
            success=success,
            consecutive_failures=user.login_attempts,
        )
        return user

    def change_password(
        self, user_id: UserId, current_password: str, new_password: str
    ) -> User:
        """Replace a user's password after checking the current one.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If the current password does not match or the new
                one equals it
            FormatError: If the new password breaks the password policy
        """
        user = self.get_user(user_id)
        if not user.verify_password(current_password):
            raise ValidationError("Current password is incorrect")
        password = Password(new_password)
        if user.verify_password(new_password):
            raise ValidationError("New password must differ from the current one")
        user.change_password(password)
        self._persist(self._user_repository, user)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=user.id.value,
            fields=["password_hash"],
        )
        return user

    def can_user_login(self, user_id: UserId) -> bool:
        """Whether the user is ACTIVE and not inside a lock window.

        Raises:
            NotFoundError: If the user does not exist
        """
        return self.get_user(user_id).is_active
