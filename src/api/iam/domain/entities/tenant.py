"""Tenant entity for IAM context."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from iam.domain.entities.base import Named, StatusLifecycle, require_text, utc_now
from iam.domain.exceptions import ValidationError
from iam.domain.value_objects import Email, TenantCode, TenantId


class TenantStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DISABLED = "disabled"


TENANT_STATUS_TRANSITIONS: Mapping[StrEnum, frozenset[StrEnum]] = {
    TenantStatus.PENDING: frozenset({TenantStatus.ACTIVE, TenantStatus.DISABLED}),
    TenantStatus.ACTIVE: frozenset({TenantStatus.SUSPENDED, TenantStatus.DISABLED}),
    TenantStatus.SUSPENDED: frozenset({TenantStatus.ACTIVE, TenantStatus.DISABLED}),
    TenantStatus.DISABLED: frozenset(),
}


@dataclass
class Tenant(StatusLifecycle, Named):
    """Top-level isolation boundary owning organizations and users.

    Business rules:
    - Code is globally unique and case-insensitive (stored lower-case)
    - Name is 1-100 characters, description at most 500
    - Created PENDING; a DISABLED tenant cannot be reactivated
    - max_users and max_organizations are at least 1
    """

    id: TenantId
    code: TenantCode
    name: str
    description: str | None = None
    status: TenantStatus = TenantStatus.PENDING
    max_users: int = 1000
    max_organizations: int = 10
    contact_email: Email | None = None
    contact_phone: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    STATUS_ENUM: ClassVar[type[StrEnum]] = TenantStatus
    STATUS_TRANSITIONS: ClassVar[Mapping[StrEnum, frozenset[StrEnum]]] = (
        TENANT_STATUS_TRANSITIONS
    )
    NAME_MAX_LENGTH: ClassVar[int] = 100
    DESCRIPTION_MAX_LENGTH: ClassVar[int] = 500

    def __post_init__(self) -> None:
        self._coerce_status()
        self.name = self._validated_name(self.name)
        self._validate_limits(self.max_users, self.max_organizations)

    @classmethod
    def create(
        cls,
        code: TenantCode,
        name: str,
        description: str | None = None,
        max_users: int = 1000,
        max_organizations: int = 10,
    ) -> Tenant:
        """Factory method for creating a new PENDING tenant with a fresh id."""
        return cls(
            id=TenantId.generate(),
            code=code,
            name=name,
            description=description,
            max_users=max_users,
            max_organizations=max_organizations,
        )

    def _validated_name(self, name: str) -> str:
        name = require_text(name, "Tenant name")
        if len(name) > self.NAME_MAX_LENGTH:
            raise ValidationError(
                f"Tenant name cannot exceed {self.NAME_MAX_LENGTH} characters"
            )
        return name

    @staticmethod
    def _validate_limits(max_users: int, max_organizations: int) -> None:
        if max_users < 1:
            raise ValidationError("Max users must be at least 1")
        if max_organizations < 1:
            raise ValidationError("Max organizations must be at least 1")

    def update_name(self, name: str) -> None:
        self.name = self._validated_name(name)
        self.updated_at = utc_now()

    def update_description(self, description: str | None) -> None:
        if description and len(description) > self.DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                "Tenant description cannot exceed "
                f"{self.DESCRIPTION_MAX_LENGTH} characters"
            )
        super().update_description(description)

    def update_contact_info(
        self,
        email: Email | None = None,
        phone: str | None = None,
    ) -> None:
        self.contact_email = email
        self.contact_phone = phone.strip() if phone else None
        self.updated_at = utc_now()

    def update_limits(self, max_users: int, max_organizations: int) -> None:
        """Replace the tenant quotas.

        Raises:
            ValidationError: If either limit is below 1
        """
        self._validate_limits(max_users, max_organizations)
        self.max_users = max_users
        self.max_organizations = max_organizations
        self.updated_at = utc_now()

    def update_settings(self, settings: dict[str, Any]) -> None:
        self.settings = {**self.settings, **settings}
        self.updated_at = utc_now()
