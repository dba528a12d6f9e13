"""Tenant aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from iam.domain.aggregates.base import (
    DEFAULT_LIMITS_WARNING_RATIO,
    AggregateRoot,
    Quota,
)
from iam.domain.entities import Tenant
from iam.domain.entities.base import utc_now
from iam.domain.events import (
    IAMEvent,
    TenantConfigurationUpdated,
    TenantLimitsWarning,
    TenantStatusChanged,
)
from iam.domain.observability import AggregateProbe, DefaultAggregateProbe


@dataclass(frozen=True)
class TenantConfiguration:
    max_users: int = 1000
    max_organizations: int = 10
    max_departments: int = 1000
    max_roles: int = 500
    max_permissions: int = 2000
    storage_limit: int = 10240
    features: frozenset[str] = frozenset()
    custom_settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TenantStatistics:
    user_count: int = 0
    organization_count: int = 0
    department_count: int = 0
    role_count: int = 0
    permission_count: int = 0
    storage_used: int = 0


@dataclass
class TenantAggregate(AggregateRoot):
    """Consistency boundary around a tenant.

    A tenant does not hold member ids. Its statistics are fed by the
    services that create entities inside it, and every counter is capped by
    the configuration. The user and organization caps are the quotas of the
    wrapped Tenant entity and must stay at least 1.
    """

    tenant: Tenant
    settings: TenantConfiguration = field(default_factory=TenantConfiguration)
    statistics: TenantStatistics = field(default_factory=TenantStatistics)
    last_updated: datetime = field(default_factory=utc_now)
    limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO
    _pending_events: list[IAMEvent] = field(default_factory=list, repr=False)
    _probe: AggregateProbe = field(
        default_factory=DefaultAggregateProbe,
        repr=False,
    )

    AGGREGATE_NAME: ClassVar[str] = "tenant"
    QUOTAS: ClassVar[dict[str, Quota]] = {
        "users": Quota("user", "user_count", "max_users"),
        "organizations": Quota(
            "organization", "organization_count", "max_organizations"
        ),
        "departments": Quota("department", "department_count", "max_departments"),
        "roles": Quota("role", "role_count", "max_roles"),
        "permissions": Quota("permission", "permission_count", "max_permissions"),
        "storage": Quota("storage", "storage_used", "storage_limit"),
    }
    ENTITY_LIMITS: ClassVar[dict[str, str]] = {
        "max_users": "max_users",
        "max_organizations": "max_organizations",
    }
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]] = TenantConfigurationUpdated
    STATUS_CHANGED: ClassVar[type[IAMEvent]] = TenantStatusChanged
    LIMITS_WARNING: ClassVar[type[IAMEvent]] = TenantLimitsWarning

    @classmethod
    def create(
        cls,
        tenant: Tenant,
        configuration: TenantConfiguration | None = None,
        statistics: TenantStatistics | None = None,
        probe: AggregateProbe | None = None,
        limits_warning_ratio: float = DEFAULT_LIMITS_WARNING_RATIO,
    ) -> TenantAggregate:
        """Wrap a tenant.

        The user and organization caps of an explicit configuration are
        written to the tenant; without one they are taken from the tenant.

        Raises:
            ValidationError: If a configured user or organization cap is
                below 1
        """
        aggregate = cls(
            tenant=tenant,
            settings=configuration or TenantConfiguration(),
            statistics=statistics or TenantStatistics(),
            limits_warning_ratio=limits_warning_ratio,
            _probe=probe or DefaultAggregateProbe(),
        )
        aggregate._sync_entity_limits(from_settings=configuration is not None)
        return aggregate

    @property
    def root(self) -> Tenant:
        return self.tenant

    @property
    def configuration(self) -> TenantConfiguration:
        return self.settings

    def _entity_limit(self, name: str) -> int:
        return getattr(self.tenant, name)

    def _update_entity_limits(self, **limits: int) -> None:
        self.tenant.update_limits(
            max_users=limits.get("max_users", self.tenant.max_users),
            max_organizations=limits.get(
                "max_organizations", self.tenant.max_organizations
            ),
        )

    def _has_room(self, key: str, amount: int = 1) -> bool:
        quota = self.QUOTAS[key]
        used = getattr(self.statistics, quota.count_field)
        return used + amount <= self.maximum(quota.max_setting)

    def can_add_user(self) -> bool:
        return self._has_room("users")

    def can_add_organization(self) -> bool:
        return self._has_room("organizations")

    def can_add_department(self) -> bool:
        return self._has_room("departments")

    def can_add_role(self) -> bool:
        return self._has_room("roles")

    def can_add_permission(self) -> bool:
        return self._has_room("permissions")

    def can_use_storage(self, size: int) -> bool:
        """Whether ``size`` more megabytes fit under the storage limit."""
        return self._has_room("storage", size)

    def update_configuration(self, **changes: Any) -> None:
        """Apply a partial configuration update.

        Raises:
            ValidationError: If a key is unknown, a maximum is negative, or
                the user or organization cap is below 1
            CapacityError: If a maximum would fall below the current count
        """
        self.update_settings(**changes)
