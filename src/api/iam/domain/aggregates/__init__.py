"""Domain aggregates for IAM bounded context.

Aggregates are consistency boundaries that encapsulate one entity together
with its settings, statistics and membership sets. They enforce business
rules and record domain events for every state transition.
"""

from iam.domain.aggregates.base import AggregateRoot, Membership, Quota
from iam.domain.aggregates.department import (
    DepartmentAggregate,
    DepartmentAggregateSettings,
    DepartmentStatistics,
)
from iam.domain.aggregates.organization import (
    OrganizationAggregate,
    OrganizationAggregateSettings,
    OrganizationStatistics,
)
from iam.domain.aggregates.permission import (
    PermissionAggregate,
    PermissionAggregateSettings,
    PermissionStatistics,
)
from iam.domain.aggregates.role import (
    RoleAggregate,
    RoleAggregateSettings,
    RoleStatistics,
)
from iam.domain.aggregates.tenant import (
    TenantAggregate,
    TenantConfiguration,
    TenantStatistics,
)
from iam.domain.aggregates.user import (
    UserAggregate,
    UserAggregateSettings,
    UserStatistics,
)

__all__ = [
    # Base
    "AggregateRoot",
    "Membership",
    "Quota",
    # Tenant
    "TenantAggregate",
    "TenantConfiguration",
    "TenantStatistics",
    # Organization
    "OrganizationAggregate",
    "OrganizationAggregateSettings",
    "OrganizationStatistics",
    # Department
    "DepartmentAggregate",
    "DepartmentAggregateSettings",
    "DepartmentStatistics",
    # Role
    "RoleAggregate",
    "RoleAggregateSettings",
    "RoleStatistics",
    # Permission
    "PermissionAggregate",
    "PermissionAggregateSettings",
    "PermissionStatistics",
    # User
    "UserAggregate",
    "UserAggregateSettings",
    "UserStatistics",
]
