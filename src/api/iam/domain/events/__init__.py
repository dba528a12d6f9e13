"""Domain events for IAM bounded context.

Domain events capture facts about things that have happened in the domain.
They are immutable value objects that carry all the information needed
to describe the occurrence of an event.

Aggregates buffer these events; callers drain them with collect_events()
and hand them to whatever publisher the application wires in.
"""

from iam.domain.events.base import IAMEvent
from iam.domain.events.department import (
    DepartmentEvent,
    DepartmentLimitsWarning,
    DepartmentRoleAdded,
    DepartmentRoleRemoved,
    DepartmentSettingsUpdated,
    DepartmentStatusChanged,
    DepartmentSubDepartmentAdded,
    DepartmentSubDepartmentRemoved,
    DepartmentUserAdded,
    DepartmentUserRemoved,
)
from iam.domain.events.organization import (
    OrganizationDepartmentAdded,
    OrganizationDepartmentRemoved,
    OrganizationEvent,
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
from iam.domain.events.permission import (
    PermissionEvent,
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
from iam.domain.events.role import (
    RoleEvent,
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
from iam.domain.events.tenant import (
    TenantConfigurationUpdated,
    TenantEvent,
    TenantLimitsWarning,
    TenantStatusChanged,
)
from iam.domain.events.user import (
    UserDepartmentAdded,
    UserDepartmentRemoved,
    UserEvent,
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

# Type alias for all domain events in the IAM context
DomainEvent = (
    TenantEvent
    | OrganizationEvent
    | DepartmentEvent
    | RoleEvent
    | PermissionEvent
    | UserEvent
)

__all__ = [
    # Base
    "IAMEvent",
    # Tenant events
    "TenantEvent",
    "TenantConfigurationUpdated",
    "TenantStatusChanged",
    "TenantLimitsWarning",
    # Organization events
    "OrganizationEvent",
    "OrganizationSettingsUpdated",
    "OrganizationDepartmentAdded",
    "OrganizationDepartmentRemoved",
    "OrganizationRoleAdded",
    "OrganizationRoleRemoved",
    "OrganizationPermissionAdded",
    "OrganizationPermissionRemoved",
    "OrganizationUserAdded",
    "OrganizationUserRemoved",
    "OrganizationStatusChanged",
    "OrganizationLimitsWarning",
    # Department events
    "DepartmentEvent",
    "DepartmentSettingsUpdated",
    "DepartmentSubDepartmentAdded",
    "DepartmentSubDepartmentRemoved",
    "DepartmentUserAdded",
    "DepartmentUserRemoved",
    "DepartmentRoleAdded",
    "DepartmentRoleRemoved",
    "DepartmentStatusChanged",
    "DepartmentLimitsWarning",
    # Role events
    "RoleEvent",
    "RoleSettingsUpdated",
    "RolePermissionAssigned",
    "RolePermissionRemoved",
    "RoleMemberAdded",
    "RoleMemberRemoved",
    "RoleSubRoleAdded",
    "RoleSubRoleRemoved",
    "RoleStatusChanged",
    "RoleLimitsWarning",
    # Permission events
    "PermissionEvent",
    "PermissionSettingsUpdated",
    "PermissionRoleAssigned",
    "PermissionRoleRemoved",
    "PermissionUserAssigned",
    "PermissionUserRemoved",
    "PermissionSubPermissionAdded",
    "PermissionSubPermissionRemoved",
    "PermissionStatusChanged",
    "PermissionLimitsWarning",
    # User events
    "UserEvent",
    "UserSettingsUpdated",
    "UserRoleAssigned",
    "UserRoleRemoved",
    "UserPermissionAssigned",
    "UserPermissionRemoved",
    "UserOrganizationAdded",
    "UserOrganizationRemoved",
    "UserDepartmentAdded",
    "UserDepartmentRemoved",
    "UserStatusChanged",
    "UserLimitsWarning",
    "UserProfileUpdated",
    "UserPasswordChanged",
    "UserLoginSucceeded",
    "UserLoginFailed",
    "UserLocked",
    # Type alias
    "DomainEvent",
]
