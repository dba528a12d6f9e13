"""Permission entity for IAM context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from iam.domain.entities.base import (
    EntityStatus,
    Named,
    StatusLifecycle,
    TreeNode,
    replace_fields,
    require_text,
    utc_now,
)
from iam.domain.exceptions import ValidationError
from iam.domain.value_objects import (
    OrganizationId,
    PermissionCode,
    PermissionId,
    RoleId,
    UserId,
)


class PermissionType(StrEnum):
    SYSTEM = "system"
    CUSTOM = "custom"
    RESOURCE = "resource"
    API = "api"
    DATA = "data"
    FUNCTION = "function"


class PermissionScope(StrEnum):
    GLOBAL = "global"
    ORGANIZATION = "organization"
    DEPARTMENT = "department"
    PROJECT = "project"
    USER = "user"
    RESOURCE = "resource"


class PermissionAction(StrEnum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    EXECUTE = "execute"
    CREATE = "create"
    UPDATE = "update"
    VIEW = "view"
    EDIT = "edit"
    MANAGE = "manage"
    CONTROL = "control"
    ACCESS = "access"


@dataclass(frozen=True)
class PermissionLimits:
    max_roles: int = 100
    max_users: int = 1000
    max_sub_permissions: int = 10

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if not isinstance(value, int) or value < 0:
                raise ValidationError(
                    f"Permission limit {name} must be a non-negative integer"
                )


@dataclass
class Permission(StatusLifecycle, Named, TreeNode):
    """Permission granted to roles and, directly, to users.

    The code follows ``resource:action:scope``; ``resource``, ``action_name``
    and ``scope_name`` read the parts back.
    """

    id: PermissionId
    organization_id: OrganizationId
    code: PermissionCode
    name: str
    type: PermissionType = PermissionType.CUSTOM
    scope: PermissionScope = PermissionScope.ORGANIZATION
    action: PermissionAction = PermissionAction.READ
    description: str | None = None
    parent_id: PermissionId | None = None
    status: EntityStatus = EntityStatus.ACTIVE
    limits: PermissionLimits = field(default_factory=PermissionLimits)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    _child_ids: set[PermissionId] = field(default_factory=set, repr=False)
    _role_ids: set[RoleId] = field(default_factory=set, repr=False)
    _user_ids: set[UserId] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self._coerce_status()
        self.name = require_text(self.name, "Permission name")
        if self.parent_id is not None:
            self.set_parent(self.parent_id)

    @classmethod
    def create(
        cls,
        organization_id: OrganizationId,
        code: PermissionCode,
        name: str,
        type: PermissionType = PermissionType.CUSTOM,
        scope: PermissionScope = PermissionScope.ORGANIZATION,
        action: PermissionAction = PermissionAction.READ,
        description: str | None = None,
    ) -> Permission:
        """Factory method for creating a new permission with a fresh id."""
        return cls(
            id=PermissionId.generate(),
            organization_id=organization_id,
            code=code,
            name=name,
            type=type,
            scope=scope,
            action=action,
            description=description,
        )

    @property
    def resource(self) -> str:
        return self.code.get_resource()

    @property
    def action_name(self) -> str:
        return self.code.get_action()

    @property
    def scope_name(self) -> str:
        return self.code.get_scope()

    @property
    def role_ids(self) -> frozenset[RoleId]:
        return frozenset(self._role_ids)

    @property
    def user_ids(self) -> frozenset[UserId]:
        return frozenset(self._user_ids)

    def update_type(self, new_type: PermissionType) -> None:
        self.type = PermissionType(new_type)
        self.updated_at = utc_now()

    def update_scope(self, new_scope: PermissionScope) -> None:
        self.scope = PermissionScope(new_scope)
        self.updated_at = utc_now()

    def update_action(self, new_action: PermissionAction) -> None:
        self.action = PermissionAction(new_action)
        self.updated_at = utc_now()

    def update_limits(self, **changes: int) -> None:
        """Replace individual quotas, keeping the others.

        Raises:
            ValidationError: If a quota is unknown or negative
        """
        self.limits = replace_fields(self.limits, "permission limits", changes)
        self.updated_at = utc_now()

    def add_role(self, role_id: RoleId) -> None:
        if role_id not in self._role_ids:
            self._role_ids.add(role_id)
            self.updated_at = utc_now()

    def remove_role(self, role_id: RoleId) -> None:
        if role_id in self._role_ids:
            self._role_ids.discard(role_id)
            self.updated_at = utc_now()

    def has_role(self, role_id: RoleId) -> bool:
        return role_id in self._role_ids

    def add_user(self, user_id: UserId) -> None:
        if user_id not in self._user_ids:
            self._user_ids.add(user_id)
            self.updated_at = utc_now()

    def remove_user(self, user_id: UserId) -> None:
        if user_id in self._user_ids:
            self._user_ids.discard(user_id)
            self.updated_at = utc_now()

    def has_user(self, user_id: UserId) -> bool:
        return user_id in self._user_ids

    def has_members(self) -> bool:
        return bool(self._role_ids or self._user_ids)

    def can_add_role(self) -> bool:
        return len(self._role_ids) < self.limits.max_roles

    def can_add_user(self) -> bool:
        return len(self._user_ids) < self.limits.max_users

    def can_add_child(self) -> bool:
        return len(self._child_ids) < self.limits.max_sub_permissions
