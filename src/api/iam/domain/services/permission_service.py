"""Permission domain service for IAM bounded context.

Manages the permission tree of each organization and the grants of a
permission to roles and, directly, to users.
"""

from __future__ import annotations

from iam.domain.entities import (
    EntityStatus,
    Permission,
    PermissionAction,
    PermissionLimits,
    PermissionScope,
    PermissionType,
)
from iam.domain.entities.base import replace_fields
from iam.domain.exceptions import (
    CapacityError,
    DomainError,
    NotFoundError,
    StateError,
    ValidationError,
)
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import HierarchicalDomainService
from iam.domain.services.hierarchy import HierarchyNode
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import (
    CreatePermissionRequest,
    UpdatePermissionRequest,
)
from iam.domain.value_objects import PermissionCode, PermissionId, RoleId, UserId
from iam.ports.repositories import (
    IPermissionRepository,
    IRoleRepository,
    IUserRepository,
)


class PermissionDomainService(HierarchicalDomainService):
    """Domain service for permission management.

    Permission codes (``resource:action[:scope]``) and names are unique
    within an organization. A permission still granted to a role or a user
    cannot be deleted.

    Grants are capped by the permission limits. When a role or user
    repository is supplied, the grantee must exist, and a role must belong
    to the organization of the permission.
    """

    ENTITY_TYPE = "permission"
    SCOPE_ATTRIBUTE = "organization_id"
    SCOPE_LABEL = "organization"

    def __init__(
        self,
        permission_repository: IPermissionRepository,
        role_repository: IRoleRepository | None = None,
        user_repository: IUserRepository | None = None,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        super().__init__(permission_repository, probe=probe, policy=policy)
        self._role_repository = role_repository
        self._user_repository = user_repository

    def get_permission(self, permission_id: PermissionId) -> Permission:
        return self._get(permission_id)

    def create_permission(self, request: CreatePermissionRequest) -> Permission:
        """Create a new permission in an organization.

        Raises:
            ValidationError: If a required field is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the organization
            NotFoundError: If the parent permission does not exist
            HierarchyError: If the parent is inactive or in another organization
        """
        errors: list[DomainError] = []
        name = self._check_text(request.name, request.description, errors)
        code = self._parse_code(PermissionCode, request.code, errors)
        self._check_code_unique(code, request.organization_id, errors)
        self._check_name_unique(name, request.organization_id, errors)
        parent = self._check_parent(request.parent_id, request.organization_id, errors)
        self._fail_creation(errors)

        permission = Permission.create(
            organization_id=request.organization_id,
            code=code,
            name=name,
            type=request.type,
            scope=request.scope,
            action=request.action,
            description=request.description,
        )
        if request.parent_id is not None:
            permission.set_parent(request.parent_id)
        self._persist(self._repository, permission)
        self._attach_to_parent(permission, parent)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=permission.id.value,
            scope_id=request.organization_id.value,
        )
        return permission

    def update_permission(
        self,
        permission_id: PermissionId,
        request: UpdatePermissionRequest,
    ) -> Permission:
        """Apply a partial update.

        Nothing is applied unless every requested change is valid. Limits
        may not drop below the number of grants they cap.

        Raises:
            NotFoundError: If the permission does not exist
            ValidationError: If the name is blank or too long, a choice is
                unknown, or a limit is unknown or negative
            UniquenessError: If the new name is taken in the organization
            CapacityError: If a limit would fall below its current count
            HierarchyError: If the new parent is not acceptable
        """
        permission = self._get(permission_id)
        parent = self._prepare_parent_change(permission, request.parent_id)

        errors: list[DomainError] = []
        new_name = self._check_rename(
            permission, request.name, request.description, errors
        )
        new_type = self._parse_choice(PermissionType, request.type, "type", errors)
        new_scope = self._parse_choice(PermissionScope, request.scope, "scope", errors)
        new_action = self._parse_choice(
            PermissionAction, request.action, "action", errors
        )
        new_limits = None
        if request.limits:
            new_limits = self._attempt(
                errors,
                lambda: replace_fields(
                    permission.limits, "permission limits", request.limits
                ),
            )
        if new_limits is not None:
            self._check_limits_cover_grants(permission, new_limits, errors)
        self._fail_update(errors)

        changed = self._apply_rename(permission, new_name, request.description)
        if new_type is not None and new_type != permission.type:
            permission.update_type(new_type)
            changed.append("type")
        if new_scope is not None and new_scope != permission.scope:
            permission.update_scope(new_scope)
            changed.append("scope")
        if new_action is not None and new_action != permission.action:
            permission.update_action(new_action)
            changed.append("action")
        if new_limits is not None and new_limits != permission.limits:
            permission.update_limits(**request.limits)
            changed.append("limits")
        self._save_update(permission, changed, request.parent_id, parent)
        return permission

    @staticmethod
    def _check_limits_cover_grants(
        permission: Permission,
        limits: PermissionLimits,
        errors: list[DomainError],
    ) -> None:
        counts = {
            "max_roles": len(permission.role_ids),
            "max_users": len(permission.user_ids),
            "max_sub_permissions": len(permission.child_ids),
        }
        for name, count in counts.items():
            if getattr(limits, name) < count:
                errors.append(
                    CapacityError(
                        f"Permission limit {name} cannot be lower than the "
                        f"current count ({count})"
                    )
                )

    def move_permission(
        self,
        permission_id: PermissionId,
        new_parent_id: PermissionId | None,
    ) -> Permission:
        return self._move(permission_id, new_parent_id)

    def change_permission_status(
        self,
        permission_id: PermissionId,
        new_status: EntityStatus | str,
    ) -> Permission:
        return self._change_status(permission_id, new_status)

    def delete_permission(self, permission_id: PermissionId) -> None:
        """Delete a permission with no sub-permissions and no grants.

        Raises:
            NotFoundError: If the permission does not exist
            StateError: If it still has sub-permissions or is granted to a
                role or user
        """
        self._delete(permission_id)

    def clone_permission(
        self, source_id: PermissionId, code: str, name: str
    ) -> Permission:
        """Copy a permission under a new code and name in the same organization.

        The copy keeps the type, scope, action, description, limits and
        metadata of the source. It starts at the root of the tree with no
        grants and no sub-permissions.

        Raises:
            NotFoundError: If the source permission does not exist
            ValidationError: If the name is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the organization
        """
        source = self._get(source_id)
        errors: list[DomainError] = []
        new_name = self._check_text(name, None, errors)
        new_code = self._parse_code(PermissionCode, code, errors)
        self._check_code_unique(new_code, source.organization_id, errors)
        self._check_name_unique(new_name, source.organization_id, errors)
        self._fail_creation(errors)

        clone = Permission.create(
            organization_id=source.organization_id,
            code=new_code,
            name=new_name,
            type=source.type,
            scope=source.scope,
            action=source.action,
            description=source.description,
        )
        clone.limits = source.limits
        clone.metadata = dict(source.metadata)
        self._persist(self._repository, clone)
        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=clone.id.value,
            scope_id=source.organization_id.value,
        )
        return clone

    def assign_to_role(
        self, permission_id: PermissionId, role_id: RoleId
    ) -> Permission:
        """Grant a permission to a role.

        Raises:
            NotFoundError: If the permission or the role does not exist
            ValidationError: If the role belongs to another organization
            StateError: If the permission is not ACTIVE or the role already
                holds it
            CapacityError: If the permission is granted to its maximum
                number of roles
        """
        permission = self._get_grantable(permission_id)
        if self._role_repository is not None:
            role = self._role_repository.find_by_id(role_id)
            if role is None:
                raise NotFoundError(f"Role {role_id} not found")
            if role.organization_id != permission.organization_id:
                raise ValidationError(
                    f"Role {role.code} belongs to another organization than "
                    f"permission {permission.code}"
                )
        if permission.has_role(role_id):
            raise StateError(
                f"Permission {permission.code} is already granted to role {role_id}"
            )
        if not permission.can_add_role():
            raise CapacityError(
                f"Permission {permission.code} cannot be granted to more than "
                f"{permission.limits.max_roles} roles"
            )

        permission.add_role(role_id)
        return self._save_grants(permission, "role_ids")

    def remove_from_role(
        self, permission_id: PermissionId, role_id: RoleId
    ) -> Permission:
        """Withdraw a permission from a role.

        Raises:
            NotFoundError: If the permission does not exist
            StateError: If the role does not hold the permission
        """
        permission = self._get(permission_id)
        if not permission.has_role(role_id):
            raise StateError(
                f"Permission {permission.code} is not granted to role {role_id}"
            )
        permission.remove_role(role_id)
        return self._save_grants(permission, "role_ids")

    def assign_to_user(
        self, permission_id: PermissionId, user_id: UserId
    ) -> Permission:
        """Grant a permission directly to a user.

        Raises:
            NotFoundError: If the permission or the user does not exist
            StateError: If the permission is not ACTIVE or the user already
                holds it
            CapacityError: If the permission is granted to its maximum
                number of users
        """
        permission = self._get_grantable(permission_id)
        if (
            self._user_repository is not None
            and self._user_repository.find_by_id(user_id) is None
        ):
            raise NotFoundError(f"User {user_id} not found")
        if permission.has_user(user_id):
            raise StateError(
                f"Permission {permission.code} is already granted to user {user_id}"
            )
        if not permission.can_add_user():
            raise CapacityError(
                f"Permission {permission.code} cannot be granted to more than "
                f"{permission.limits.max_users} users"
            )

        permission.add_user(user_id)
        return self._save_grants(permission, "user_ids")

    def remove_from_user(
        self, permission_id: PermissionId, user_id: UserId
    ) -> Permission:
        """Withdraw a directly granted permission from a user.

        Raises:
            NotFoundError: If the permission does not exist
            StateError: If the user does not hold the permission directly
        """
        permission = self._get(permission_id)
        if not permission.has_user(user_id):
            raise StateError(
                f"Permission {permission.code} is not granted to user {user_id}"
            )
        permission.remove_user(user_id)
        return self._save_grants(permission, "user_ids")

    def _get_grantable(self, permission_id: PermissionId) -> Permission:
        permission = self._get(permission_id)
        if not permission.is_active:
            raise StateError(
                f"Cannot grant permission {permission.code} "
                f"(status: {permission.status.value})"
            )
        return permission

    def _save_grants(self, permission: Permission, field_name: str) -> Permission:
        self._persist(self._repository, permission)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=permission.id.value,
            fields=[field_name],
        )
        return permission

    def get_descendant_ids(self, permission_id: PermissionId) -> set[PermissionId]:
        return self._descendant_ids(permission_id)

    def get_permission_path(self, permission_id: PermissionId) -> list[Permission]:
        return self._path(permission_id)

    def get_permission_hierarchy(self, permission_id: PermissionId) -> HierarchyNode:
        """The permission with every sub-permission below it, nested.

        Raises:
            NotFoundError: If the permission does not exist
        """
        return self._tree(permission_id)
