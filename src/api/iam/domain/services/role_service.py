"""Role domain service for IAM bounded context.

Manages the role tree of each organization, role membership and the
resource permission map of a role.
"""

from __future__ import annotations

from iam.domain.entities import EntityStatus, Role, RoleScope, RoleType
from iam.domain.exceptions import (
    CapacityError,
    DomainError,
    StateError,
)
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import HierarchicalDomainService
from iam.domain.services.hierarchy import HierarchyNode
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import CreateRoleRequest, UpdateRoleRequest
from iam.domain.value_objects import RoleCode, RoleId, UserId
from iam.ports.repositories import IRoleRepository, IUserRepository


class RoleDomainService(HierarchicalDomainService):
    """Domain service for role management.

    Role codes and names are unique within an organization; the same code
    may be reused by another organization. SYSTEM roles cannot be disabled
    and their type cannot be changed.

    When a user repository is supplied, membership changes are mirrored
    onto the affected user.
    """

    ENTITY_TYPE = "role"
    SCOPE_ATTRIBUTE = "organization_id"
    SCOPE_LABEL = "organization"

    def __init__(
        self,
        role_repository: IRoleRepository,
        user_repository: IUserRepository | None = None,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        super().__init__(role_repository, probe=probe, policy=policy)
        self._user_repository = user_repository

    def get_role(self, role_id: RoleId) -> Role:
        return self._get(role_id)

    def create_role(self, request: CreateRoleRequest) -> Role:
        """Create a new role in an organization.

        Raises:
            ValidationError: If a required field is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the organization
            NotFoundError: If the parent role does not exist
            HierarchyError: If the parent is inactive or in another organization
        """
        errors: list[DomainError] = []
        name = self._check_text(request.name, request.description, errors)
        code = self._parse_code(RoleCode, request.code, errors)
        self._check_code_unique(code, request.organization_id, errors)
        self._check_name_unique(name, request.organization_id, errors)
        parent = self._check_parent(request.parent_id, request.organization_id, errors)
        self._fail_creation(errors)

        role = Role.create(
            organization_id=request.organization_id,
            code=code,
            name=name,
            type=request.type,
            scope=request.scope,
            parent_id=request.parent_id,
            description=request.description,
        )
        self._persist(self._repository, role)
        self._attach_to_parent(role, parent)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=role.id.value,
            scope_id=request.organization_id.value,
        )
        return role

    def update_role(self, role_id: RoleId, request: UpdateRoleRequest) -> Role:
        """Apply a partial update.

        Nothing is applied unless every requested change is valid.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If the type of a SYSTEM role would change
            ValidationError: If the new name is blank or too long, or the
                type or scope is unknown
            UniquenessError: If the new name is taken in the organization
            HierarchyError: If the new parent is not acceptable
        """
        role = self._get(role_id)
        if role.is_system and request.type not in (None, role.type):
            raise StateError(f"Cannot change the type of system role {role.code}")

        parent = self._prepare_parent_change(role, request.parent_id)

        errors: list[DomainError] = []
        new_name = self._check_rename(role, request.name, request.description, errors)
        new_type = self._parse_choice(RoleType, request.type, "type", errors)
        new_scope = self._parse_choice(RoleScope, request.scope, "scope", errors)
        self._fail_update(errors)

        changed = self._apply_rename(role, new_name, request.description)
        if new_type is not None and new_type != role.type:
            role.update_type(new_type)
            changed.append("type")
        if new_scope is not None and new_scope != role.scope:
            role.update_scope(new_scope)
            changed.append("scope")
        self._save_update(role, changed, request.parent_id, parent)
        return role

    def move_role(self, role_id: RoleId, new_parent_id: RoleId | None) -> Role:
        """Move a role under a new parent role, or to the root with None.

        Raises:
            NotFoundError: If the role or the new parent does not exist
            HierarchyError: If the move would create a cycle, cross
                organizations, or the new parent is inactive
        """
        return self._move(role_id, new_parent_id)

    def change_role_status(
        self, role_id: RoleId, new_status: EntityStatus | str
    ) -> Role:
        """Run the role status state machine.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If a SYSTEM role would be disabled or the transition
                is not allowed
        """
        return self._change_status(role_id, new_status)

    def delete_role(self, role_id: RoleId) -> None:
        """Delete a role that has no sub-roles and no members.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If the role is a SYSTEM role or still has sub-roles
                or members
        """
        role = self._get(role_id)
        if role.is_system:
            raise StateError(f"System role {role.code} cannot be deleted")
        self._delete(role_id)

    def clone_role(self, source_id: RoleId, code: str, name: str) -> Role:
        """Copy a role under a new code and name in the same organization.

        Raises:
            NotFoundError: If the source role does not exist
            ValidationError: If the name is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the organization
        """
        source = self._get(source_id)
        errors: list[DomainError] = []
        new_name = self._check_text(name, None, errors)
        new_code = self._parse_code(RoleCode, code, errors)
        self._check_code_unique(new_code, source.organization_id, errors)
        self._check_name_unique(new_name, source.organization_id, errors)
        self._fail_creation(errors)

        clone = self._repository.clone_role(source.id, new_code, new_name)
        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=clone.id.value,
            scope_id=source.organization_id.value,
        )
        return clone

    def assign_member(self, role_id: RoleId, user_id: UserId) -> Role:
        """Add a user to a role.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If the role is not ACTIVE or the user is already a
                member
            CapacityError: If the role is full
        """
        role = self._get(role_id)
        if not role.is_active:
            raise StateError(
                f"Cannot assign members to role {role.code} "
                f"(status: {role.status.value})"
            )
        if role.has_member(user_id):
            raise StateError(f"User {user_id} is already assigned to role {role.code}")
        if not role.can_add_member():
            raise CapacityError(
                f"Role {role.code} cannot have more than "
                f"{role.limits.max_members} members"
            )

        role.add_member(user_id)
        self._persist(self._repository, role)
        if self._user_repository is not None:
            user = self._user_repository.find_by_id(user_id)
            if user is not None:
                user.assign_role(role.id)
                self._persist(self._user_repository, user)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE, entity_id=role.id.value, fields=["members"]
        )
        return role

    def remove_member(self, role_id: RoleId, user_id: UserId) -> Role:
        """Remove a user from a role.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If the user is not a member
        """
        role = self._get(role_id)
        if not role.has_member(user_id):
            raise StateError(f"User {user_id} is not assigned to role {role.code}")

        role.remove_member(user_id)
        self._persist(self._repository, role)
        if self._user_repository is not None:
            user = self._user_repository.find_by_id(user_id)
            if user is not None:
                user.remove_role(role.id)
                self._persist(self._user_repository, user)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE, entity_id=role.id.value, fields=["members"]
        )
        return role

    def grant_permission(
        self,
        role_id: RoleId,
        resource: str,
        read: bool = False,
        write: bool = False,
        delete: bool = False,
        execute: bool = False,
    ) -> Role:
        """Grant access flags on a resource, replacing any previous grant.

        Raises:
            NotFoundError: If the role does not exist
            CapacityError: If the resource is new and the role already holds
                its maximum number of permissions
        """
        role = self._get(role_id)
        if resource not in role.permissions and not role.can_add_permission():
            raise CapacityError(
                f"Role {role.code} cannot have more than "
                f"{role.limits.max_permissions} permissions"
            )
        role.add_permission(
            resource, read=read, write=write, delete=delete, execute=execute
        )
        self._persist(self._repository, role)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=role.id.value,
            fields=["permissions"],
        )
        return role

    def revoke_permission(self, role_id: RoleId, resource: str) -> Role:
        """Remove every access flag on a resource.

        Raises:
            NotFoundError: If the role does not exist
            StateError: If the role has no grant on the resource
        """
        role = self._get(role_id)
        if resource not in role.permissions:
            raise StateError(f"Role {role.code} has no permission on {resource}")
        role.remove_permission(resource)
        self._persist(self._repository, role)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=role.id.value,
            fields=["permissions"],
        )
        return role

    def get_descendant_ids(self, role_id: RoleId) -> set[RoleId]:
        return self._descendant_ids(role_id)

    def get_role_path(self, role_id: RoleId) -> list[Role]:
        """Roles the given one inherits from, outermost first, then itself.

        Raises:
            NotFoundError: If the role does not exist
        """
        return self._path(role_id)

    def get_role_hierarchy(self, role_id: RoleId) -> HierarchyNode:
        """The role with every sub-role below it, nested.

        Raises:
            NotFoundError: If the role does not exist
        """
        return self._tree(role_id)
