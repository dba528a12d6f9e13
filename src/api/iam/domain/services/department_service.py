"""Department domain service for IAM bounded context."""

from __future__ import annotations

from iam.domain.entities import Department, DepartmentType, EntityStatus
from iam.domain.exceptions import DomainError, NotFoundError, StateError
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import HierarchicalDomainService
from iam.domain.services.hierarchy import HierarchyNode
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import (
    CreateDepartmentRequest,
    UpdateDepartmentRequest,
)
from iam.domain.value_objects import DepartmentCode, DepartmentId
from iam.ports.repositories import IDepartmentRepository, IOrganizationRepository


class DepartmentDomainService(HierarchicalDomainService):
    """Domain service for department management.

    Departments live inside an organization: codes and names are unique
    per organization and a parent department must belong to the same
    organization. The owning organization must exist and be ACTIVE when a
    department is created; its tenant is copied onto the department.
    """

    ENTITY_TYPE = "department"
    SCOPE_ATTRIBUTE = "organization_id"
    SCOPE_LABEL = "organization"

    def __init__(
        self,
        department_repository: IDepartmentRepository,
        organization_repository: IOrganizationRepository,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        super().__init__(department_repository, probe=probe, policy=policy)
        self._organization_repository = organization_repository

    def get_department(self, department_id: DepartmentId) -> Department:
        return self._get(department_id)

    def create_department(self, request: CreateDepartmentRequest) -> Department:
        """Create a new department in an organization.

        Raises:
            ValidationError: If a required field is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the organization
            NotFoundError: If the organization or parent does not exist
            HierarchyError: If the parent is inactive or in another organization
            StateError: If the organization is not ACTIVE
        """
        errors: list[DomainError] = []
        name = self._check_text(request.name, request.description, errors)
        code = self._parse_code(DepartmentCode, request.code, errors)
        self._check_code_unique(code, request.organization_id, errors)
        self._check_name_unique(name, request.organization_id, errors)
        parent = self._check_parent(request.parent_id, request.organization_id, errors)

        organization = self._organization_repository.find_by_id(request.organization_id)
        if organization is None:
            errors.append(
                NotFoundError(f"Organization {request.organization_id} not found")
            )
        elif not organization.is_active:
            errors.append(
                StateError(
                    f"Organization {organization.code} is not active "
                    f"(status: {organization.status.value})"
                )
            )
        self._fail_creation(errors)

        department = Department.create(
            organization_id=request.organization_id,
            tenant_id=organization.tenant_id,
            code=code,
            name=name,
            type=request.type,
            parent_id=request.parent_id,
            description=request.description,
            manager_id=request.manager_id,
        )
        self._persist(self._repository, department)
        self._attach_to_parent(department, parent)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=department.id.value,
            scope_id=request.organization_id.value,
        )
        return department

    def update_department(
        self,
        department_id: DepartmentId,
        request: UpdateDepartmentRequest,
    ) -> Department:
        """Apply a partial update.

        Nothing is applied unless every requested change is valid.

        Raises:
            NotFoundError: If the department does not exist
            ValidationError: If the new name is blank or too long, or the
                type is unknown
            UniquenessError: If the new name is taken in the organization
            HierarchyError: If the new parent is not acceptable
        """
        department = self._get(department_id)
        parent = self._prepare_parent_change(department, request.parent_id)

        errors: list[DomainError] = []
        new_name = self._check_rename(
            department, request.name, request.description, errors
        )
        new_type = self._parse_choice(DepartmentType, request.type, "type", errors)
        self._fail_update(errors)

        changed = self._apply_rename(department, new_name, request.description)
        if new_type is not None and new_type != department.type:
            department.update_type(new_type)
            changed.append("type")
        manager_id = request.manager_id
        if manager_id is not None and manager_id != department.manager_id:
            department.assign_manager(manager_id)
            changed.append("manager_id")
        self._save_update(department, changed, request.parent_id, parent)
        return department

    def move_department(
        self,
        department_id: DepartmentId,
        new_parent_id: DepartmentId | None,
    ) -> Department:
        """Move a department under a new parent, or to the root with None.

        Raises:
            NotFoundError: If the department or the new parent does not exist
            HierarchyError: If the move would create a cycle, cross
                organizations, or the new parent is inactive
        """
        return self._move(department_id, new_parent_id)

    def change_department_status(
        self,
        department_id: DepartmentId,
        new_status: EntityStatus | str,
    ) -> Department:
        return self._change_status(department_id, new_status)

    def delete_department(self, department_id: DepartmentId) -> None:
        """Delete a department that has no sub-departments and no members.

        Raises:
            NotFoundError: If the department does not exist
            StateError: If it still has sub-departments or members
        """
        self._delete(department_id)

    def get_descendant_ids(self, department_id: DepartmentId) -> set[DepartmentId]:
        return self._descendant_ids(department_id)

    def get_department_path(self, department_id: DepartmentId) -> list[Department]:
        """Departments from the organization root down to the given one."""
        return self._path(department_id)

    def get_department_tree(self, department_id: DepartmentId) -> HierarchyNode:
        return self._tree(department_id)
