"""Organization domain service for IAM bounded context.

Creates, updates, moves and deletes organizations while keeping the
organization tree of each tenant consistent.
"""

from __future__ import annotations

from iam.domain.entities import (
    EntityStatus,
    Organization,
    OrganizationType,
    TenantStatus,
)
from iam.domain.entities.base import replace_fields
from iam.domain.exceptions import CapacityError, DomainError, NotFoundError, StateError
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import HierarchicalDomainService
from iam.domain.services.hierarchy import HierarchyNode
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import (
    CreateOrganizationRequest,
    UpdateOrganizationRequest,
)
from iam.domain.value_objects import OrganizationCode, OrganizationId
from iam.ports.repositories import IOrganizationRepository, ITenantRepository


class OrganizationDomainService(HierarchicalDomainService):
    """Domain service for organization management.

    Organization codes and names are unique within a tenant. A parent must
    exist, be ACTIVE and belong to the same tenant, and an organization can
    never end up below one of its own descendants.

    When a tenant repository is supplied, creation also checks that the
    tenant exists, is ACTIVE and has room for another organization.
    """

    ENTITY_TYPE = "organization"
    SCOPE_ATTRIBUTE = "tenant_id"
    SCOPE_LABEL = "tenant"

    def __init__(
        self,
        organization_repository: IOrganizationRepository,
        tenant_repository: ITenantRepository | None = None,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        """Initialize OrganizationDomainService with dependencies.

        Args:
            organization_repository: Repository for organization persistence
            tenant_repository: Optional repository used for tenant checks
            probe: Optional domain probe for observability
            policy: Optional policy overriding the default limits
        """
        super().__init__(organization_repository, probe=probe, policy=policy)
        self._tenant_repository = tenant_repository

    def get_organization(self, organization_id: OrganizationId) -> Organization:
        """Load an organization.

        Raises:
            NotFoundError: If the organization does not exist
        """
        return self._get(organization_id)

    def create_organization(self, request: CreateOrganizationRequest) -> Organization:
        """Create a new organization in a tenant.

        Every check runs before failing so the raised error lists all
        violations. The error class is that of the first violation.

        Args:
            request: Fields of the new organization

        Returns:
            The persisted organization

        Raises:
            ValidationError: If a required field is missing or too long
            FormatError: If the code is malformed
            UniquenessError: If the code or name is taken in the tenant
            NotFoundError: If the tenant or parent does not exist
            HierarchyError: If the parent is inactive or in another tenant
            StateError: If the tenant is not ACTIVE
            CapacityError: If the tenant has no room for more organizations
        """
        errors: list[DomainError] = []
        name = self._check_text(request.name, request.description, errors)
        code = self._parse_code(OrganizationCode, request.code, errors)
        self._check_code_unique(code, request.tenant_id, errors)
        self._check_name_unique(name, request.tenant_id, errors)
        parent = self._check_parent(request.parent_id, request.tenant_id, errors)
        self._check_tenant(request, errors)
        self._fail_creation(errors)

        organization = Organization.create(
            tenant_id=request.tenant_id,
            code=code,
            name=name,
            type=request.type,
            parent_id=request.parent_id,
            description=request.description,
        )
        self._persist(self._repository, organization)
        self._attach_to_parent(organization, parent)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE,
            entity_id=organization.id.value,
            scope_id=request.tenant_id.value,
        )
        return organization

    def _check_tenant(
        self, request: CreateOrganizationRequest, errors: list[DomainError]
    ) -> None:
        if self._tenant_repository is None:
            return
        tenant = self._tenant_repository.find_by_id(request.tenant_id)
        if tenant is None:
            errors.append(NotFoundError(f"Tenant {request.tenant_id} not found"))
            return
        if tenant.status is not TenantStatus.ACTIVE:
            errors.append(
                StateError(
                    f"Tenant {tenant.code} is not active "
                    f"(status: {tenant.status.value})"
                )
            )
        count = self._repository.count_by_tenant(request.tenant_id)
        if count >= tenant.max_organizations:
            errors.append(
                CapacityError(
                    f"Tenant {tenant.code} cannot have more than "
                    f"{tenant.max_organizations} organizations"
                )
            )

    def update_organization(
        self,
        organization_id: OrganizationId,
        request: UpdateOrganizationRequest,
    ) -> Organization:
        """Apply a partial update.

        Name uniqueness is only checked when the name changes. A new
        parent goes through the same rules as move_organization(). Every
        requested change is validated before any is applied, so a failed
        update leaves the organization untouched.

        Raises:
            NotFoundError: If the organization does not exist
            ValidationError: If the name is blank, the type is unknown, or a
                limit is unknown or negative
            UniquenessError: If the new name is taken in the tenant
            HierarchyError: If the new parent is not acceptable
        """
        organization = self._get(organization_id)
        parent = self._prepare_parent_change(organization, request.parent_id)

        errors: list[DomainError] = []
        new_name = self._check_rename(
            organization, request.name, request.description, errors
        )
        new_type = self._parse_choice(OrganizationType, request.type, "type", errors)
        new_limits = None
        if request.limits:
            new_limits = self._attempt(
                errors,
                lambda: replace_fields(
                    organization.limits, "organization limits", request.limits
                ),
            )
        self._fail_update(errors)

        changed = self._apply_rename(organization, new_name, request.description)
        if new_type is not None and new_type != organization.type:
            organization.update_type(new_type)
            changed.append("type")
        if new_limits is not None and new_limits != organization.limits:
            organization.update_limits(**request.limits)
            changed.append("limits")
        if request.settings:
            organization.update_settings(request.settings)
            changed.append("settings")
        self._save_update(organization, changed, request.parent_id, parent)
        return organization

    def move_organization(
        self,
        organization_id: OrganizationId,
        new_parent_id: OrganizationId | None,
    ) -> Organization:
        """Move an organization under a new parent, or to the root with None.

        Raises:
            NotFoundError: If the organization or the new parent does not exist
            HierarchyError: If the move would create a cycle or cross tenants,
                or the new parent is inactive
        """
        return self._move(organization_id, new_parent_id)

    def change_organization_status(
        self,
        organization_id: OrganizationId,
        new_status: EntityStatus | str,
    ) -> Organization:
        """Run the organization status state machine.

        Raises:
            NotFoundError: If the organization does not exist
            StateError: If the transition is not allowed
        """
        return self._change_status(organization_id, new_status)

    def delete_organization(self, organization_id: OrganizationId) -> None:
        """Delete an organization that has no children and no members.

        Raises:
            NotFoundError: If the organization does not exist
            StateError: If it still has child organizations or members
        """
        self._delete(organization_id)

    def get_descendant_ids(
        self, organization_id: OrganizationId
    ) -> set[OrganizationId]:
        """Ids of every organization below the given one.

        Raises:
            NotFoundError: If the organization does not exist
        """
        return self._descendant_ids(organization_id)

    def get_organization_path(
        self, organization_id: OrganizationId
    ) -> list[Organization]:
        """Organizations from the tenant root down to the given one.

        Raises:
            NotFoundError: If the organization does not exist
        """
        return self._path(organization_id)

    def get_organization_tree(self, organization_id: OrganizationId) -> HierarchyNode:
        """The organization with all of its sub-organizations, nested.

        Raises:
            NotFoundError: If the organization does not exist
        """
        return self._tree(organization_id)
