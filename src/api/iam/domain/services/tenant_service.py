"""Tenant domain service for IAM bounded context."""

from __future__ import annotations

from iam.domain.entities import Tenant, TenantStatus
from iam.domain.exceptions import (
    CapacityError,
    DomainError,
    FormatError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)
from iam.domain.observability import DomainServiceProbe
from iam.domain.services.base import DomainService
from iam.domain.services.policy import IAMPolicy
from iam.domain.services.requests import CreateTenantRequest
from iam.domain.value_objects import Email, TenantCode, TenantId
from iam.ports.repositories import IOrganizationRepository, ITenantRepository


class TenantDomainService(DomainService):
    """Domain service for tenant management.

    Tenant codes and names are globally unique. New tenants start PENDING
    and must be activated before organizations can be created in them.
    """

    ENTITY_TYPE = "tenant"

    def __init__(
        self,
        tenant_repository: ITenantRepository,
        organization_repository: IOrganizationRepository | None = None,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        """Initialize TenantDomainService with dependencies.

        Args:
            tenant_repository: Repository for tenant persistence
            organization_repository: Optional repository used to count the
                organizations of a tenant when its limits shrink
            probe: Optional domain probe for observability
            policy: Optional policy overriding the default limits
        """
        super().__init__(probe=probe, policy=policy)
        self._tenant_repository = tenant_repository
        self._organization_repository = organization_repository

    def get_tenant(self, tenant_id: TenantId) -> Tenant:
        """Load a tenant.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = self._tenant_repository.find_by_id(tenant_id)
        if tenant is None:
            self._probe.entity_not_found(
                entity_type=self.ENTITY_TYPE, entity_id=str(tenant_id)
            )
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    def create_tenant(self, request: CreateTenantRequest) -> Tenant:
        """Create a new PENDING tenant.

        Raises:
            ValidationError: If a required field is missing, too long, or a
                limit is below 1
            FormatError: If the code or contact email is malformed
            UniquenessError: If the code or name is already taken
        """
        errors: list[DomainError] = []
        name = self._check_text(request.name, request.description, errors)
        code = self._parse_code(TenantCode, request.code, errors)
        if code is not None and self._tenant_repository.find_by_code(code) is not None:
            errors.append(UniquenessError(f"Tenant code {code} already exists"))
        if name is not None and self._tenant_repository.find_by_name(name) is not None:
            errors.append(UniquenessError(f"Tenant name '{name}' already exists"))
        if request.max_users < 1:
            errors.append(ValidationError("Max users must be at least 1"))
        if request.max_organizations < 1:
            errors.append(ValidationError("Max organizations must be at least 1"))

        contact_email = None
        if request.contact_email:
            try:
                contact_email = Email(request.contact_email)
            except FormatError as e:
                errors.append(e)
        self._fail_creation(errors)

        tenant = Tenant.create(
            code=code,
            name=name,
            description=request.description,
            max_users=request.max_users,
            max_organizations=request.max_organizations,
        )
        if contact_email is not None or request.contact_phone:
            tenant.update_contact_info(contact_email, request.contact_phone)
        self._persist(self._tenant_repository, tenant)

        self._probe.entity_created(
            entity_type=self.ENTITY_TYPE, entity_id=tenant.id.value, scope_id=None
        )
        return tenant

    def change_tenant_status(
        self,
        tenant_id: TenantId,
        new_status: TenantStatus | str,
    ) -> Tenant:
        """Run the tenant status state machine.

        Raises:
            NotFoundError: If the tenant does not exist
            StateError: If the transition is not allowed (DISABLED is final)
        """
        tenant = self.get_tenant(tenant_id)
        old_status = tenant.status
        tenant.change_status(new_status)
        self._persist(self._tenant_repository, tenant)
        self._probe.entity_status_changed(
            entity_type=self.ENTITY_TYPE,
            entity_id=tenant.id.value,
            old_status=old_status.value,
            new_status=tenant.status.value,
        )
        return tenant

    def update_tenant_limits(
        self,
        tenant_id: TenantId,
        max_users: int,
        max_organizations: int,
    ) -> Tenant:
        """Replace the tenant quotas.

        Raises:
            NotFoundError: If the tenant does not exist
            ValidationError: If either limit is below 1
            CapacityError: If max_organizations is below the number of
                organizations the tenant already has
        """
        tenant = self.get_tenant(tenant_id)
        if self._organization_repository is not None:
            count = self._organization_repository.count_by_tenant(tenant.id)
            if max_organizations < count:
                raise CapacityError(
                    f"Cannot reduce max organizations of tenant {tenant.code} "
                    f"to {max_organizations}: it already has {count}"
                )
        tenant.update_limits(max_users, max_organizations)
        self._persist(self._tenant_repository, tenant)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=tenant.id.value,
            fields=["max_users", "max_organizations"],
        )
        return tenant
