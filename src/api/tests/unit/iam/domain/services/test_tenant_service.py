"""Unit tests for TenantDomainService."""

import pytest

from iam.domain.entities import Organization, TenantStatus
from iam.domain.exceptions import (
    CapacityError,
    FormatError,
    NotFoundError,
    StateError,
    UniquenessError,
    ValidationError,
)
from iam.domain.services import CreateTenantRequest, TenantDomainService
from iam.domain.value_objects import OrganizationCode, TenantCode, TenantId


@pytest.fixture
def service(tenant_repository, organization_repository, mock_probe):
    return TenantDomainService(
        tenant_repository=tenant_repository,
        organization_repository=organization_repository,
        probe=mock_probe,
    )


class TestCreateTenant:
    """Tests for TenantDomainService.create_tenant()."""

    def test_creates_pending_tenant(self, service, tenant_repository, mock_probe):
        tenant = service.create_tenant(
            CreateTenantRequest(
                code="Globex",
                name="Globex",
                contact_email="Admin@Globex.com",
            )
        )

        assert tenant.code == TenantCode("globex")
        assert tenant.status is TenantStatus.PENDING
        assert tenant.contact_email.value == "admin@globex.com"
        assert tenant_repository.find_by_id(tenant.id) is tenant
        mock_probe.entity_created.assert_called_once_with(
            entity_type="tenant", entity_id=tenant.id.value, scope_id=None
        )

    def test_rejects_taken_code_and_name(self, service, tenant):
        with pytest.raises(UniquenessError) as exc_info:
            service.create_tenant(CreateTenantRequest(code="ACME", name="Acme"))

        assert len(exc_info.value.violations) == 2

    def test_collects_limit_and_email_errors(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create_tenant(
                CreateTenantRequest(
                    code="globex",
                    name="Globex",
                    max_users=0,
                    contact_email="not-an-email",
                )
            )

        kinds = [type(v) for v in exc_info.value.violations]
        assert kinds == [ValidationError, FormatError]


class TestChangeTenantStatus:
    """Tests for TenantDomainService.change_tenant_status()."""

    def test_activates_pending_tenant(self, service):
        tenant = service.create_tenant(
            CreateTenantRequest(code="globex", name="Globex")
        )

        service.change_tenant_status(tenant.id, TenantStatus.ACTIVE)

        assert tenant.status is TenantStatus.ACTIVE

    def test_disabled_is_terminal(self, service, tenant):
        service.change_tenant_status(tenant.id, TenantStatus.DISABLED)

        with pytest.raises(StateError):
            service.change_tenant_status(tenant.id, TenantStatus.ACTIVE)

    def test_unknown_tenant(self, service, mock_probe):
        with pytest.raises(NotFoundError):
            service.change_tenant_status(TenantId.generate(), TenantStatus.ACTIVE)

        mock_probe.entity_not_found.assert_called_once()


class TestUpdateTenantLimits:
    """Tests for TenantDomainService.update_tenant_limits()."""

    def test_cannot_shrink_below_organization_count(
        self, service, tenant, organization_repository
    ):
        for code in ("ORG-A", "ORG-B"):
            organization_repository.save(
                Organization.create(
                    tenant_id=tenant.id, code=OrganizationCode(code), name=code
                )
            )

        with pytest.raises(CapacityError):
            service.update_tenant_limits(tenant.id, max_users=10, max_organizations=1)

        service.update_tenant_limits(tenant.id, max_users=10, max_organizations=2)
        assert tenant.max_organizations == 2
        assert tenant.max_users == 10
