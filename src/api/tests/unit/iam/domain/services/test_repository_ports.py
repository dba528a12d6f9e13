"""Contract checks for the repository ports."""

from unittest.mock import create_autospec

import pytest

from iam.domain.entities import EntityStatus
from iam.domain.exceptions import DomainError, UniquenessError
from iam.domain.services import (
    CreateOrganizationRequest,
    CreateRoleRequest,
    OrganizationDomainService,
    RoleDomainService,
)
from iam.domain.value_objects import OrganizationId
from iam.ports import (
    ConcurrentModificationError,
    DuplicateCodeError,
    IDepartmentRepository,
    IOrganizationRepository,
    IPermissionRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)


@pytest.mark.parametrize(
    ("fixture_name", "protocol"),
    [
        ("tenant_repository", ITenantRepository),
        ("organization_repository", IOrganizationRepository),
        ("department_repository", IDepartmentRepository),
        ("role_repository", IRoleRepository),
        ("permission_repository", IPermissionRepository),
        ("user_repository", IUserRepository),
    ],
)
def test_in_memory_repositories_satisfy_ports(request, fixture_name, protocol):
    """The test doubles used by the service tests implement every port."""
    assert isinstance(request.getfixturevalue(fixture_name), protocol)


def test_repository_errors_fit_the_taxonomy():
    assert issubclass(DuplicateCodeError, UniquenessError)
    assert issubclass(ConcurrentModificationError, DomainError)
    assert not issubclass(ConcurrentModificationError, UniquenessError)


class TestWriteConflicts:
    """Repository write conflicts reach the caller unchanged."""

    def test_duplicate_code_on_save_propagates(self, mock_probe, tenant_id):
        repository = create_autospec(IOrganizationRepository, instance=True)
        repository.find_by_code.return_value = None
        repository.find_by_name.return_value = None
        repository.save.side_effect = DuplicateCodeError("code ORG001 is taken")
        service = OrganizationDomainService(repository, probe=mock_probe)

        with pytest.raises(DuplicateCodeError):
            service.create_organization(
                CreateOrganizationRequest(
                    tenant_id=tenant_id, code="ORG001", name="Lost the race"
                )
            )

        mock_probe.entity_write_conflict.assert_called_once()
        assert mock_probe.entity_write_conflict.call_args.kwargs["reason"] == (
            "code ORG001 is taken"
        )
        mock_probe.entity_created.assert_not_called()

    def test_stale_update_propagates(self, role_repository, mock_probe):
        service = RoleDomainService(role_repository, probe=mock_probe)
        role = service.create_role(
            CreateRoleRequest(
                organization_id=OrganizationId.generate(),
                code="EDITORS",
                name="Editors",
            )
        )

        def reject(entity):
            raise ConcurrentModificationError(f"Role {entity.id} changed")

        role_repository.save = reject

        with pytest.raises(ConcurrentModificationError):
            service.change_role_status(role.id, EntityStatus.SUSPENDED)

        mock_probe.entity_write_conflict.assert_called_once_with(
            entity_type="role",
            entity_id=str(role.id),
            reason=f"Role {role.id} changed",
        )
        mock_probe.entity_status_changed.assert_not_called()
