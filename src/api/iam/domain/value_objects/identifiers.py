"""Identifier value objects for IAM aggregates and entities.

All identifiers use ULID for sortability and distribution-friendly
generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from ulid import ULID

from iam.domain.exceptions import FormatError


@dataclass(frozen=True)
class EntityId:
    """Base identifier wrapping a ULID string."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> Self:
        """Generate a new identifier using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Create an identifier from its string value.

        Args:
            value: ULID string

        Returns:
            Identifier instance

        Raises:
            FormatError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise FormatError(f"Invalid {cls.__name__}: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class TenantId(EntityId):
    """Identifier for a Tenant."""


@dataclass(frozen=True)
class OrganizationId(EntityId):
    """Identifier for an Organization."""


@dataclass(frozen=True)
class DepartmentId(EntityId):
    """Identifier for a Department."""


@dataclass(frozen=True)
class RoleId(EntityId):
    """Identifier for a Role."""


@dataclass(frozen=True)
class PermissionId(EntityId):
    """Identifier for a Permission."""


@dataclass(frozen=True)
class UserId(EntityId):
    """Identifier for a User."""
