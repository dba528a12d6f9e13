"""Protocol for IAM domain service observability.

Defines the interface for domain probes that capture service-level events
for the tenant, organization, department, role, permission and user domain
services.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import structlog


class DomainServiceProbe(Protocol):
    """Domain probe for IAM domain service operations."""

    def entity_created(
        self, entity_type: str, entity_id: str, scope_id: str | None
    ) -> None:
        """Record that an entity was created."""
        ...

    def entity_creation_failed(
        self, entity_type: str, violations: Sequence[str]
    ) -> None:
        """Record that a creation request was rejected."""
        ...

    def entity_updated(
        self, entity_type: str, entity_id: str, fields: Sequence[str]
    ) -> None:
        """Record that an entity was updated."""
        ...

    def entity_moved(
        self,
        entity_type: str,
        entity_id: str,
        old_parent_id: str | None,
        new_parent_id: str | None,
    ) -> None:
        """Record that an entity was moved in its hierarchy."""
        ...

    def entity_move_rejected(
        self, entity_type: str, entity_id: str, reason: str
    ) -> None:
        """Record that a move was rejected."""
        ...

    def entity_status_changed(
        self, entity_type: str, entity_id: str, old_status: str, new_status: str
    ) -> None:
        """Record that an entity changed status."""
        ...

    def entity_deleted(self, entity_type: str, entity_id: str) -> None:
        """Record that an entity was deleted."""
        ...

    def entity_not_found(self, entity_type: str, entity_id: str) -> None:
        """Record that a referenced entity does not exist."""
        ...

    def entity_write_conflict(
        self, entity_type: str, entity_id: str, reason: str
    ) -> None:
        """Record that the repository rejected a write."""
        ...

    def login_recorded(
        self, user_id: str, success: bool, consecutive_failures: int
    ) -> None:
        """Record the outcome of a login attempt."""
        ...


class DefaultDomainServiceProbe:
    """Default implementation of DomainServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self._logger = logger or structlog.get_logger()

    def entity_created(
        self, entity_type: str, entity_id: str, scope_id: str | None
    ) -> None:
        """Record that an entity was created."""
        self._logger.info(
            f"{entity_type}_created",
            entity_id=entity_id,
            scope_id=scope_id,
        )

    def entity_creation_failed(
        self, entity_type: str, violations: Sequence[str]
    ) -> None:
        """Record that a creation request was rejected."""
        self._logger.warning(
            f"{entity_type}_creation_failed",
            violations=list(violations),
        )

    def entity_updated(
        self, entity_type: str, entity_id: str, fields: Sequence[str]
    ) -> None:
        self._logger.info(
            f"{entity_type}_updated",
            entity_id=entity_id,
            fields=list(fields),
        )

    def entity_moved(
        self,
        entity_type: str,
        entity_id: str,
        old_parent_id: str | None,
        new_parent_id: str | None,
    ) -> None:
        self._logger.info(
            f"{entity_type}_moved",
            entity_id=entity_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
        )

    def entity_move_rejected(
        self, entity_type: str, entity_id: str, reason: str
    ) -> None:
        self._logger.warning(
            f"{entity_type}_move_rejected",
            entity_id=entity_id,
            reason=reason,
        )

    def entity_status_changed(
        self, entity_type: str, entity_id: str, old_status: str, new_status: str
    ) -> None:
        self._logger.info(
            f"{entity_type}_status_changed",
            entity_id=entity_id,
            old_status=old_status,
            new_status=new_status,
        )

    def entity_deleted(self, entity_type: str, entity_id: str) -> None:
        """Record that an entity was deleted."""
        self._logger.info(
            f"{entity_type}_deleted",
            entity_id=entity_id,
        )

    def entity_not_found(self, entity_type: str, entity_id: str) -> None:
        self._logger.debug(
            f"{entity_type}_not_found",
            entity_id=entity_id,
        )

    def entity_write_conflict(
        self, entity_type: str, entity_id: str, reason: str
    ) -> None:
        self._logger.warning(
            f"{entity_type}_write_conflict",
            entity_id=entity_id,
            reason=reason,
        )

    def login_recorded(
        self, user_id: str, success: bool, consecutive_failures: int
    ) -> None:
        self._logger.info(
            "user_login_recorded",
            user_id=user_id,
            success=success,
            consecutive_failures=consecutive_failures,
        )
