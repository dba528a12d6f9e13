"""Observability probes for IAM aggregates.

Domain probes for the Organization, Department, Role and User aggregates
following the Domain Oriented Observability pattern. Probes emit structured
logs with domain-specific context for membership, settings, status and
login operations.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

import structlog


class AggregateProbe(Protocol):
    """Protocol for aggregate observability probes.

    Every method receives the aggregate kind ("organization", "department",
    "role" or "user") and the aggregate id so a single probe can serve all
    four aggregates.
    """

    def member_added(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        member_id: str,
    ) -> None:
        """Probe emitted when an id is added to one of the membership sets.

        Args:
            aggregate: The aggregate kind
            aggregate_id: The aggregate ID
            collection: The membership set, e.g. "departments"
            member_id: The id that was added
        """
        ...

    def member_removed(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        member_id: str,
    ) -> None:
        """Probe emitted when an id is removed from one of the membership sets."""
        ...

    def capacity_exceeded(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        limit: int,
    ) -> None:
        """Probe emitted when an addition is refused by a limit or allow flag."""
        ...

    def settings_updated(
        self,
        aggregate: str,
        aggregate_id: str,
        changes: dict[str, Any],
    ) -> None:
        """Probe emitted when aggregate settings change."""
        ...

    def status_changed(
        self,
        aggregate: str,
        aggregate_id: str,
        old_status: str,
        new_status: str,
        reason: str | None,
    ) -> None:
        """Probe emitted when the wrapped entity changes status."""
        ...

    def limits_warning(
        self,
        aggregate: str,
        aggregate_id: str,
        warnings: tuple[str, ...],
    ) -> None:
        """Probe emitted when counters approach their maximum."""
        ...

    def login_failed(self, user_id: str, consecutive_failures: int) -> None:
        """Probe emitted for a failed login attempt."""
        ...

    def account_locked(self, user_id: str, locked_until: datetime) -> None:
        """Probe emitted when an account gets locked."""
        ...


class DefaultAggregateProbe:
    """Default implementation of AggregateProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._logger = logger or structlog.get_logger()

    def member_added(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        member_id: str,
    ) -> None:
        """Log membership addition with structured context."""
        self._logger.info(
            f"{aggregate}_member_added",
            aggregate_id=aggregate_id,
            collection=collection,
            member_id=member_id,
        )

    def member_removed(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        member_id: str,
    ) -> None:
        """Log membership removal with structured context."""
        self._logger.info(
            f"{aggregate}_member_removed",
            aggregate_id=aggregate_id,
            collection=collection,
            member_id=member_id,
        )

    def capacity_exceeded(
        self,
        aggregate: str,
        aggregate_id: str,
        collection: str,
        limit: int,
    ) -> None:
        self._logger.warning(
            f"{aggregate}_capacity_exceeded",
            aggregate_id=aggregate_id,
            collection=collection,
            limit=limit,
        )

    def settings_updated(
        self,
        aggregate: str,
        aggregate_id: str,
        changes: dict[str, Any],
    ) -> None:
        self._logger.info(
            f"{aggregate}_settings_updated",
            aggregate_id=aggregate_id,
            changes=changes,
        )

    def status_changed(
        self,
        aggregate: str,
        aggregate_id: str,
        old_status: str,
        new_status: str,
        reason: str | None,
    ) -> None:
        """Log status change with structured context."""
        self._logger.info(
            f"{aggregate}_status_changed",
            aggregate_id=aggregate_id,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
        )

    def limits_warning(
        self,
        aggregate: str,
        aggregate_id: str,
        warnings: tuple[str, ...],
    ) -> None:
        self._logger.warning(
            f"{aggregate}_limits_warning",
            aggregate_id=aggregate_id,
            warnings=list(warnings),
        )

    def login_failed(self, user_id: str, consecutive_failures: int) -> None:
        self._logger.warning(
            "user_login_failed",
            user_id=user_id,
            consecutive_failures=consecutive_failures,
        )

    def account_locked(self, user_id: str, locked_until: datetime) -> None:
        self._logger.warning(
            "user_account_locked",
            user_id=user_id,
            locked_until=locked_until.isoformat(),
        )
