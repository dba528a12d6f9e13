"""Behaviour shared by IAM entities.

Entities are plain dataclasses. The mixins below contribute behaviour only
and expect the concrete dataclass to declare the attributes they use.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar, TypeVar

from iam.domain.exceptions import HierarchyError, StateError, ValidationError


class EntityStatus(StrEnum):
    """Lifecycle status for organizations, departments, roles and permissions."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DISABLED = "disabled"


ENTITY_STATUS_TRANSITIONS: Mapping[StrEnum, frozenset[StrEnum]] = {
    EntityStatus.ACTIVE: frozenset({EntityStatus.SUSPENDED, EntityStatus.DISABLED}),
    EntityStatus.SUSPENDED: frozenset({EntityStatus.ACTIVE, EntityStatus.DISABLED}),
    EntityStatus.DISABLED: frozenset({EntityStatus.ACTIVE}),
}


def utc_now() -> datetime:
    return datetime.now(UTC)


def require_text(value: str, label: str) -> str:
    """Return the trimmed value, rejecting blank text.

    Raises:
        ValidationError: If value is not a string or is blank after trimming
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} cannot be empty")
    return value.strip()


T = TypeVar("T")


def replace_fields(instance: T, label: str, changes: Mapping[str, Any]) -> T:
    """Return a copy of a frozen dataclass with some fields replaced.

    Args:
        instance: Settings or limits object to copy
        label: Name of the object used in error messages
        changes: Field values to replace

    Raises:
        ValidationError: If a key is not a field of the object, or the new
            values fail the object's own validation
    """
    known = {f.name for f in fields(instance)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValidationError(f"Unknown {label}: {', '.join(unknown)}")
    return replace(instance, **changes)


class StatusLifecycle:
    """Status state machine driven by a transition table.

    Concrete entities declare ``status`` and ``updated_at`` fields and may
    replace ``STATUS_TRANSITIONS`` with their own table.
    """

    status: Any
    updated_at: datetime

    STATUS_ENUM: ClassVar[type[StrEnum]] = EntityStatus
    STATUS_TRANSITIONS: ClassVar[Mapping[StrEnum, frozenset[StrEnum]]] = (
        ENTITY_STATUS_TRANSITIONS
    )

    def _coerce_status(self) -> None:
        self.status = self.STATUS_ENUM(self.status)

    @property
    def entity_label(self) -> str:
        return type(self).__name__

    def can_transition_to(self, new_status: StrEnum) -> bool:
        return new_status in self.STATUS_TRANSITIONS.get(self.status, frozenset())

    def change_status(self, new_status: StrEnum | str) -> None:
        """Move to a new status according to the transition table.

        Raises:
            StateError: If the status is unknown, unchanged, or the transition
                is not allowed from the current status
        """
        try:
            target = self.STATUS_ENUM(new_status)
        except ValueError as e:
            raise StateError(
                f"Unsupported {self.entity_label} status: {new_status!r}"
            ) from e

        if target == self.status:
            raise StateError(f"{self.entity_label} is already {target.value}")
        if not self.can_transition_to(target):
            raise StateError(
                f"{self.entity_label} cannot change status from "
                f"{self.status.value} to {target.value}"
            )
        self.status = target
        self.updated_at = utc_now()

    def activate(self) -> None:
        self.change_status(self.STATUS_ENUM("active"))

    def suspend(self) -> None:
        self.change_status(self.STATUS_ENUM("suspended"))

    def disable(self) -> None:
        self.change_status(self.STATUS_ENUM("disabled"))

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class Named:
    """Free-text name and description mutators."""

    name: str
    description: str | None
    updated_at: datetime

    def update_name(self, name: str) -> None:
        """Rename the entity.

        Raises:
            ValidationError: If the trimmed name is empty
        """
        self.name = require_text(name, f"{type(self).__name__} name")
        self.updated_at = utc_now()

    def update_description(self, description: str | None) -> None:
        self.description = description.strip() if description else None
        self.updated_at = utc_now()


class TreeNode:
    """Parent/child links for self-referential hierarchies.

    Only the local rule (a node cannot be its own parent or child) is
    enforced here. Moving a node under one of its descendants is rejected
    by the owning domain service, which can see the whole tree.
    """

    id: Any
    parent_id: Any
    _child_ids: set
    updated_at: datetime

    @property
    def child_ids(self) -> frozenset:
        return frozenset(self._child_ids)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def set_parent(self, parent_id: Any | None) -> None:
        """Attach the node to a new parent, or detach it with None.

        Raises:
            HierarchyError: If parent_id is the node's own id
        """
        if parent_id is not None and parent_id == self.id:
            raise HierarchyError(f"{type(self).__name__} cannot be its own parent")
        self.parent_id = parent_id
        self.updated_at = utc_now()

    def add_child(self, child_id: Any) -> None:
        if child_id == self.id:
            raise HierarchyError(f"{type(self).__name__} cannot be its own child")
        if child_id not in self._child_ids:
            self._child_ids.add(child_id)
            self.updated_at = utc_now()

    def remove_child(self, child_id: Any) -> None:
        if child_id in self._child_ids:
            self._child_ids.discard(child_id)
            self.updated_at = utc_now()

    def has_child(self, child_id: Any) -> bool:
        return child_id in self._child_ids

    def has_children(self) -> bool:
        return bool(self._child_ids)


class MemberSet:
    """Idempotent user membership helpers."""

    _member_ids: set
    updated_at: datetime

    @property
    def member_ids(self) -> frozenset:
        return frozenset(self._member_ids)

    def add_member(self, user_id: Any) -> None:
        if user_id not in self._member_ids:
            self._member_ids.add(user_id)
            self.updated_at = utc_now()

    def remove_member(self, user_id: Any) -> None:
        if user_id in self._member_ids:
            self._member_ids.discard(user_id)
            self.updated_at = utc_now()

    def has_member(self, user_id: Any) -> bool:
        return user_id in self._member_ids

    def has_members(self) -> bool:
        return bool(self._member_ids)
