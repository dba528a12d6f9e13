"""Validation pipeline and tree maintenance shared by the domain services.

Organizations, departments and roles form self-referential trees scoped by
a tenant or an organization. Their services share the same creation
pipeline, move rules and delete rules, implemented once here.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, ClassVar, TypeVar

from iam.domain.exceptions import (
    DomainError,
    FormatError,
    HierarchyError,
    NotFoundError,
    StateError,
    UniquenessError,
    ValidationError,
)
from iam.domain.observability import DefaultDomainServiceProbe, DomainServiceProbe
from iam.domain.services.hierarchy import (
    HierarchyNode,
    build_tree,
    collect_ancestors,
    collect_descendant_ids,
)
from iam.domain.services.policy import IAMPolicy
from iam.domain.value_objects import Code
from iam.ports.exceptions import ConcurrentModificationError, DuplicateCodeError

T = TypeVar("T")
E = TypeVar("E", bound=StrEnum)


class DomainService:
    """Collaborators and error reporting common to every domain service."""

    ENTITY_TYPE: ClassVar[str] = ""

    def __init__(
        self,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        self._probe = probe or DefaultDomainServiceProbe()
        self._policy = policy or IAMPolicy()

    @property
    def label(self) -> str:
        return self.ENTITY_TYPE.capitalize()

    def _fail_creation(self, errors: list[DomainError]) -> None:
        """Report and raise the collected creation errors, if any."""
        if not errors:
            return
        self._probe.entity_creation_failed(
            entity_type=self.ENTITY_TYPE,
            violations=[error.message for error in errors],
        )
        raise DomainError.aggregate(errors)

    @staticmethod
    def _fail_update(errors: list[DomainError]) -> None:
        """Raise the collected update errors, if any.

        Updates validate every requested change before touching the
        entity, so nothing has been modified when this raises.
        """
        if errors:
            raise DomainError.aggregate(errors)

    def _persist(self, repository: Any, entity: Any) -> None:
        """Save an entity, reporting write conflicts before re-raising them.

        Raises:
            DuplicateCodeError: If the repository found the code or name taken
            ConcurrentModificationError: If the entity changed since it was read
        """
        try:
            repository.save(entity)
        except (DuplicateCodeError, ConcurrentModificationError) as e:
            self._probe.entity_write_conflict(
                entity_type=self.ENTITY_TYPE,
                entity_id=str(entity.id),
                reason=e.message,
            )
            raise

    @staticmethod
    def _attempt(errors: list[DomainError], build: Callable[[], T]) -> T | None:
        """Run a validating builder, collecting its error instead of raising."""
        try:
            return build()
        except DomainError as e:
            errors.append(e)
            return None

    def _parse_choice(
        self,
        enum_type: type[E],
        raw: Any,
        field_label: str,
        errors: list[DomainError],
    ) -> E | None:
        """Coerce an optional enum value, collecting an error for unknown ones."""
        if raw is None:
            return None
        try:
            return enum_type(raw)
        except ValueError:
            errors.append(
                ValidationError(
                    f"Unsupported {self.ENTITY_TYPE} {field_label}: {raw!r}"
                )
            )
            return None

    def _check_text(
        self,
        name: str | None,
        description: str | None,
        errors: list[DomainError],
        required: bool = True,
    ) -> str | None:
        """Validate a name and description, returning the trimmed name."""
        trimmed = name.strip() if name else ""
        if not trimmed:
            if required or name is not None:
                errors.append(ValidationError(f"{self.label} name is required"))
            trimmed = None
        elif len(trimmed) > self._policy.name_max_length:
            errors.append(
                ValidationError(
                    f"{self.label} name cannot exceed "
                    f"{self._policy.name_max_length} characters"
                )
            )
        if description and len(description) > self._policy.description_max_length:
            errors.append(
                ValidationError(
                    f"{self.label} description cannot exceed "
                    f"{self._policy.description_max_length} characters"
                )
            )
        return trimmed

    def _parse_code(
        self,
        code_type: type[Code],
        raw: str | None,
        errors: list[DomainError],
        field_label: str | None = None,
    ) -> Any:
        """Build a code value object, collecting its errors.

        ``field_label`` names the field in the "required" message and
        defaults to "<Entity> code".
        """
        if raw is None or not raw.strip():
            label = field_label or f"{self.label} code"
            errors.append(ValidationError(f"{label} is required"))
            return None
        try:
            return code_type(raw)
        except FormatError as e:
            errors.append(e)
            return None


class HierarchicalDomainService(DomainService):
    """Shared behaviour for services managing a scoped tree of entities.

    Subclasses set ``ENTITY_TYPE`` and ``SCOPE_ATTRIBUTE`` (the entity
    attribute holding the tenant or organization id that scopes codes,
    names and parents) and pass their repository to ``__init__``.
    """

    SCOPE_ATTRIBUTE: ClassVar[str] = ""
    SCOPE_LABEL: ClassVar[str] = ""

    def __init__(
        self,
        repository: Any,
        probe: DomainServiceProbe | None = None,
        policy: IAMPolicy | None = None,
    ) -> None:
        super().__init__(probe=probe, policy=policy)
        self._repository = repository

    def _scope_of(self, entity: Any) -> Any:
        return getattr(entity, self.SCOPE_ATTRIBUTE)

    def _get(self, entity_id: Any) -> Any:
        """Load an entity or raise NotFoundError."""
        entity = self._repository.find_by_id(entity_id)
        if entity is None:
            self._probe.entity_not_found(
                entity_type=self.ENTITY_TYPE, entity_id=str(entity_id)
            )
            raise NotFoundError(f"{self.label} {entity_id} not found")
        return entity

    def _check_code_unique(
        self, code: Any, scope_id: Any, errors: list[DomainError]
    ) -> None:
        if code is None:
            return
        if self._repository.find_by_code(code, scope_id) is not None:
            errors.append(
                UniquenessError(
                    f"{self.label} code {code} already exists in "
                    f"{self.SCOPE_LABEL} {scope_id}"
                )
            )

    def _check_name_unique(
        self,
        name: str | None,
        scope_id: Any,
        errors: list[DomainError],
        exclude_id: Any = None,
    ) -> None:
        if name is None:
            return
        existing = self._repository.find_by_name(name, scope_id)
        if existing is not None and existing.id != exclude_id:
            errors.append(
                UniquenessError(
                    f"{self.label} name '{name}' already exists in "
                    f"{self.SCOPE_LABEL} {scope_id}"
                )
            )

    def _check_parent(
        self,
        parent_id: Any,
        scope_id: Any,
        errors: list[DomainError],
    ) -> Any:
        """Validate a prospective parent, returning it when it exists.

        The parent must exist, be ACTIVE and belong to the same scope.
        """
        if parent_id is None:
            return None
        parent = self._repository.find_by_id(parent_id)
        if parent is None:
            errors.append(
                NotFoundError(f"Parent {self.ENTITY_TYPE} {parent_id} not found")
            )
            return None
        if not parent.is_active:
            errors.append(
                HierarchyError(
                    f"Parent {self.ENTITY_TYPE} {parent_id} is not active "
                    f"(status: {parent.status.value})"
                )
            )
        if self._scope_of(parent) != scope_id:
            errors.append(
                HierarchyError(
                    f"Parent {self.ENTITY_TYPE} {parent_id} belongs to another "
                    f"{self.SCOPE_LABEL}"
                )
            )
        return parent

    def _attach_to_parent(self, entity: Any, parent: Any | None) -> None:
        if parent is None:
            return
        parent.add_child(entity.id)
        self._persist(self._repository, parent)

    def _move(self, entity_id: Any, new_parent_id: Any | None) -> Any:
        """Re-parent a node, keeping both parents' child sets in sync.

        Raises:
            NotFoundError: If the node or the new parent does not exist
            HierarchyError: If the new parent is the node itself, is
                inactive, lives in another scope, or is one of the node's
                descendants
        """
        node = self._get(entity_id)
        parent = self._checked_move_target(node, new_parent_id)
        self._relink(node, new_parent_id, parent)
        return node

    def _checked_move_target(self, node: Any, new_parent_id: Any | None) -> Any:
        """Validate a move target, reporting rejections through the probe."""
        if new_parent_id is None:
            return None
        try:
            return self._validate_move_target(node, new_parent_id)
        except DomainError as e:
            self._probe.entity_move_rejected(
                entity_type=self.ENTITY_TYPE,
                entity_id=str(node.id),
                reason=e.message,
            )
            raise

    def _relink(self, node: Any, new_parent_id: Any | None, parent: Any) -> bool:
        """Persist a validated move. Returns False when the parent is unchanged."""
        old_parent_id = node.parent_id
        if old_parent_id == new_parent_id:
            return False

        node.set_parent(new_parent_id)
        self._persist(self._repository, node)
        if old_parent_id is not None:
            old_parent = self._repository.find_by_id(old_parent_id)
            if old_parent is not None:
                old_parent.remove_child(node.id)
                self._persist(self._repository, old_parent)
        self._attach_to_parent(node, parent)

        self._probe.entity_moved(
            entity_type=self.ENTITY_TYPE,
            entity_id=str(node.id),
            old_parent_id=str(old_parent_id) if old_parent_id else None,
            new_parent_id=str(new_parent_id) if new_parent_id else None,
        )
        return True

    def _prepare_parent_change(self, node: Any, new_parent_id: Any | None) -> Any:
        """Validate the parent requested by an update before anything changes.

        Returns:
            The new parent, or None when the parent is left unchanged
        """
        if new_parent_id is None or new_parent_id == node.parent_id:
            return None
        return self._checked_move_target(node, new_parent_id)

    def _save_update(
        self,
        node: Any,
        changed: list[str],
        new_parent_id: Any | None,
        parent: Any,
    ) -> None:
        if parent is not None and self._relink(node, new_parent_id, parent):
            changed.append("parent_id")
        else:
            self._persist(self._repository, node)
        self._probe.entity_updated(
            entity_type=self.ENTITY_TYPE,
            entity_id=str(node.id),
            fields=changed,
        )

    def _validate_move_target(self, node: Any, new_parent_id: Any) -> Any:
        if new_parent_id == node.id:
            raise HierarchyError(f"{self.label} cannot be its own parent")
        parent = self._repository.find_by_id(new_parent_id)
        if parent is None:
            raise NotFoundError(f"Parent {self.ENTITY_TYPE} {new_parent_id} not found")
        if self._scope_of(parent) != self._scope_of(node):
            raise HierarchyError(
                f"Cannot move {self.ENTITY_TYPE} {node.id} under a parent in "
                f"another {self.SCOPE_LABEL}"
            )
        if not parent.is_active:
            raise HierarchyError(
                f"Parent {self.ENTITY_TYPE} {new_parent_id} is not active "
                f"(status: {parent.status.value})"
            )
        descendant_ids = {d.id for d in self._repository.get_descendants(node.id)}
        if new_parent_id in descendant_ids:
            raise HierarchyError(
                f"Cannot move {self.ENTITY_TYPE} {node.id} under its own "
                f"descendant {new_parent_id}"
            )
        return parent

    def _descendant_ids(self, entity_id: Any) -> set[Any]:
        self._get(entity_id)
        return collect_descendant_ids(entity_id, self._repository.find_by_parent)

    def _path(self, entity_id: Any) -> list[Any]:
        """The chain of entities from the tree root down to ``entity_id``.

        Raises:
            NotFoundError: If the entity does not exist
        """
        node = self._get(entity_id)
        ancestors = collect_ancestors(node, self._repository.find_by_id)
        return [*reversed(ancestors), node]

    def _tree(self, entity_id: Any) -> HierarchyNode:
        """The entity with every descendant, nested by parent.

        Raises:
            NotFoundError: If the entity does not exist
        """
        return build_tree(self._get(entity_id), self._repository.find_by_parent)

    def _change_status(self, entity_id: Any, new_status: Any) -> Any:
        entity = self._get(entity_id)
        old_status = entity.status
        entity.change_status(new_status)
        self._persist(self._repository, entity)
        self._probe.entity_status_changed(
            entity_type=self.ENTITY_TYPE,
            entity_id=str(entity.id),
            old_status=old_status.value,
            new_status=entity.status.value,
        )
        return entity

    def _delete(self, entity_id: Any) -> None:
        """Delete a childless, memberless node and detach it from its parent.

        Raises:
            NotFoundError: If the node does not exist
            StateError: If the node still has children or members
        """
        node = self._get(entity_id)
        if node.has_children() or self._repository.find_by_parent(node.id):
            raise StateError(
                f"Cannot delete {self.ENTITY_TYPE} {node.id}: it still has children"
            )
        if node.has_members():
            raise StateError(
                f"Cannot delete {self.ENTITY_TYPE} {node.id}: it still has members"
            )

        if node.parent_id is not None:
            parent = self._repository.find_by_id(node.parent_id)
            if parent is not None:
                parent.remove_child(node.id)
                self._persist(self._repository, parent)
        self._repository.delete(node.id)
        self._probe.entity_deleted(entity_type=self.ENTITY_TYPE, entity_id=str(node.id))

    def _check_rename(
        self,
        entity: Any,
        name: str | None,
        description: str | None,
        errors: list[DomainError],
    ) -> str | None:
        """Validate a partial name/description update.

        Returns:
            The trimmed new name, or None when the name is left unchanged
        """
        new_name = self._check_text(name, description, errors, required=False)
        if new_name is None or new_name == entity.name:
            return None
        self._check_name_unique(
            new_name, self._scope_of(entity), errors, exclude_id=entity.id
        )
        return new_name

    @staticmethod
    def _apply_rename(
        entity: Any, new_name: str | None, description: str | None
    ) -> list[str]:
        """Apply a name/description update validated by _check_rename()."""
        changed = []
        if new_name is not None:
            entity.update_name(new_name)
            changed.append("name")
        if description is not None and description != entity.description:
            entity.update_description(description)
            changed.append("description")
        return changed
