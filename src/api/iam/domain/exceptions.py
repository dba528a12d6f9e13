"""Domain error taxonomy for the IAM bounded context.

Every invariant violation raised by value objects, entities, aggregates
and domain services is one of the classes below. Errors are raised
synchronously and are expected to propagate unchanged to the calling
layer, which decides how to present them.

A single error may carry several violations: domain services run their
whole validation pipeline before failing and report every problem at once
through the ``violations`` attribute.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class DomainError(Exception):
    """Base class for all IAM domain errors.

    Attributes:
        violations: Individual errors aggregated into this one. An error
            raised for a single problem lists only itself.
    """

    def __init__(
        self,
        message: str,
        violations: Sequence[DomainError] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.violations: tuple[DomainError, ...] = (
            tuple(violations) if violations else (self,)
        )

    @property
    def messages(self) -> list[str]:
        """Human-readable message for every aggregated violation."""
        return [violation.message for violation in self.violations]

    @classmethod
    def aggregate(cls, errors: Iterable[DomainError]) -> DomainError:
        """Combine collected errors into a single raisable error.

        The combined error takes the class of the first violation so that
        callers can still dispatch on the taxonomy.

        Args:
            errors: Errors collected by a validation pipeline (non-empty)

        Returns:
            One error whose ``violations`` lists every collected error

        Raises:
            ValueError: If no errors were supplied
        """
        collected = list(errors)
        if not collected:
            raise ValueError("Cannot aggregate an empty error list")
        if len(collected) == 1:
            return collected[0]
        message = "; ".join(error.message for error in collected)
        return type(collected[0])(message, violations=collected)


class ValidationError(DomainError, ValueError):
    """Raised when an input value fails validation.

    Covers blank names, out-of-range numbers, negative statistics and
    unknown settings keys.
    """

    pass


class FormatError(ValidationError):
    """Raised when a value object rejects a malformed string.

    Applies to organization, department, role, permission and tenant codes,
    usernames, emails, passwords and auth tokens. The message lists every
    reason the value was rejected.
    """

    pass


class UniquenessError(DomainError):
    """Raised when a code or name already exists in the relevant scope.

    Scopes are the tenant for organizations, usernames and emails, and the
    organization for departments, roles and permissions.
    """

    pass


class HierarchyError(DomainError):
    """Raised when a parent/child relationship would break the tree.

    Self-parenting, a parent in a different tenant or organization, an
    inactive parent and moving a node under its own descendant all raise
    this error.
    """

    pass


class CapacityError(DomainError):
    """Raised when a limit would be exceeded.

    Either an add operation would go past a configured maximum, or a
    settings update would shrink a maximum below the current usage.
    """

    pass


class StateError(DomainError):
    """Raised when an operation is not allowed in the current state.

    Invalid status transitions, disabling a SYSTEM role and membership
    operations on already present or absent members raise this error.
    """

    pass


class NotFoundError(DomainError):
    """Raised when a referenced aggregate, parent or target does not exist."""

    pass
