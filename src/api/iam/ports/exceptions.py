"""Repository-side exceptions for IAM bounded context.

These exceptions are raised by repository implementations when a write
conflicts with state the domain service could not see. Domain services
propagate them unchanged.
"""

from iam.domain.exceptions import DomainError, UniquenessError


class DuplicateCodeError(UniquenessError):
    """Raised when a save loses the race for a unique code or name.

    The domain services check uniqueness before saving, but the check and
    the write are not atomic. A repository that enforces uniqueness at
    write time raises this error when another writer got there first.
    """

    pass


class ConcurrentModificationError(DomainError):
    """Raised when an entity changed between being read and being saved.

    Repositories serialize writes per entity id. When a write is based on a
    stale read, the repository rejects it with this error and the caller
    may reload and retry.
    """

    pass
