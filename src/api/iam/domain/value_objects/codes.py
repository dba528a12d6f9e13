"""Code value objects for IAM entities.

Codes are short, validated, normalized identifiers chosen by people
(``ENG-PLATFORM``, ``acme``, ``user:read:global``). Unlike ULID identifiers
they carry meaning and must be unique within a tenant or organization.

Every code type validates on construction and raises FormatError listing
all reasons a value was rejected. Values are normalized before validation
and comparison, so ``OrganizationCode("org001") == OrganizationCode("ORG001")``.
Generation helpers only ever return values that pass the same validator.
"""

from __future__ import annotations

import re
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Self

from iam.domain.exceptions import FormatError, ValidationError

GENERIC_RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "admin",
        "administrator",
        "root",
        "system",
        "guest",
        "anonymous",
        "null",
        "undefined",
        "test",
        "demo",
        "example",
        "sample",
    }
)


@dataclass(frozen=True)
class Code:
    """Base class for separator-delimited codes.

    Subclasses configure the rules through class variables. The stored
    ``value`` is always the normalized form.
    """

    value: str

    LABEL: ClassVar[str] = "Code"
    MIN_LENGTH: ClassVar[int] = 3
    MAX_LENGTH: ClassVar[int] = 20
    ALLOWED_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]+$")
    ALLOWED_CHARS_DESCRIPTION: ClassVar[str] = (
        "letters, digits, hyphens and underscores"
    )
    SEPARATORS: ClassVar[str] = "-_"
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS
    GENERATED_ALPHABET: ClassVar[str] = string.ascii_uppercase + string.digits
    DEFAULT_PREFIX: ClassVar[str] = "C"
    DEFAULT_GENERATED_LENGTH: ClassVar[int] = 8
    GENERATION_ATTEMPTS: ClassVar[int] = 100

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise FormatError(f"{self.LABEL} must be a string")
        normalized = self.normalize(self.value)
        reasons = self.validate(normalized)
        if reasons:
            raise FormatError(
                f"Invalid {self.LABEL} '{self.value}': " + "; ".join(reasons)
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def normalize(cls, value: str) -> str:
        """Return the canonical form used for storage and comparison."""
        return value.strip().upper()

    @classmethod
    def validate(cls, value: str) -> list[str]:
        """Collect every reason a normalized value is not a valid code.

        Args:
            value: The already normalized candidate

        Returns:
            Human-readable reasons, empty when the value is valid
        """
        if not value:
            return [f"{cls.LABEL} cannot be empty"]

        reasons: list[str] = []
        if len(value) < cls.MIN_LENGTH:
            reasons.append(
                f"{cls.LABEL} must be at least {cls.MIN_LENGTH} characters long"
            )
        if len(value) > cls.MAX_LENGTH:
            reasons.append(f"{cls.LABEL} cannot exceed {cls.MAX_LENGTH} characters")
        if not cls.ALLOWED_CHARS.fullmatch(value):
            reasons.append(
                f"{cls.LABEL} can only contain {cls.ALLOWED_CHARS_DESCRIPTION}"
            )
        if value[0] in cls.SEPARATORS or value[-1] in cls.SEPARATORS:
            reasons.append(f"{cls.LABEL} cannot start or end with a separator")
        if any(
            a in cls.SEPARATORS and b in cls.SEPARATORS
            for a, b in zip(value, value[1:])
        ):
            reasons.append(f"{cls.LABEL} cannot contain consecutive separators")
        if value.isdigit():
            reasons.append(f"{cls.LABEL} cannot be purely numeric")
        if value.lower() in cls.RESERVED_WORDS:
            reasons.append(f"{cls.LABEL} cannot be a reserved word")
        return reasons

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check whether a raw value would be accepted."""
        if not isinstance(value, str):
            return False
        return not cls.validate(cls.normalize(value))

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Create a code from its string value.

        Raises:
            FormatError: If value is not a valid code
        """
        return cls(value=value)

    @classmethod
    def _random_part(cls, length: int) -> str:
        return "".join(secrets.choice(cls.GENERATED_ALPHABET) for _ in range(length))

    @classmethod
    def _first_valid(cls, make_candidate: Callable[[], str]) -> Self:
        """Return the first candidate that validates.

        Raises:
            ValidationError: If no candidate validates within
                GENERATION_ATTEMPTS tries
        """
        for _ in range(cls.GENERATION_ATTEMPTS):
            candidate = make_candidate()
            if cls.is_valid(candidate):
                return cls(value=candidate)
        raise ValidationError(
            f"Could not generate a valid {cls.LABEL} "
            f"in {cls.GENERATION_ATTEMPTS} attempts"
        )

    @classmethod
    def generate(cls, prefix: str | None = None, length: int | None = None) -> Self:
        """Generate a random code made of a prefix and a random suffix.

        An unusable prefix (empty, non-alphanumeric, or too long to leave
        room for a random part) falls back to the type's default prefix.
        At least one random character always follows the prefix, so a
        length that only fits the prefix is widened by one.

        Args:
            prefix: Leading letters of the code
            length: Total length, clamped into the allowed range

        Returns:
            A new code that passes validation

        Raises:
            ValidationError: If no valid code turns up within
                GENERATION_ATTEMPTS tries
        """
        length = length or cls.DEFAULT_GENERATED_LENGTH
        length = max(cls.MIN_LENGTH, min(length, cls.MAX_LENGTH))
        if not prefix or not prefix.isalnum() or len(prefix) >= length:
            prefix = cls.DEFAULT_PREFIX
        prefix = cls.normalize(prefix)
        length = min(max(length, len(prefix) + 1), cls.MAX_LENGTH)
        return cls._first_valid(
            lambda: prefix + cls._random_part(length - len(prefix))
        )

    @classmethod
    def slugify(cls, name: str) -> str:
        """Reduce free text to the code alphabet.

        Drops unsupported characters, turns whitespace and separator runs
        into a single hyphen and trims separators at both ends.
        """
        cleaned = re.sub(r"[^A-Za-z0-9\s_-]", "", name or "")
        cleaned = re.sub(r"[\s_-]+", cls.SEPARATORS[0], cleaned.strip())
        cleaned = cleaned[: cls.MAX_LENGTH].strip(cls.SEPARATORS)
        return cls.normalize(cleaned)

    @classmethod
    def generate_from_name(cls, name: str) -> Self:
        """Derive a code from a display name.

        When the slug of the name is not a valid code on its own (too short,
        purely numeric or reserved), a random suffix is appended.

        Args:
            name: Display name, e.g. "Platform Engineering"

        Returns:
            A code that passes validation
        """
        slug = cls.slugify(name)
        if slug and cls.is_valid(slug):
            return cls(value=slug)
        if not slug:
            return cls.generate()

        suffix_length = max(3, cls.MIN_LENGTH)
        stem = slug[: cls.MAX_LENGTH - suffix_length - 1].strip(cls.SEPARATORS)

        def candidate() -> str:
            suffix = cls.normalize(cls._random_part(suffix_length))
            return f"{stem}{cls.SEPARATORS[0]}{suffix}" if stem else suffix

        return cls._first_valid(candidate)


@dataclass(frozen=True)
class OrganizationCode(Code):
    """Organization code, unique within a tenant. Stored upper-case."""

    LABEL: ClassVar[str] = "Organization code"
    DEFAULT_PREFIX: ClassVar[str] = "ORG"
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS | {
        "org",
        "organization",
        "company",
        "corp",
        "corporation",
        "inc",
        "llc",
        "ltd",
        "limited",
        "co",
        "group",
        "team",
        "department",
        "division",
        "unit",
        "branch",
        "office",
        "location",
        "site",
        "facility",
    }


@dataclass(frozen=True)
class DepartmentCode(Code):
    """Department code, unique within an organization. Stored upper-case."""

    LABEL: ClassVar[str] = "Department code"
    DEFAULT_PREFIX: ClassVar[str] = "DEPT"
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS | {
        "dept",
        "department",
        "team",
        "group",
        "unit",
        "division",
        "section",
        "branch",
        "office",
        "location",
        "site",
        "facility",
        "hr",
        "it",
        "finance",
        "marketing",
        "sales",
        "operations",
        "legal",
        "compliance",
        "security",
        "audit",
        "quality",
    }


@dataclass(frozen=True)
class RoleCode(Code):
    """Role code, unique within an organization. Stored upper-case."""

    LABEL: ClassVar[str] = "Role code"
    DEFAULT_PREFIX: ClassVar[str] = "ROLE"
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS | {
        "role",
        "user",
        "group",
        "team",
        "member",
        "owner",
        "super",
        "master",
        "primary",
        "secondary",
        "backup",
        "temp",
        "public",
        "private",
        "internal",
        "external",
        "visitor",
        "read",
        "write",
        "execute",
        "delete",
        "create",
        "update",
        "view",
        "edit",
        "manage",
        "control",
        "access",
        "permission",
    }


@dataclass(frozen=True)
class TenantCode(Code):
    """Tenant code, globally unique. Stored lower-case.

    Only letters, digits and single hyphens are allowed.
    """

    LABEL: ClassVar[str] = "Tenant code"
    ALLOWED_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"^[a-z0-9-]+$")
    ALLOWED_CHARS_DESCRIPTION: ClassVar[str] = "letters, digits and hyphens"
    SEPARATORS: ClassVar[str] = "-"
    GENERATED_ALPHABET: ClassVar[str] = string.ascii_lowercase + string.digits
    DEFAULT_PREFIX: ClassVar[str] = "t"

    @classmethod
    def normalize(cls, value: str) -> str:
        return value.strip().lower()


@dataclass(frozen=True)
class PermissionCode(Code):
    """Permission code of the form ``resource[:action[:scope]]``.

    The code keeps its original case. Colons separate the parts; hyphens
    and underscores may appear inside a part.

    Example:
        >>> code = PermissionCode("user:read:global")
        >>> code.get_resource(), code.get_action(), code.get_scope()
        ('user', 'read', 'global')
    """

    LABEL: ClassVar[str] = "Permission code"
    MAX_LENGTH: ClassVar[int] = 50
    ALLOWED_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_:-]+$")
    ALLOWED_CHARS_DESCRIPTION: ClassVar[str] = (
        "letters, digits, hyphens, underscores and colons"
    )
    SEPARATORS: ClassVar[str] = "-_:"
    GENERATED_ALPHABET: ClassVar[str] = string.ascii_lowercase + string.digits
    MAX_PARTS: ClassVar[int] = 3
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS | {
        "permission",
        "access",
        "control",
        "auth",
        "security",
        "user",
        "role",
        "group",
        "team",
        "member",
        "owner",
        "super",
        "master",
        "public",
        "private",
        "internal",
        "external",
        "visitor",
        "read",
        "write",
        "execute",
        "delete",
        "create",
        "update",
        "view",
        "edit",
        "manage",
    }

    @classmethod
    def normalize(cls, value: str) -> str:
        return value.strip()

    @classmethod
    def validate(cls, value: str) -> list[str]:
        reasons = super().validate(value)
        if value and value.count(":") >= cls.MAX_PARTS:
            reasons.append(
                f"{cls.LABEL} can have at most {cls.MAX_PARTS} colon-separated parts"
            )
        return reasons

    def _part(self, index: int) -> str:
        parts = self.value.split(":")
        return parts[index] if index < len(parts) else ""

    def get_resource(self) -> str:
        """Return the resource part, e.g. ``user``."""
        return self._part(0)

    def get_action(self) -> str:
        """Return the action part, or an empty string when absent."""
        return self._part(1)

    def get_scope(self) -> str:
        """Return the scope part, or an empty string when absent."""
        return self._part(2)

    @staticmethod
    def _clean_part(part: str) -> str:
        cleaned = re.sub(r"[^A-Za-z0-9_-]", "", part or "")
        cleaned = re.sub(r"[-_]+", "-", cleaned)
        return cleaned.strip("-")

    @classmethod
    def generate_from_resource(
        cls,
        resource: str,
        action: str,
        scope: str = "global",
    ) -> Self:
        """Build a permission code from its parts.

        Each part is reduced to letters, digits and single hyphens.

        Raises:
            FormatError: If a part is empty after cleaning or the result is invalid
        """
        parts = [cls._clean_part(p) for p in (resource, action, scope)]
        if not all(parts):
            raise FormatError(
                f"{cls.LABEL} parts cannot be empty: "
                f"resource={resource!r}, action={action!r}, scope={scope!r}"
            )
        return cls(value=":".join(parts))

    @classmethod
    def generate(
        cls,
        prefix: str | None = None,
        length: int | None = None,
        *,
        resource: str = "resource",
        action: str = "action",
        scope: str = "scope",
    ) -> Self:
        """Generate a random permission code with a shared random suffix.

        The result looks like ``resource-x1y2:action-x1y2:scope-x1y2``.
        ``prefix`` replaces the resource part when given.
        """
        suffix_length = max(2, min(length or 4, 8))
        part_length = (cls.MAX_LENGTH - 2) // 3 - suffix_length - 1
        parts = []
        for part, default in (
            (prefix or resource, "resource"),
            (action, "action"),
            (scope, "scope"),
        ):
            cleaned = cls._clean_part(part)[:part_length].strip("-")
            parts.append(cleaned or default[:part_length])

        def candidate() -> str:
            suffix = cls._random_part(suffix_length)
            return ":".join(f"{part}-{suffix}" for part in parts)

        return cls._first_valid(candidate)

    @classmethod
    def generate_from_name(cls, name: str) -> Self:
        """Derive a single-part permission code from a display name."""
        slug = cls._clean_part(re.sub(r"\s+", "-", (name or "").strip()))
        slug = slug[: cls.MAX_LENGTH].strip("-").lower()
        if slug and cls.is_valid(slug):
            return cls(value=slug)
        return cls.generate(prefix=slug[:20] or None)

    @classmethod
    def create_read_permission(cls, resource: str, scope: str = "global") -> Self:
        """Create ``<resource>:read:<scope>``."""
        return cls.generate_from_resource(resource, "read", scope)

    @classmethod
    def create_write_permission(cls, resource: str, scope: str = "global") -> Self:
        """Create ``<resource>:write:<scope>``."""
        return cls.generate_from_resource(resource, "write", scope)

    @classmethod
    def create_delete_permission(cls, resource: str, scope: str = "global") -> Self:
        """Create ``<resource>:delete:<scope>``."""
        return cls.generate_from_resource(resource, "delete", scope)

    @classmethod
    def create_execute_permission(cls, resource: str, scope: str = "global") -> Self:
        """Create ``<resource>:execute:<scope>``."""
        return cls.generate_from_resource(resource, "execute", scope)
