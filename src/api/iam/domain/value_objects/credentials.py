"""Credential value objects for the User entity.

Username, Email and Password validate on construction and raise
FormatError with every reason the value was rejected.
"""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from typing import ClassVar, Self

import bcrypt

from iam.domain.exceptions import FormatError, ValidationError
from iam.domain.value_objects.codes import GENERIC_RESERVED_WORDS, Code


@dataclass(frozen=True)
class Username(Code):
    """Login name, unique per tenant. Stored lower-case."""

    LABEL: ClassVar[str] = "Username"
    MAX_LENGTH: ClassVar[int] = 30
    ALLOWED_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"^[a-z0-9_-]+$")
    GENERATED_ALPHABET: ClassVar[str] = string.ascii_lowercase + string.digits
    DEFAULT_PREFIX: ClassVar[str] = "user"
    RESERVED_WORDS: ClassVar[frozenset[str]] = GENERIC_RESERVED_WORDS | {
        "user",
        "username",
        "login",
        "signin",
        "signup",
        "register",
        "account",
        "profile",
        "settings",
        "config",
        "help",
        "support",
    }

    @classmethod
    def normalize(cls, value: str) -> str:
        return value.strip().lower()

    @classmethod
    def from_email(cls, email: str | Email) -> Self:
        """Derive a username from the local part of an email address."""
        address = email if isinstance(email, Email) else Email(email)
        return cls.generate_from_name(address.local_part)


DISPOSABLE_EMAIL_DOMAINS: frozenset[str] = frozenset(
    {
        "10minutemail.com",
        "guerrillamail.com",
        "guerrillamail.net",
        "guerrillamail.org",
        "guerrillamailblock.com",
        "mailinator.com",
        "tempmail.org",
        "temp-mail.org",
        "throwaway.email",
        "yopmail.com",
        "sharklasers.com",
        "grr.la",
        "pokemail.net",
        "spam4.me",
        "dispostable.com",
        "fakeinbox.com",
        "getnada.com",
        "mailnesia.com",
        "mytrashmail.com",
        "tmpmail.net",
        "tmpmail.org",
        "trashmail.com",
        "trashmail.net",
        "wegwerfemail.de",
    }
)

PERSONAL_EMAIL_DOMAINS: frozenset[str] = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "live.com",
        "msn.com",
        "aol.com",
        "icloud.com",
        "me.com",
        "mac.com",
        "qq.com",
        "163.com",
        "126.com",
        "sina.com",
        "foxmail.com",
        "yeah.net",
    }
)

_EMAIL_LOCAL_CHARS = re.compile(r"[a-z0-9.!#$%&'*+/=?^_`{|}~-]+")
_EMAIL_DOMAIN_CHARS = re.compile(r"[a-z0-9.-]+")


@dataclass(frozen=True)
class Email:
    """Email address. Stored lower-case; equality ignores case."""

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    MAX_LOCAL_LENGTH: ClassVar[int] = 64
    MAX_DOMAIN_LENGTH: ClassVar[int] = 253
    MAX_LABEL_LENGTH: ClassVar[int] = 63

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise FormatError("Email must be a string")
        normalized = self.value.strip().lower()
        reasons = self.validate(normalized)
        if reasons:
            raise FormatError(f"Invalid email '{self.value}': " + "; ".join(reasons))
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def validate(cls, value: str) -> list[str]:
        """Collect every reason a lower-cased address is invalid."""
        if not value:
            return ["Email cannot be empty"]
        if len(value) > cls.MAX_LENGTH:
            return [f"Email cannot exceed {cls.MAX_LENGTH} characters"]
        if value.count("@") != 1:
            return ["Email must contain exactly one @ symbol"]

        local, domain = value.split("@")
        return cls._validate_local_part(local) + cls._validate_domain(domain)

    @classmethod
    def _validate_local_part(cls, local: str) -> list[str]:
        if not local:
            return ["Email local part cannot be empty"]
        reasons = []
        if len(local) > cls.MAX_LOCAL_LENGTH:
            reasons.append(
                f"Email local part cannot exceed {cls.MAX_LOCAL_LENGTH} characters"
            )
        if local.startswith(".") or local.endswith("."):
            reasons.append("Email local part cannot start or end with a dot")
        if ".." in local:
            reasons.append("Email local part cannot contain consecutive dots")
        if not _EMAIL_LOCAL_CHARS.fullmatch(local):
            reasons.append("Email local part contains invalid characters")
        return reasons

    @classmethod
    def _validate_domain(cls, domain: str) -> list[str]:
        if not domain:
            return ["Email domain cannot be empty"]
        reasons = []
        if len(domain) > cls.MAX_DOMAIN_LENGTH:
            reasons.append(
                f"Email domain cannot exceed {cls.MAX_DOMAIN_LENGTH} characters"
            )
        if not _EMAIL_DOMAIN_CHARS.fullmatch(domain):
            reasons.append("Email domain contains invalid characters")
        labels = domain.split(".")
        if len(labels) < 2:
            reasons.append("Email domain must contain at least one dot")
        elif len(labels[-1]) < 2:
            reasons.append("Email top-level domain must be at least 2 characters")
        if any(not label for label in labels):
            reasons.append("Email domain cannot contain empty labels")
        if any(len(label) > cls.MAX_LABEL_LENGTH for label in labels):
            reasons.append(
                f"Email domain labels cannot exceed {cls.MAX_LABEL_LENGTH} characters"
            )
        if any(label.startswith("-") or label.endswith("-") for label in labels):
            reasons.append("Email domain labels cannot start or end with a hyphen")
        return reasons

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check whether a raw value would be accepted."""
        return isinstance(value, str) and not cls.validate(value.strip().lower())

    @classmethod
    def from_string(cls, value: str) -> Email:
        """Create an Email from its string value."""
        return cls(value=value)

    @classmethod
    def extract_domain(cls, value: str) -> str | None:
        """Return the domain of a valid address, or None."""
        return cls(value).domain if cls.is_valid(value) else None

    @classmethod
    def extract_local_part(cls, value: str) -> str | None:
        """Return the local part of a valid address, or None."""
        return cls(value).local_part if cls.is_valid(value) else None

    @property
    def local_part(self) -> str:
        return self.value.split("@")[0]

    @property
    def domain(self) -> str:
        return self.value.split("@")[1]

    def is_disposable(self) -> bool:
        """Check whether the address belongs to a throwaway mail provider."""
        return self.domain in DISPOSABLE_EMAIL_DOMAINS

    def is_corporate(self) -> bool:
        """Check whether the address is not from a personal mail provider."""
        return self.domain not in PERSONAL_EMAIL_DOMAINS

    def domain_info(self) -> dict[str, str | bool]:
        """Summarize the domain for audit and onboarding decisions."""
        return {
            "domain": self.domain,
            "is_disposable": self.is_disposable(),
            "is_corporate": self.is_corporate(),
        }


class PasswordStrength(StrEnum):
    """Three-level password strength classification."""

    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


COMMON_PASSWORDS: frozenset[str] = frozenset(
    {
        "password",
        "password1",
        "password123",
        "123456",
        "123456789",
        "1234567",
        "12345678",
        "qwerty",
        "qwerty123",
        "abc123",
        "admin",
        "admin123",
        "letmein",
        "welcome",
        "welcome1",
        "monkey",
        "dragon",
        "master",
        "hello",
        "hello123",
        "freedom",
        "whatever",
        "trustno1",
        "sunshine",
        "iloveyou",
        "football",
        "baseball",
        "princess",
        "starwars",
        "passw0rd",
    }
)

KEYBOARD_SEQUENCES: tuple[str, ...] = (
    "qwerty",
    "asdfgh",
    "zxcvbn",
    "123456",
    "654321",
    "abcdef",
    "fedcba",
    "qazwsx",
    "edcrfv",
    "tgbyhn",
    "ujmikl",
    "plokij",
    "mnbvcx",
    "lkjhgf",
    "poiuyt",
    "rewq",
    "asdf",
    "zxcv",
    "qwe",
    "asd",
    "zxc",
)

_REPEATED_RUN = re.compile(r"(.)\1{2,}")
_COMMON_PATTERNS = (
    _REPEATED_RUN,
    re.compile(r"(.)(.)\1\2"),
    re.compile(r"(.)(.)(.)\1\2\3"),
)
_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# bcrypt only reads the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Password:
    """Plain-text password with policy validation and strength scoring.

    The hash is a placeholder computed lazily with bcrypt. Persisted users
    carry the hash, never this value object.
    """

    value: str = field(repr=False)

    MIN_LENGTH: ClassVar[int] = 8
    MAX_LENGTH: ClassVar[int] = 128
    GENERATION_ATTEMPTS: ClassVar[int] = 100

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise FormatError("Password must be a string")
        reasons = self.validate(self.value)
        if reasons:
            raise FormatError("Invalid password: " + "; ".join(reasons))

    def __str__(self) -> str:
        """Return a masked representation."""
        return "*" * 8

    @classmethod
    def validate(cls, value: str) -> list[str]:
        """Collect every policy rule the value breaks."""
        if not value:
            return ["Password cannot be empty"]
        reasons = []
        if len(value) < cls.MIN_LENGTH:
            reasons.append(
                f"Password must be at least {cls.MIN_LENGTH} characters long"
            )
        if len(value) > cls.MAX_LENGTH:
            reasons.append(f"Password cannot exceed {cls.MAX_LENGTH} characters")
        if not re.search(r"[a-z]", value):
            reasons.append("Password must contain a lowercase letter")
        if not re.search(r"[A-Z]", value):
            reasons.append("Password must contain an uppercase letter")
        if not re.search(r"[0-9]", value):
            reasons.append("Password must contain a digit")
        if value.lower() in COMMON_PASSWORDS:
            reasons.append("Password is too common")
        if _REPEATED_RUN.search(value):
            reasons.append("Password cannot repeat a character three times in a row")
        if cls._has_keyboard_sequence(value):
            reasons.append("Password cannot contain keyboard sequences")
        return reasons

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check whether a raw value satisfies the password policy."""
        return isinstance(value, str) and not cls.validate(value)

    @staticmethod
    def _has_keyboard_sequence(value: str) -> bool:
        lowered = value.lower()
        return any(sequence in lowered for sequence in KEYBOARD_SEQUENCES)

    @classmethod
    def from_string(cls, value: str) -> Password:
        """Create a Password from its plain-text value."""
        return cls(value=value)

    @classmethod
    def generate(cls, length: int = 16, include_special_chars: bool = True) -> Password:
        """Generate a random password that satisfies the policy.

        Args:
            length: Total length; values outside 8-128 fall back to 16
            include_special_chars: Whether to mix in punctuation

        Returns:
            A new valid Password
        """
        if length < cls.MIN_LENGTH or length > cls.MAX_LENGTH:
            length = 16
        alphabet = string.ascii_letters + string.digits
        required = [
            secrets.choice(string.ascii_lowercase),
            secrets.choice(string.ascii_uppercase),
            secrets.choice(string.digits),
        ]
        if include_special_chars:
            alphabet += _SPECIAL_CHARACTERS
            required.append(secrets.choice(_SPECIAL_CHARACTERS))

        for _ in range(cls.GENERATION_ATTEMPTS):
            chars = required + [
                secrets.choice(alphabet) for _ in range(length - len(required))
            ]
            secrets.SystemRandom().shuffle(chars)
            candidate = "".join(chars)
            if cls.is_valid(candidate):
                return cls(value=candidate)
        raise ValidationError(
            f"Could not generate a valid password in {cls.GENERATION_ATTEMPTS} attempts"
        )

    @cached_property
    def hashed_value(self) -> str:
        """bcrypt hash of the password."""
        return bcrypt.hashpw(
            self.value.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt()
        ).decode("utf-8")

    def verify(self, plain_password: str) -> bool:
        """Check a plain-text candidate against this password's hash."""
        return self.verify_hash(plain_password, self.hashed_value)

    @staticmethod
    def verify_hash(plain_password: str, hashed_value: str) -> bool:
        """Check a plain-text candidate against a stored bcrypt hash."""
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
            hashed_value.encode("utf-8"),
        )

    def strength(self) -> int:
        """Score the password from 0 to 100."""
        value = self.value
        score = 0
        score += 10 * sum(len(value) >= n for n in (8, 12, 16))
        score += 10 * sum(
            bool(re.search(pattern, value))
            for pattern in (r"[a-z]", r"[A-Z]", r"[0-9]", r"[^a-zA-Z0-9]")
        )
        score += min(len(set(value)) * 2, 20)
        if any(pattern.search(value) for pattern in _COMMON_PATTERNS):
            score -= 20
        if self._has_keyboard_sequence(value):
            score -= 15
        if _REPEATED_RUN.search(value):
            score -= 10
        return max(0, min(100, score))

    def strength_level(self) -> PasswordStrength:
        score = self.strength()
        if score < 40:
            return PasswordStrength.WEAK
        if score < 70:
            return PasswordStrength.MEDIUM
        return PasswordStrength.STRONG

    def is_strong(self) -> bool:
        return self.strength_level() is PasswordStrength.STRONG

    def is_weak(self) -> bool:
        return self.strength_level() is PasswordStrength.WEAK
