"""Authentication token value object."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import ClassVar

from iam.domain.exceptions import FormatError

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class TokenType(StrEnum):
    """Kinds of tokens issued to users and integrations."""

    JWT = "jwt"
    ACCESS = "access"
    REFRESH = "refresh"
    API = "api"
    SESSION = "session"


def _default_expiry() -> datetime:
    return datetime.now(UTC) + DEFAULT_TOKEN_LIFETIME


@dataclass(frozen=True)
class AuthToken:
    """Opaque bearer token with an expiry.

    Business rules:
    - Value must be 32-512 characters of letters, digits, ``-``, ``_``, ``.``
      or ``=`` (base64url and JWT alphabets)
    - Value cannot be purely numeric
    - Expiry defaults to 24 hours from creation

    Equality only considers the token value.
    """

    value: str
    type: TokenType = field(default=TokenType.JWT, compare=False)
    expires_at: datetime = field(default_factory=_default_expiry, compare=False)

    MIN_LENGTH: ClassVar[int] = 32
    MAX_LENGTH: ClassVar[int] = 512
    ALLOWED_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"[A-Za-z0-9\-_.=]+")

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise FormatError("Auth token must be a string")
        value = self.value.strip()
        reasons = self.validate(value)
        if reasons:
            raise FormatError("Invalid auth token: " + "; ".join(reasons))
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "type", TokenType(self.type))

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def validate(cls, value: str) -> list[str]:
        """Collect every reason a token value is rejected."""
        if not value:
            return ["Auth token cannot be empty"]
        reasons = []
        if len(value) < cls.MIN_LENGTH:
            reasons.append(
                f"Auth token must be at least {cls.MIN_LENGTH} characters long"
            )
        if len(value) > cls.MAX_LENGTH:
            reasons.append(f"Auth token cannot exceed {cls.MAX_LENGTH} characters")
        if not cls.ALLOWED_CHARS.fullmatch(value):
            reasons.append(
                "Auth token can only contain letters, digits, '-', '_', '.' and '='"
            )
        if value.isdigit():
            reasons.append("Auth token cannot be purely numeric")
        return reasons

    @classmethod
    def from_string(
        cls,
        value: str,
        token_type: TokenType = TokenType.JWT,
        expires_at: datetime | None = None,
    ) -> AuthToken:
        """Wrap an existing token value."""
        return cls(
            value=value,
            type=token_type,
            expires_at=expires_at or _default_expiry(),
        )

    @classmethod
    def generate(
        cls,
        token_type: TokenType = TokenType.JWT,
        expires_in_minutes: int = 1440,
    ) -> AuthToken:
        """Generate a random three-segment token.

        Args:
            token_type: Kind of token
            expires_in_minutes: Lifetime from now

        Returns:
            A new AuthToken
        """
        alphabet = string.ascii_letters + string.digits
        segments = (
            "".join(secrets.choice(alphabet) for _ in range(size))
            for size in (8, 16, 8)
        )
        return cls(
            value=".".join(segments),
            type=token_type,
            expires_at=datetime.now(UTC) + timedelta(minutes=expires_in_minutes),
        )

    @classmethod
    def generate_access_token(cls, expires_in_minutes: int = 60) -> AuthToken:
        return cls.generate(TokenType.ACCESS, expires_in_minutes)

    @classmethod
    def generate_refresh_token(cls, expires_in_minutes: int = 1440) -> AuthToken:
        return cls.generate(TokenType.REFRESH, expires_in_minutes)

    @classmethod
    def generate_api_token(cls, expires_in_minutes: int = 1440) -> AuthToken:
        return cls.generate(TokenType.API, expires_in_minutes)

    @classmethod
    def generate_session_token(cls, expires_in_minutes: int = 480) -> AuthToken:
        return cls.generate(TokenType.SESSION, expires_in_minutes)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the expiry has passed."""
        return (now or datetime.now(UTC)) > self.expires_at

    def is_expiring_soon(self, minutes: int = 30, now: datetime | None = None) -> bool:
        """Check whether the token expires within the given number of minutes."""
        now = now or datetime.now(UTC)
        return now > self.expires_at - timedelta(minutes=minutes)

    def remaining_time(self, now: datetime | None = None) -> timedelta:
        """Time left before expiry, never negative."""
        remaining = self.expires_at - (now or datetime.now(UTC))
        return max(remaining, timedelta(0))

    def remaining_minutes(self, now: datetime | None = None) -> int:
        """Whole minutes left before expiry."""
        return int(self.remaining_time(now).total_seconds() // 60)
