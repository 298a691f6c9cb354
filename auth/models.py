"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the validator
and the token service do the work.

Only UserRecord carries a secret. Everything derived from it is built by
AuthenticatedPrincipal.from_record(), which has no secret field to copy into.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class UserRecord:
    """A user as stored by the user store.

    secret is in the store's stored form: directly comparable under the
    "plain" scheme, a bcrypt hash under the "bcrypt" scheme.
    attributes holds any other per-user data; the auth core never reads it.
    """

    identifier: str
    secret: str
    subject_id: str
    display_name: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    created_at: str | None = None


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """A UserRecord that passed credential validation, minus its secret."""

    subject_id: str
    identifier: str
    display_name: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: UserRecord) -> AuthenticatedPrincipal:
        return cls(
            subject_id=record.subject_id,
            identifier=record.identifier,
            display_name=record.display_name,
            attributes=dict(record.attributes),
        )


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims embedded in a signed token.

    Wire names: identifier -> "name", subject_id -> "sub",
    issued_at -> "iat", expires_at -> "exp", display_name -> "display_name".
    """

    identifier: str
    subject_id: str
    issued_at: datetime
    expires_at: datetime
    display_name: str | None = None


@dataclass(frozen=True)
class IssuedToken:
    """Login result: the opaque bearer string plus echoed identity fields."""

    access_token: str
    identifier: str
    display_name: str | None
    expires_in: int  # seconds


@dataclass(frozen=True)
class Identity:
    """Normalized caller identity attached to an authenticated request."""

    subject_id: str
    identifier: str
