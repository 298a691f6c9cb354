"""
auth/passwords.py -- Secret comparison strategies for credential validation.

Two stored forms are supported, chosen by Settings.secret_scheme:

  plain:  the user store holds the secret itself. Comparison is exact
          equality via hmac.compare_digest (same result as ==, but the time
          taken does not depend on where the strings first differ).

  bcrypt: the user store holds a bcrypt hash (direct bcrypt usage, no
          passlib wrapper). Use hash_password() when seeding the store.

Each matcher exposes a dummy_stored value. When an identifier is unknown
the validator still runs one comparison against it, so the unknown-user and
wrong-secret paths cost the same.
"""

from __future__ import annotations

import hmac
from typing import Protocol

import bcrypt


BCRYPT_MAX_BYTES = 72


def _secret_bytes(value: str) -> bytes:
    # surrogatepass: argv decoded with surrogateescape must still compare, not raise.
    return value.encode("utf-8", errors="surrogatepass")


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext secret.

    Raises ValueError for secrets longer than 72 bytes once UTF-8 encoded.
    bcrypt only looks at the first 72 bytes, and newer bcrypt releases
    refuse longer input outright.
    """
    secret = _secret_bytes(plain)
    if len(secret) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Secret is {len(secret)} bytes; bcrypt accepts at most {BCRYPT_MAX_BYTES}.")
    return bcrypt.hashpw(secret, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext secret matches the bcrypt hash.

    A stored value that is not a valid bcrypt hash is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(_secret_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


class SecretMatcher(Protocol):
    dummy_stored: str

    def matches(self, provided: str, stored: str) -> bool: ...


class PlaintextMatcher:
    """Exact comparison against a directly comparable stored secret."""

    dummy_stored = "tokengate-timing-dummy"

    def matches(self, provided: str, stored: str) -> bool:
        return hmac.compare_digest(_secret_bytes(provided), _secret_bytes(stored))


class BcryptMatcher:
    """Comparison against a bcrypt-hashed stored secret."""

    def __init__(self) -> None:
        # Computed once so the first failed login is not measurably slower.
        self.dummy_stored = hash_password("tokengate-timing-dummy")

    def matches(self, provided: str, stored: str) -> bool:
        return verify_password(provided, stored)


def matcher_for_scheme(scheme: str) -> SecretMatcher:
    if scheme == "plain":
        return PlaintextMatcher()
    if scheme == "bcrypt":
        return BcryptMatcher()
    raise ValueError(f"Unknown secret scheme: {scheme!r}")


def stored_form(scheme: str, plain: str) -> str:
    """Return the value to persist for a new secret under the given scheme."""
    return hash_password(plain) if scheme == "bcrypt" else plain
