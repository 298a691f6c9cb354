"""
auth/credentials.py -- Credential validation against the user store.

validate() returns the principal on success and None on ANY credential
failure. Unknown identifier and wrong secret both produce None, so nothing
downstream can use the result to discover which identifiers exist.

Lookup errors are not caught here. A store failure is not "invalid
credentials" and must reach the caller as the store raised it.
"""

from __future__ import annotations

import logging

from auth.models import AuthenticatedPrincipal
from auth.passwords import PlaintextMatcher, SecretMatcher
from auth.store import UserLookup

logger = logging.getLogger("tokengate.auth.credentials")


class CredentialValidator:
    def __init__(self, lookup: UserLookup, matcher: SecretMatcher | None = None) -> None:
        self._lookup = lookup
        self._matcher = matcher if matcher is not None else PlaintextMatcher()

    def validate(self, identifier: str, secret: str) -> AuthenticatedPrincipal | None:
        """Check an (identifier, secret) pair.

        Returns the matching user with the secret stripped, or None.
        """
        record = self._lookup.find_user_by_identifier(identifier)
        if record is None:
            # Equalize timing -- run one comparison even with nothing to compare against.
            self._matcher.matches(secret, self._matcher.dummy_stored)
            logger.debug("Credential check failed: unknown identifier")
            return None
        if not self._matcher.matches(secret, record.secret):
            logger.debug("Credential check failed: secret mismatch")
            return None
        return AuthenticatedPrincipal.from_record(record)
