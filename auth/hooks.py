"""
auth/hooks.py -- Extension point run after a token passes verification.

TokenService.verify() calls each registered hook, in order, once the
signature and expiry checks have both passed. A hook receives the decoded
claims and the identity built so far, and either returns an identity (the
same one, or a replacement) or raises an AuthError subclass to reject the
token.

Typical uses are a revocation-list lookup or enriching the identity from
another source. Hooks may perform I/O, so callers must not assume verify()
is free of it.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import Identity, TokenClaims


class PostVerificationHook(Protocol):
    def __call__(self, claims: TokenClaims, identity: Identity) -> Identity: ...
