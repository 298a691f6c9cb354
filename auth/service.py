"""
auth/service.py -- Login and request authentication, composed.

AuthService is what the API layer and the CLI talk to:
  login(identifier, secret)  -> CredentialValidator, then TokenService.issue
  authenticate(raw_token)    -> TokenService.verify

Error policy:
  No matching user / wrong secret   -> InvalidCredentials (one shape for both)
  User store raised                 -> InternalLookupFailure, chained to the
                                       original error and logged with traceback
  Bad / expired token               -> InvalidSignature / TokenExpired, logged
                                       with the reason so operators can tell
                                       them apart even though clients cannot

Nothing is retried. The caller decides whether to try again.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from auth.credentials import CredentialValidator
from auth.errors import AuthError, InternalLookupFailure, InvalidCredentials
from auth.hooks import PostVerificationHook
from auth.models import Identity, IssuedToken
from auth.passwords import matcher_for_scheme
from auth.store import UserLookup
from auth.tokens import TokenService
from core.config import Settings, SigningConfig

logger = logging.getLogger("tokengate.auth")


class AuthService:
    def __init__(self, validator: CredentialValidator, tokens: TokenService) -> None:
        self.validator = validator
        self.tokens = tokens

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        lookup: UserLookup,
        hooks: Sequence[PostVerificationHook] = (),
    ) -> AuthService:
        """Wire a service from process settings.

        Raises ConfigurationError if the signing settings are unusable, so a
        bad config fails here, at startup, rather than on the first request.
        """
        config = SigningConfig.from_settings(settings)
        validator = CredentialValidator(lookup, matcher_for_scheme(settings.secret_scheme))
        return cls(validator, TokenService(config, hooks=hooks))

    def login(self, identifier: str, secret: str) -> IssuedToken:
        """Validate credentials and issue an access token."""
        try:
            principal = self.validator.validate(identifier, secret)
        except Exception as exc:
            logger.exception("User lookup failed during login")
            raise InternalLookupFailure() from exc
        if principal is None:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()
        issued = self.tokens.issue(principal)
        logger.info("Login succeeded for subject %s", principal.subject_id)
        return issued

    def authenticate(self, raw_token: str) -> Identity:
        """Verify a bearer token and return the caller identity."""
        try:
            return self.tokens.verify(raw_token)
        except AuthError as exc:
            logger.info("Token rejected: %s", exc.code)
            raise
