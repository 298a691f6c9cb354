"""
auth/tokens.py -- JWT issue and verification.

Security design decisions:
  JWT: python-jose with an HMAC algorithm (HS256 by default). The signing
       secret, algorithm and lifetime come from a SigningConfig passed to the
       constructor. Nothing here reads settings or globals, so one process can
       hold several independently configured services (tests do).

  Verification order: signature first, expiry second, hooks last. Each step
       short-circuits with its own typed rejection. jose's built-in "exp"
       check is switched off so the expiry rule lives in one place and runs
       against the injected clock: a token is expired once now >= exp.

  Timestamps: JWT NumericDate has whole-second resolution. iat is rounded
       down and exp is rounded UP from the exact now + lifetime, so a token
       is never accepted for less than its configured lifetime.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from auth.errors import InvalidSignature, TokenExpired
from auth.hooks import PostVerificationHook
from auth.models import AuthenticatedPrincipal, Identity, IssuedToken, TokenClaims
from core.config import ConfigurationError, SigningConfig

logger = logging.getLogger("tokengate.auth.tokens")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _numeric_date(value: Any) -> datetime | None:
    # bool is an int subclass; True is not a timestamp.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class TokenService:
    """Issues signed access tokens and verifies them on later requests.

    Immutable after construction and safe to share across threads.
    """

    def __init__(
        self,
        config: SigningConfig,
        hooks: Sequence[PostVerificationHook] = (),
        now: Clock = _utcnow,
    ) -> None:
        self._config = config
        self._hooks = tuple(hooks)
        self._now = now

    @property
    def expires_in_seconds(self) -> int:
        return int(self._config.expires_in.total_seconds())

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, principal: AuthenticatedPrincipal) -> IssuedToken:
        """Sign a fresh token for a validated principal."""
        if not principal.identifier or not principal.subject_id:
            raise ValueError("Principal must carry both identifier and subject_id.")

        now = self._now()
        issued_at = now.replace(microsecond=0)
        expires_at = datetime.fromtimestamp(math.ceil((now + self._config.expires_in).timestamp()), timezone.utc)
        payload: dict[str, Any] = {
            "name": principal.identifier,
            "sub": str(principal.subject_id),
            "iat": issued_at,
            "exp": expires_at,
        }
        if principal.display_name:
            payload["display_name"] = principal.display_name

        try:
            token = jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)
        except JOSEError as exc:
            raise ConfigurationError(f"Could not sign token with algorithm {self._config.algorithm!r}") from exc

        logger.debug("Issued token for subject %s (expires %s)", principal.subject_id, expires_at.isoformat())
        return IssuedToken(
            access_token=token,
            identifier=principal.identifier,
            display_name=principal.display_name,
            expires_in=self.expires_in_seconds,
        )

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, raw_token: str) -> Identity:
        """Verify a bearer token and return the caller's identity.

        Raises InvalidSignature for a malformed or tampered token and
        TokenExpired for a valid token past its expiry. Hooks may raise
        other AuthError subclasses.
        """
        claims = self._decode(raw_token)

        # Mandatory even though the signature already passed.
        if self._now() >= claims.expires_at:
            raise TokenExpired()

        identity = Identity(subject_id=claims.subject_id, identifier=claims.identifier)
        for hook in self._hooks:
            identity = hook(claims, identity)
        return identity

    def _decode(self, raw_token: str) -> TokenClaims:
        if not isinstance(raw_token, str) or not raw_token:
            raise InvalidSignature("Token is empty or not a string.")
        try:
            payload = jwt.decode(
                raw_token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidSignature() from exc
        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims:
    """Map a verified JWT payload to TokenClaims; reject incomplete payloads."""
    name = payload.get("name")
    subject = payload.get("sub")
    issued_at = _numeric_date(payload.get("iat"))
    expires_at = _numeric_date(payload.get("exp"))
    if not isinstance(name, str) or not name or not isinstance(subject, str) or not subject:
        raise InvalidSignature("Token is missing identity claims.")
    if issued_at is None or expires_at is None:
        raise InvalidSignature("Token is missing time claims.")
    display_name = payload.get("display_name")
    return TokenClaims(
        identifier=name,
        subject_id=subject,
        issued_at=issued_at,
        expires_at=expires_at,
        display_name=display_name if isinstance(display_name, str) else None,
    )
