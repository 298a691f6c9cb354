"""
auth/errors.py -- Typed rejections raised by the auth core.

Every request-time failure is one of these. Each carries a stable `code` so
the API layer can render it without inspecting the exception type.

InvalidSignature and TokenExpired stay separate here so logs can tell them
apart; the API layer renders both as the same "invalid_token" response.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication rejections."""

    code: str = "auth_error"
    message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InvalidCredentials(AuthError):
    """Unknown identifier or wrong secret -- deliberately indistinguishable."""

    code = "bad_credentials"
    message = "Invalid credentials."


class InternalLookupFailure(AuthError):
    """The user store failed while looking up a login identifier."""

    code = "lookup_failed"
    message = "User lookup is temporarily unavailable."


class InvalidSignature(AuthError):
    """Token is malformed, tampered with, or signed with another key."""

    code = "invalid_signature"
    message = "Token signature is invalid."


class TokenExpired(AuthError):
    """Token is well-formed and validly signed, but past its expiry."""

    code = "token_expired"
    message = "Token has expired."
