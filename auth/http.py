"""HTTP auth helpers."""

from __future__ import annotations

from collections.abc import Mapping


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Works on any mapping: a plain dict (header names matched
    case-insensitively) or Starlette's ``Headers``. Returns None when the
    header is missing, uses another scheme, or carries an empty token.
    """
    authorization = headers.get("authorization")
    if authorization is None:
        authorization = next((v for k, v in headers.items() if k.lower() == "authorization"), None)
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
