"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token is read from the Authorization header by
extract_bearer_token(), verified by the AuthService on app.state, and the
resulting Identity is attached to request.state.identity for downstream
authorization logic.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.

Missing, malformed, tampered and expired tokens all produce the same 401
body. The specific reason is logged by AuthService, never returned.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import AuthError
from auth.http import extract_bearer_token
from auth.models import Identity
from auth.service import AuthService


def try_get_current_identity(request: Request) -> Identity | None:
    """Authenticate the request via its bearer token.

    Returns the Identity on success, None on any auth failure. Never raises
    for a bad token -- callers that need a hard 401 use get_current_identity().
    """
    token = extract_bearer_token(request.headers)
    if token is None:
        return None
    service: AuthService = request.app.state.auth_service
    try:
        identity = service.authenticate(token)
    except AuthError:
        return None
    request.state.identity = identity
    return identity


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "invalid_token", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
