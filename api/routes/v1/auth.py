"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/login   -- credential login; returns a bearer token
  GET  /api/v1/auth/me      -- identity carried by the bearer token (requires auth)

Security:
  Login failures return the same "bad_credentials" error whether or not the
  identifier exists. AuthError subclasses raised here are rendered by the
  exception handler in api/main.py.
  Cache-Control: no-store on login responses so tokens are never cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import IdentityResponse, LoginRequest, LoginResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:    requires auth (get_current_identity)
router = APIRouter()


# Sync handler on purpose: FastAPI runs it in the thread pool, so a slow
# user-store lookup never blocks the event loop.
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with identifier and secret; return a bearer token."""
    service: AuthService = request.app.state.auth_service
    issued = service.login(body.identifier, body.secret)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=issued.access_token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issued.expires_in,
            identifier=issued.identifier,
            display_name=issued.display_name,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=IdentityResponse)
async def me(identity: Identity = Depends(get_current_identity)) -> IdentityResponse:
    """Return the identity carried by the caller's bearer token."""
    return IdentityResponse(subject_id=identity.subject_id, identifier=identity.identifier)
