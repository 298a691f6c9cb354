"""
api/main.py -- FastAPI application factory for tokengate.

Run with:  uvicorn asgi:app --reload

create_app() takes its Settings explicitly and builds the AuthService before
returning. A bad signing configuration therefore raises ConfigurationError
while the app is being constructed, never on a request.

Lifespan handles shutdown symmetrically: a UserStore created here is closed
here; a store passed in by the caller is the caller's to close.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.errors import AuthError, InternalLookupFailure, InvalidCredentials, InvalidSignature, TokenExpired
from auth.hooks import PostVerificationHook
from auth.service import AuthService
from auth.store import UserLookup, UserStore
from core.config import Settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tokengate.api")

# Status and client-facing body per rejection. Expired and tampered tokens
# share one body: the difference is logged, not returned.
_AUTH_ERROR_RESPONSES: dict[type[AuthError], tuple[int, str, str]] = {
    InvalidCredentials: (401, "bad_credentials", "Invalid identifier or secret."),
    InternalLookupFailure: (503, "lookup_failed", "Login is temporarily unavailable."),
    InvalidSignature: (401, "invalid_token", "Authentication required."),
    TokenExpired: (401, "invalid_token", "Authentication required."),
}


def create_app(
    settings: Settings,
    user_store: UserLookup | None = None,
    hooks: Sequence[PostVerificationHook] = (),
) -> FastAPI:
    """Build the ASGI app around an explicitly supplied configuration.

    Args:
        settings:   Process settings. Signing config is derived from these once.
        user_store: Any UserLookup. If None, a UserStore is opened on
                    settings.database_url and closed on shutdown.
        hooks:      Post-verification hooks, run in order after every
                    successful token verification.
    """
    owns_store = user_store is None
    store: UserLookup = UserStore(settings.database_url) if owns_store else user_store
    try:
        auth_service = AuthService.from_settings(settings, store, hooks=hooks)
    except ValueError:
        if owns_store:
            store.close()
        raise

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("tokengate API starting up (secret_scheme=%s)", settings.secret_scheme)
        yield
        if owns_store:
            store.close()
        logger.info("tokengate API shutdown complete")

    app = FastAPI(
        title="tokengate API",
        description="Credential login and stateless bearer-token authentication.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.user_store = store
    app.state.auth_service = auth_service

    # -----------------------------------------------------------------------
    # Request logging middleware
    #
    # Every request passes through this coroutine before reaching a route
    # handler. Headers are never logged -- they carry bearer tokens.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope so API clients can
    # parse errors uniformly without inspecting status codes.
    # -----------------------------------------------------------------------

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        status_code, code, message = _AUTH_ERROR_RESPONSES.get(
            type(exc),
            (401, "invalid_token", "Authentication required."),
        )
        headers = {"Cache-Control": "no-store"}
        if status_code == 401:
            headers["WWW-Authenticate"] = "Bearer"
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when the request body fails validation.

        Only field locations and messages are echoed. Submitted values are
        left out because a login body contains the secret.
        """
        errors = [{"loc": e.get("loc"), "msg": e.get("msg")} for e in exc.errors()]
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="validation_error",
                    message="Request validation failed.",
                    detail=str(errors),
                )
            ).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        When detail is already a structured dict, use it directly as the
        error field rather than stringifying it.
        """
        if isinstance(exc.detail, dict):
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.detail},
                headers=exc.headers,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(
                    code=f"http_{exc.status_code}",
                    message=str(exc.detail),
                )
            ).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception goes to the log only, never to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="internal_error",
                    message="An unexpected error occurred.",
                )
            ).model_dump(),
        )

    # -----------------------------------------------------------------------
    # Health endpoint
    # -----------------------------------------------------------------------

    @app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
    async def health() -> HealthResponse:
        """Return API liveness and current version."""
        return HealthResponse(version=VERSION)

    return app
