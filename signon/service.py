"""HTTP API for Google sign-on."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from .auth import AuthService
from .config import Settings, load_settings
from .database import Database, resolve_database_path
from .errors import AuthError, InternalError
from .google import GoogleIdentityProvider, IdentityProvider
from .models import User
from .security import SessionAuth
from .sessions import SessionIssuer

logger = logging.getLogger("signon.service")


async def _read_json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        return {}
    try:
        return await request.json()
    except ValueError:
        return {}


def register_auth_routes(app: FastAPI, service: AuthService, *, session_auth: SessionAuth) -> None:
    """Expose the signup, login, and session endpoints on ``app``."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/signup")
    async def signup(request: Request) -> Dict[str, Any]:
        result = await service.signup(await _read_json_body(request))
        return result.to_response()

    @app.post("/login")
    async def login(request: Request) -> Dict[str, Any]:
        result = await service.login(await _read_json_body(request))
        return result.to_response()

    @app.get("/me")
    async def me(user: User = Depends(session_auth)) -> Dict[str, Any]:
        return {"user": user.to_public()}


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
    provider: IdentityProvider | None = None,
    issuer: SessionIssuer | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the sign-on service."""

    config = settings or load_settings()

    db = database or Database(resolve_database_path(config.database_path))
    db.initialize()

    session_issuer = issuer or SessionIssuer(
        config.require_secret(),
        ttl=timedelta(seconds=config.session_ttl_seconds),
    )
    identity_provider = provider or GoogleIdentityProvider(
        config.google_client_id,
        client_secret=config.google_client_secret,
        redirect_uri=config.google_redirect_uri,
    )
    if provider is None and not config.google_client_id:
        logger.warning("No Google OAuth client id configured; every Google token will be rejected.")

    service = AuthService(
        database=db,
        provider=identity_provider,
        issuer=session_issuer,
        signup_mode=config.signup_mode,
    )

    app = FastAPI(
        title="Google Sign-On API",
        version="0.1.0",
        description="Sign up and log in with a Google identity.",
    )
    app.state.database = db
    app.state.auth_service = service
    app.state.session_issuer = session_issuer

    register_auth_routes(app, service, session_auth=SessionAuth(session_issuer, db))

    @app.exception_handler(AuthError)
    async def handle_auth_error(_: object, exc: AuthError):
        if isinstance(exc, InternalError):
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.payload})

    logger.info("Sign-on API ready (signup mode: %s)", config.signup_mode)
    return app


__all__ = ["create_app", "register_auth_routes"]
