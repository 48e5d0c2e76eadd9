"""Signup and login flows for Google-linked accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

import anyio

from .config import SIGNUP_MODE_CODE_EXCHANGE, SIGNUP_MODE_ID_TOKEN, SIGNUP_MODES
from .database import Database, StoreError, UserConflictError
from .errors import ConflictError, IdentityError, InternalError, NotFoundError, ValidationError
from .google import IdentityProvider, identity_from_code, verify_google_identity
from .models import User
from .sessions import SessionIssuer
from .validation import (
    CodeExchangeSignupRequest,
    LoginRequest,
    SignupRequest,
    validate_payload,
)

logger = logging.getLogger("signon.auth")


@dataclass(frozen=True)
class AuthResult:
    """Session token and account returned by a successful signup or login."""

    token: str
    user: User

    def to_response(self) -> Dict[str, Any]:
        return {"token": self.token, "user": self.user.to_public()}


class AuthService:
    """Sequence validation, Google verification, persistence, and session issuance."""

    def __init__(
        self,
        *,
        database: Database,
        provider: IdentityProvider,
        issuer: SessionIssuer,
        signup_mode: str = SIGNUP_MODE_ID_TOKEN,
    ) -> None:
        if signup_mode not in SIGNUP_MODES:
            raise ValueError(f"Unsupported signup mode '{signup_mode}'")
        self._database = database
        self._provider = provider
        self._issuer = issuer
        self.signup_mode = signup_mode

    async def signup(self, payload: Any) -> AuthResult:
        if self.signup_mode == SIGNUP_MODE_CODE_EXCHANGE:
            name, email, image_url, google_id = await self._identity_from_code(payload)
        else:
            name, email, image_url, google_id = await self._identity_from_token(payload)

        try:
            user = await anyio.to_thread.run_sync(
                self._database.create_user, name, email, image_url, google_id
            )
        except UserConflictError as exc:
            logger.warning("Signup rejected: account for Google id %s already exists", google_id)
            raise ConflictError() from exc
        except StoreError as exc:
            logger.exception("Failed to persist new user for Google id %s", google_id)
            raise InternalError() from exc

        logger.info("Created user %s for Google id %s", user.id, google_id)
        return AuthResult(token=self._issuer.issue(user.id), user=user)

    async def login(self, payload: Any) -> AuthResult:
        request, errors = validate_payload(LoginRequest, payload)
        if request is None:
            raise ValidationError(errors)

        try:
            user = await anyio.to_thread.run_sync(
                self._database.find_user_by_google_id, request.google_id
            )
        except StoreError as exc:
            logger.exception("User lookup failed for Google id %s", request.google_id)
            raise InternalError() from exc

        if user is None:
            logger.warning("Login rejected: no user for Google id %s", request.google_id)
            raise NotFoundError()

        if not await verify_google_identity(self._provider, request.google_token, request.google_id):
            logger.warning("Login rejected: invalid Google token for user %s", user.id)
            raise IdentityError()

        logger.info("User %s logged in", user.id)
        return AuthResult(token=self._issuer.issue(user.id), user=user)

    async def _identity_from_token(self, payload: Any) -> tuple[str, str, str, str]:
        request, errors = validate_payload(SignupRequest, payload)
        if request is None:
            raise ValidationError(errors)

        if not await verify_google_identity(self._provider, request.google_token, request.google_id):
            logger.warning("Signup rejected: invalid Google token for Google id %s", request.google_id)
            raise IdentityError()

        return request.name, request.email, request.image_url, request.google_id

    async def _identity_from_code(self, payload: Any) -> tuple[str, str, str, str]:
        request, errors = validate_payload(CodeExchangeSignupRequest, payload)
        if request is None:
            raise ValidationError(errors)

        claim = await identity_from_code(self._provider, request.google_access_token)
        if claim is None:
            logger.warning("Signup rejected: Google code exchange failed")
            raise IdentityError()

        return claim.name or "", claim.email or "", claim.picture or "", claim.subject


__all__ = ["AuthResult", "AuthService"]
