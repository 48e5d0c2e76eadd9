"""Bearer session authentication for protected routes."""
from __future__ import annotations

import anyio
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .database import Database, StoreError
from .errors import InternalError, SessionRejectedError
from .models import User
from .sessions import InvalidSessionError, SessionIssuer


class SessionAuth:
    """Resolve the user behind an ``Authorization: Bearer <session>`` header."""

    def __init__(self, issuer: SessionIssuer, database: Database) -> None:
        self._issuer = issuer
        self._database = database
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> User:
        if not request.headers.get("authorization"):
            raise SessionRejectedError("No token provided")

        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or " " in credentials.credentials.strip():
            raise SessionRejectedError()

        try:
            user_id = self._issuer.verify(credentials.credentials.strip())
        except InvalidSessionError:
            raise SessionRejectedError() from None

        try:
            user = await anyio.to_thread.run_sync(self._database.get_user, user_id)
        except StoreError as exc:
            raise InternalError() from exc
        if user is None:
            raise SessionRejectedError()
        return user


__all__ = ["SessionAuth"]
