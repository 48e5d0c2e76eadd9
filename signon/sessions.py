"""Stateless session tokens for authenticated users."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

SESSION_ALGORITHM = "HS256"


class InvalidSessionError(Exception):
    """Raised when a session token is malformed, forged, or expired."""


class SessionIssuer:
    """Mint and verify signed session tokens bound to a local user id."""

    def __init__(self, secret: str, *, ttl: timedelta = timedelta(hours=1)) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        self._secret = secret
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user_id: int) -> str:
        payload = {"id": user_id, "exp": self._now() + self._ttl}
        return jwt.encode(payload, self._secret, algorithm=SESSION_ALGORITHM)

    def verify(self, token: str) -> int:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[SESSION_ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidSessionError(str(exc)) from exc

        user_id = payload.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidSessionError("Session token does not carry a user id")
        return user_id

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["InvalidSessionError", "SESSION_ALGORITHM", "SessionIssuer"]
