"""Errors raised by the sign-on flows and how they map onto HTTP responses."""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

ErrorPayload = Union[str, List[str]]


class AuthError(Exception):
    """Base class for failures that end a signup or login request."""

    status_code = 500
    message: Optional[str] = None

    def __init__(self, payload: Optional[ErrorPayload] = None) -> None:
        self.payload = payload if payload is not None else self.message
        super().__init__(self.payload)


class ValidationError(AuthError):
    """The request body is missing fields or has malformed ones."""

    status_code = 422

    def __init__(self, messages: Sequence[str]) -> None:
        if not messages:
            raise ValueError("A validation error needs at least one message")
        super().__init__(list(messages))

    @property
    def messages(self) -> List[str]:
        return list(self.payload or [])


# Both identity failures answer with 301; existing clients rely on it.
class IdentityError(AuthError):
    """The Google token is invalid, expired, or belongs to someone else."""

    status_code = 301
    message = "invalid token"


class NotFoundError(AuthError):
    """No local account exists for the Google identity."""

    status_code = 301
    message = "user not found"


class ConflictError(AuthError):
    """An account already exists for the Google identity."""

    status_code = 409
    message = "account already exist"


class SessionRejectedError(AuthError):
    """The bearer session token is missing or does not verify."""

    status_code = 401
    message = "Invalid token"


class InternalError(AuthError):
    """Unexpected store failure; the response body is withheld."""

    status_code = 500


__all__ = [
    "AuthError",
    "ConflictError",
    "ErrorPayload",
    "IdentityError",
    "InternalError",
    "NotFoundError",
    "SessionRejectedError",
    "ValidationError",
]
