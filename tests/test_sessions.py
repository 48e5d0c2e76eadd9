from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from signon.sessions import SESSION_ALGORITHM, InvalidSessionError, SessionIssuer

SECRET = "tests-secret-key-0123456789abcdefghij"


def test_issue_and_verify_round_trip() -> None:
    issuer = SessionIssuer(SECRET)

    token = issuer.issue(7)

    assert issuer.verify(token) == 7


def test_token_carries_only_id_and_one_hour_expiry() -> None:
    issuer = SessionIssuer(SECRET)
    before = datetime.now(timezone.utc)

    payload = jwt.decode(issuer.issue(3), SECRET, algorithms=[SESSION_ALGORITHM])

    assert set(payload) == {"id", "exp"}
    expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    assert timedelta(minutes=59) <= expires - before <= timedelta(hours=1, seconds=1)


def test_expired_token_is_rejected() -> None:
    issuer = SessionIssuer(SECRET, ttl=timedelta(seconds=-10))

    with pytest.raises(InvalidSessionError):
        issuer.verify(issuer.issue(1))


def test_token_from_another_secret_is_rejected() -> None:
    token = SessionIssuer("another-secret-0123456789abcdefghijklm").issue(1)

    with pytest.raises(InvalidSessionError):
        SessionIssuer(SECRET).verify(token)


def test_token_without_user_id_is_rejected() -> None:
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        SECRET,
        algorithm=SESSION_ALGORITHM,
    )

    with pytest.raises(InvalidSessionError):
        SessionIssuer(SECRET).verify(token)


def test_token_without_expiry_is_rejected() -> None:
    token = jwt.encode({"id": 1}, SECRET, algorithm=SESSION_ALGORITHM)

    with pytest.raises(InvalidSessionError):
        SessionIssuer(SECRET).verify(token)


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        SessionIssuer("")
