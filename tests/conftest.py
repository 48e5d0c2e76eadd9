from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from signon.config import SIGNUP_MODE_ID_TOKEN, Settings
from signon.database import Database
from signon.google import IdentityVerificationError
from signon.models import IdentityClaim
from signon.service import create_app
from signon.sessions import SessionIssuer

TEST_SECRET = "tests-secret-key-0123456789abcdefghij"


class FakeIdentityProvider:
    """In-memory stand-in for Google used by the HTTP tests."""

    def __init__(self) -> None:
        self.tokens: Dict[str, IdentityClaim] = {}
        self.codes: Dict[str, Dict[str, Any]] = {}
        self.error: Optional[Exception] = None
        self.verify_calls: List[str] = []

    def accept(self, token: str, subject: str, **profile: Optional[str]) -> None:
        self.tokens[token] = IdentityClaim(subject=subject, **profile)

    async def verify_id_token(self, id_token: str) -> IdentityClaim:
        self.verify_calls.append(id_token)
        if self.error is not None:
            raise self.error
        claim = self.tokens.get(id_token)
        if claim is None:
            raise IdentityVerificationError("Token signature mismatch")
        return claim

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        bundle = self.codes.get(code)
        if bundle is None:
            raise IdentityVerificationError("invalid_grant")
        return bundle


@pytest.fixture()
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "signon.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def issuer() -> SessionIssuer:
    return SessionIssuer(TEST_SECRET)


@pytest.fixture()
def make_client(
    database: Database,
    provider: FakeIdentityProvider,
    issuer: SessionIssuer,
) -> Iterator[Callable[..., TestClient]]:
    clients: List[TestClient] = []

    def factory(signup_mode: str = SIGNUP_MODE_ID_TOKEN) -> TestClient:
        app = create_app(
            settings=Settings(secret=TEST_SECRET, signup_mode=signup_mode),
            database=database,
            provider=provider,
            issuer=issuer,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture()
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()
