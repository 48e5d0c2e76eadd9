"""Google identity verification.

The sign-on flows only ever talk to Google through the :class:`IdentityProvider`
protocol so they can be exercised without network access. Failures are folded
into ``False`` / ``None`` by :func:`verify_google_identity` and
:func:`identity_from_code`; nothing raised by Google, PyJWT or httpx escapes
those two functions.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import anyio
import httpx
import jwt
from jwt import PyJWKClient

from .models import IdentityClaim

logger = logging.getLogger("signon.google")

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class IdentityVerificationError(Exception):
    """Raised by providers when a credential cannot be verified or exchanged."""


class IdentityProvider(Protocol):
    """Capabilities the sign-on flows need from an identity provider."""

    async def verify_id_token(self, id_token: str) -> IdentityClaim:
        """Verify ``id_token`` and return its claim, raising on any failure."""
        ...

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorisation code for a token bundle, raising on failure."""
        ...


def _claim_from_payload(payload: Dict[str, Any]) -> IdentityClaim:
    subject = payload.get("sub")
    if not subject:
        raise IdentityVerificationError("Token does not carry a subject")
    return IdentityClaim(
        subject=str(subject),
        name=payload.get("name"),
        email=payload.get("email"),
        picture=payload.get("picture"),
    )


class GoogleIdentityProvider:
    """Verify Google ID tokens against Google's published signing keys."""

    def __init__(
        self,
        client_id: Optional[str],
        *,
        client_secret: Optional[str] = None,
        redirect_uri: str = "postmessage",
        jwks_client: Optional[PyJWKClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: str = GOOGLE_TOKEN_URL,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.token_url = token_url
        self._jwks_client = jwks_client or PyJWKClient(GOOGLE_CERTS_URL, cache_keys=True, lifespan=3600)
        self._http_client = http_client

    def _decode(self, id_token: str) -> Dict[str, Any]:
        signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
        claims = jwt.decode(
            id_token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self.client_id,
            options={"require": ["exp", "iat", "sub"]},
        )
        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise jwt.InvalidIssuerError(f"Unexpected issuer {claims.get('iss')!r}")
        return claims

    async def verify_id_token(self, id_token: str) -> IdentityClaim:
        if not self.client_id:
            raise IdentityVerificationError("Google OAuth client id is not configured")

        try:
            # Key lookup may fetch Google's certificates over the network.
            claims = await anyio.to_thread.run_sync(self._decode, id_token)
        except jwt.PyJWTError as exc:
            raise IdentityVerificationError(f"Invalid Google ID token: {exc}") from exc

        return _claim_from_payload(claims)

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        if not self.client_id or not self.client_secret:
            raise IdentityVerificationError("Google OAuth client credentials are not configured")

        form = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.token_url, data=form)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.token_url, data=form)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise IdentityVerificationError(f"Google code exchange failed: {exc}") from exc
        except ValueError as exc:
            raise IdentityVerificationError("Google returned an unexpected token response") from exc

        if not isinstance(payload, dict):
            raise IdentityVerificationError("Google returned an unexpected token response")
        return payload


async def verify_google_identity(provider: IdentityProvider, token: str, google_id: str) -> bool:
    """Return ``True`` only if ``token`` verifies and belongs to ``google_id``."""

    try:
        claim = await provider.verify_id_token(token)
    except Exception as exc:
        logger.debug("Google ID token rejected: %s", exc)
        return False

    if claim.subject != google_id:
        logger.debug("Google ID token subject does not match the claimed id")
        return False
    return True


async def identity_from_code(provider: IdentityProvider, code: str) -> Optional[IdentityClaim]:
    """Exchange ``code`` and return the verified identity, or ``None``."""

    try:
        tokens = await provider.exchange_code(code)
        id_token = tokens.get("id_token")
        if not id_token:
            raise IdentityVerificationError("Token response does not include an id_token")
        return await provider.verify_id_token(str(id_token))
    except Exception as exc:
        logger.debug("Google code exchange rejected: %s", exc)
        return None


__all__ = [
    "GOOGLE_CERTS_URL",
    "GOOGLE_ISSUERS",
    "GOOGLE_TOKEN_URL",
    "GoogleIdentityProvider",
    "IdentityProvider",
    "IdentityVerificationError",
    "identity_from_code",
    "verify_google_identity",
]
