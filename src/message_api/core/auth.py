"""Session resolution: turn an incoming request into an actor id.

Provides a FastAPI dependency ``get_actor_id`` used by every message route.

* With ``settings.auth_enabled`` the ``Authorization: Bearer <token>`` header
  is verified against the configured Auth0 tenant and the ``sub`` claim is
  the actor id.
* With auth disabled (local runs, tests) the gateway is trusted and the
  actor id is read from the ``X-User-Id`` header.

Either way a request without an actor is answered 401 with the same
non-revealing detail used for policy denials.

Implementation notes:
* JWKS are fetched from https://<domain>/.well-known/jwks.json and cached.
* We use python-jose for JWT verification.
"""
from __future__ import annotations

import time
from functools import lru_cache
from typing import Any, Optional

import httpx
from fastapi import Depends, Header, HTTPException, Request, status
from jose import jwk, jwt
from jose.utils import base64url_decode

from message_api.core.config import get_settings
from message_api.core.errors import UNAUTHORIZED_DETAIL

ACTOR_HEADER = "X-User-Id"


class JWKSCache:
    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds
        self._expires_at = 0.0
        self._jwks: dict[str, Any] | None = None

    async def get(self, domain: str) -> dict[str, Any]:
        now = time.time()
        if self._jwks and now < self._expires_at:
            return self._jwks
        url = f"https://{domain.rstrip('/')}/.well-known/jwks.json"
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(url)
            if resp.status_code != 200:
                raise RuntimeError(f"Failed to fetch JWKS: {resp.status_code}")
            data = resp.json()
        self._jwks = data
        self._expires_at = now + self._ttl
        return data

@lru_cache
def _jwks_cache(ttl: int) -> JWKSCache:
    return JWKSCache(ttl)

def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL)

async def verify_token(token: str, settings) -> dict[str, Any]:
    """Verify a bearer JWT and return its claims; raises HTTPException(401)."""
    if not settings.auth0_domain or not settings.auth0_api_audience:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Auth not configured")
    # Basic structural validation of JWT
    if token.count('.') != 2:
        raise _unauthorized()
    domain = settings.auth0_issuer[len("https://"):].rstrip('/')
    jwks = await _jwks_cache(settings.auth_jwks_cache_ttl_seconds).get(domain)
    kid = jwt.get_unverified_header(token).get("kid")
    if not kid:
        raise _unauthorized()
    key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
    if not key:
        raise _unauthorized()
    message, encoded_signature = token.rsplit('.', 1)
    decoded_signature = base64url_decode(encoded_signature.encode())
    if not jwk.construct(key).verify(message.encode(), decoded_signature):
        raise _unauthorized()
    return jwt.decode(
        token,
        key,
        algorithms=settings.auth_algorithms,
        audience=settings.auth0_api_audience,
        issuer=settings.auth0_issuer,
    )

async def resolve_session(token: Optional[str], settings) -> str:
    """Resolve a session (bearer) token into the actor id."""
    if not token:
        raise _unauthorized()
    try:
        claims = await verify_token(token, settings)
    except HTTPException:
        raise
    except Exception as e:  # catch broader jose/httpx errors
        raise _unauthorized() from e
    actor_id = claims.get("sub")
    if not actor_id:
        raise _unauthorized()
    return str(actor_id)

def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None

async def get_actor_id(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias=ACTOR_HEADER),
    settings = Depends(get_settings),
) -> str:
    """Return the id of the authenticated actor or answer 401."""
    if not settings.auth_enabled:
        if not x_user_id or not x_user_id.strip():
            raise _unauthorized()
        return x_user_id.strip()
    # The auth middleware may already have verified the token
    claims = getattr(request.state, "verified_claims", None)
    if claims and claims.get("sub"):
        return str(claims["sub"])
    return await resolve_session(bearer_token(authorization), settings)

__all__ = ["ACTOR_HEADER", "verify_token", "resolve_session", "bearer_token", "get_actor_id"]
