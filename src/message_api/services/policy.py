"""Permission backends consulted by the authorization gate.

A backend answers one question: may ``actor_id`` view the data of
``group_id``? It returns a plain bool for a decision and raises
``PolicyUnavailableError`` when it cannot decide.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from message_api.core.config import Settings
from message_api.core.errors import PolicyUnavailableError

logger = logging.getLogger("message_api.policy")

# Any of these permissions lets an actor read a group's messages.
VIEW_PERMISSIONS = frozenset({"view", "root", "custodian", "upload", "note"})


class PolicyClient(Protocol):
    async def can_view(self, actor_id: str, group_id: str) -> bool: ...


class SelfAccessPolicy:
    """Fallback used when no permission service is configured."""

    async def can_view(self, actor_id: str, group_id: str) -> bool:
        return bool(actor_id) and actor_id == group_id


class GatekeeperPolicy:
    """Permission lookup against the gatekeeper HTTP API.

    ``GET {base_url}/access/{group_id}/{actor_id}`` answers 200 with the
    permission set the actor holds on the group, or 404 when it holds none.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._token = token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    async def permissions(self, actor_id: str, group_id: str) -> dict[str, Any]:
        url = f"{self._base_url}/access/{group_id}/{actor_id}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise PolicyUnavailableError(f"{type(e).__name__} calling gatekeeper") from e
        if resp.status_code == 404:
            return {}
        if resp.status_code != 200:
            raise PolicyUnavailableError(f"gatekeeper answered {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise PolicyUnavailableError("gatekeeper answered with invalid JSON") from e
        return data if isinstance(data, dict) else {}

    async def can_view(self, actor_id: str, group_id: str) -> bool:
        if actor_id == group_id:
            return True
        perms = await self.permissions(actor_id, group_id)
        return any(p in perms for p in VIEW_PERMISSIONS)


def build_policy(settings: Settings) -> PolicyClient:
    if not settings.gatekeeper_url:
        logger.info("policy.self_access", extra={"reason": "no gatekeeper configured"})
        return SelfAccessPolicy()
    return GatekeeperPolicy(
        settings.gatekeeper_url,
        timeout=settings.gatekeeper_timeout,
        token=settings.gatekeeper_token.get_secret_value() if settings.gatekeeper_token else None,
    )


__all__ = [
    "VIEW_PERMISSIONS",
    "PolicyClient",
    "SelfAccessPolicy",
    "GatekeeperPolicy",
    "build_policy",
]
