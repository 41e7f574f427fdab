"""Author profile resolution for outgoing messages.

All lookups of a batch run concurrently and the batch is answered only once
every lookup finished. A failing lookup never silently shrinks the result:
the batch is flagged ``degraded``, the failure is logged and the
``profiles`` dependency is marked down.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from message_api.core.config import Settings
from message_api.services.status import PROFILES, dependency_status

logger = logging.getLogger("message_api.profiles")


@dataclass
class ResolvedProfiles:
    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    degraded: bool = False
    failed: list[str] = field(default_factory=list)


class ProfileResolver:
    def __init__(
        self,
        base_url: Optional[str],
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self._base_url is not None

    async def _fetch(self, client: httpx.AsyncClient, user_id: str, headers: dict[str, str]) -> dict[str, Any]:
        resp = await client.get(f"{self._base_url}/{user_id}/profile", headers=headers)
        resp.raise_for_status()
        profile = resp.json()
        return {"fullName": profile.get("fullName")} if isinstance(profile, dict) else {}

    async def resolve(self, user_ids: Iterable[str], token: Optional[str] = None) -> ResolvedProfiles:
        unique = list(dict.fromkeys(u for u in user_ids if u))
        if not self.enabled or not unique:
            return ResolvedProfiles()
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            results = await asyncio.gather(
                *(self._fetch(client, uid, headers) for uid in unique),
                return_exceptions=True,
            )
        resolved = ResolvedProfiles()
        for uid, result in zip(unique, results):
            if isinstance(result, Exception):
                resolved.failed.append(uid)
                logger.error("profiles.lookup.failed", extra={"user_id": uid, "error": repr(result)})
            else:
                resolved.users[uid] = result
        if resolved.failed:
            resolved.degraded = True
            dependency_status.mark_down(PROFILES)
            logger.warning(
                "profiles.batch.degraded",
                extra={"requested": len(unique), "failed": resolved.failed},
            )
        else:
            dependency_status.mark_up(PROFILES)
        return resolved


def build_profile_resolver(settings: Settings) -> ProfileResolver:
    return ProfileResolver(settings.profile_service_url, timeout=settings.profile_timeout)


__all__ = ["ResolvedProfiles", "ProfileResolver", "build_profile_resolver"]
