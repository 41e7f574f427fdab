"""Centralized FastAPI dependency definitions for the API layer.

Routers should import dependencies from here instead of directly from
their underlying implementation modules. This provides:

* A stable import surface (refactors in lower layers don't ripple up)
* Easier test overrides via ``app.dependency_overrides[deps.get_policy]``
* A single location for the authorization gate steps that run before any
  route body: ``authorized_group`` and ``authorized_message``.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from message_api.core.auth import bearer_token, get_actor_id
from message_api.core.config import get_settings
from message_api.core.errors import UNAUTHORIZED_DETAIL, MessageNotFoundError, UnauthorizedError
from message_api.db.session import get_db
from message_api.models.message import Message
from message_api.services.gate import authorize_for_group, authorize_for_message, require_allowed
from message_api.services.policy import PolicyClient, build_policy
from message_api.services.profiles import ProfileResolver, build_profile_resolver
from message_api.services.status import get_status_registry


@lru_cache
def get_policy() -> PolicyClient:
    return build_policy(get_settings())


@lru_cache
def get_profile_resolver() -> ProfileResolver:
    return build_profile_resolver(get_settings())


def get_session_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    return bearer_token(authorization)


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL)


async def authorized_group(
    groupid: str,
    actor_id: str = Depends(get_actor_id),
    policy: PolicyClient = Depends(get_policy),
) -> str:
    """Gate step for group addressed routes; yields the group id on allow."""
    try:
        require_allowed(await authorize_for_group(policy, actor_id, groupid))
    except UnauthorizedError:
        raise _unauthorized()
    return groupid


async def authorized_message(
    msgid: str,
    session: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_actor_id),
    policy: PolicyClient = Depends(get_policy),
) -> Message:
    """Gate step for message addressed routes; yields the resolved message."""
    try:
        result = require_allowed(await authorize_for_message(session, policy, actor_id, msgid))
    except MessageNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    except UnauthorizedError:
        raise _unauthorized()
    return result.message  # type: ignore[return-value]


__all__ = [
    "get_db",
    "get_actor_id",
    "get_policy",
    "get_profile_resolver",
    "get_session_token",
    "get_status_registry",
    "authorized_group",
    "authorized_message",
]
