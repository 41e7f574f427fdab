"""Authorization gate placed in front of every message route.

Two entry points:

* ``authorize_for_group`` asks the policy backend whether the actor may view
  a group's data.
* ``authorize_for_message`` first loads the message and authorizes against
  the message's *own* group, never a caller supplied one. A message that
  does not exist is reported as not found without consulting the policy.
  On allow the loaded message is returned so it is not fetched twice.

The gate fails closed: when the policy backend cannot decide, the request
is denied, logged as ``gate.policy.unavailable`` (distinct from
``gate.policy.denied``) and the ``policy`` dependency is marked down.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from message_api.core.errors import MessageNotFoundError, PolicyUnavailableError, UnauthorizedError
from message_api.models.message import Message
from message_api.services import message as message_service
from message_api.services.policy import PolicyClient
from message_api.services.status import POLICY, dependency_status

logger = logging.getLogger("message_api.gate")


class GateOutcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    NOT_FOUND = "not_found"
    POLICY_UNAVAILABLE = "policy_unavailable"


@dataclass
class GateResult:
    outcome: GateOutcome
    message: Optional[Message] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOW


async def authorize_for_group(policy: PolicyClient, actor_id: Optional[str], group_id: str) -> GateResult:
    if not actor_id or not group_id:
        logger.warning(
            "gate.identity.missing",
            extra={"actor_id": actor_id, "group_id": group_id},
        )
        return GateResult(GateOutcome.DENY)
    try:
        allowed = await policy.can_view(actor_id, group_id)
    except PolicyUnavailableError as e:
        dependency_status.mark_down(POLICY)
        logger.error(
            "gate.policy.unavailable",
            extra={"actor_id": actor_id, "group_id": group_id, "error": str(e)},
        )
        return GateResult(GateOutcome.POLICY_UNAVAILABLE)
    dependency_status.mark_up(POLICY)
    if not allowed:
        logger.warning("gate.policy.denied", extra={"actor_id": actor_id, "group_id": group_id})
        return GateResult(GateOutcome.DENY)
    logger.debug("gate.policy.allowed", extra={"actor_id": actor_id, "group_id": group_id})
    return GateResult(GateOutcome.ALLOW)


async def authorize_for_message(
    session: AsyncSession,
    policy: PolicyClient,
    actor_id: Optional[str],
    message_id: str,
) -> GateResult:
    if not actor_id:
        logger.warning("gate.identity.missing", extra={"message_id": message_id})
        return GateResult(GateOutcome.DENY)
    found = await message_service.get_message(session, message_id)
    if found is None:
        logger.info("gate.message.not_found", extra={"message_id": message_id})
        return GateResult(GateOutcome.NOT_FOUND)
    result = await authorize_for_group(policy, actor_id, found.group_id)
    if result.allowed:
        result.message = found
    return result


def require_allowed(result: GateResult) -> GateResult:
    """Turn a non-allow outcome into the matching domain error."""
    if result.outcome is GateOutcome.NOT_FOUND:
        raise MessageNotFoundError()
    if not result.allowed:
        raise UnauthorizedError(result.outcome.value)
    return result


__all__ = [
    "GateOutcome",
    "GateResult",
    "authorize_for_group",
    "authorize_for_message",
    "require_allowed",
]
