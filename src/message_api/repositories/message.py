"""Repository helpers for the Message model.

Every read query goes through ``visible()`` so soft-deleted rows are
filtered in exactly one place. Writes flush but never commit; committing is
the caller's job.
"""

import uuid
from datetime import datetime
from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, Select

from message_api.models.message import Message

__all__ = [
    "parse_id",
    "visible",
    "get_by_id",
    "list_for_group",
    "list_thread",
    "create",
    "update",
]


def parse_id(message_id: str | uuid.UUID | None) -> Optional[uuid.UUID]:
    """Return ``message_id`` as a UUID, or None if it is not a valid one."""
    if isinstance(message_id, uuid.UUID):
        return message_id
    if not message_id:
        return None
    try:
        return uuid.UUID(str(message_id))
    except ValueError:
        return None


def visible() -> Select:
    """Base select over messages that have not been soft deleted."""
    return select(Message).where(Message.delete_flag.is_(None))


async def get_by_id(session: AsyncSession, message_id: str | uuid.UUID) -> Optional[Message]:
    """Return a visible Message by id.

    A malformed id never reaches the database; it is reported the same way
    as an id that does not exist (None).
    """
    parsed = parse_id(message_id)
    if parsed is None:
        return None
    res = await session.execute(visible().where(Message.id == parsed))
    return res.scalar_one_or_none()


async def list_for_group(
    session: AsyncSession,
    group_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    *,
    roots_only: bool = False,
) -> Sequence[Message]:
    """Visible messages of a group with ``start <= event_time <= end``.

    Open bounds are unbounded. No ordering is guaranteed.
    """
    stmt = visible().where(Message.group_id == group_id)
    if start is not None:
        stmt = stmt.where(Message.event_time >= start)
    if end is not None:
        stmt = stmt.where(Message.event_time <= end)
    if roots_only:
        stmt = stmt.where(Message.parent_message.is_(None))
    res = await session.execute(stmt)
    return res.scalars().all()


async def list_thread(session: AsyncSession, parent_id: str | uuid.UUID) -> Sequence[Message]:
    """The root message ``parent_id`` plus its visible direct replies."""
    parsed = parse_id(parent_id)
    if parsed is None:
        return []
    stmt = visible().where(or_(Message.id == parsed, Message.parent_message == parsed))
    res = await session.execute(stmt)
    return res.scalars().all()


async def create(
    session: AsyncSession,
    *,
    user_id: str,
    group_id: str,
    timestamp: str,
    message_text: str,
    event_time: datetime | None = None,
    parent_message: uuid.UUID | None = None,
    guid: str | None = None,
) -> Message:
    """Create a new Message.

    Parameters:
        session: active AsyncSession.
        user_id: authoring actor.
        group_id: owning group.
        timestamp: caller supplied event time, stored verbatim.
        message_text: body.
        event_time: parsed UTC value of ``timestamp`` used for range queries.
        parent_message: id of the root message for replies.
        guid: optional client correlation id.

    Returns the persisted Message (flushed, not committed) with its store
    assigned id and created_time.
    """
    message = Message(
        user_id=user_id,
        group_id=group_id,
        timestamp=timestamp,
        event_time=event_time,
        message_text=message_text,
        parent_message=parent_message,
        guid=guid,
    )
    session.add(message)
    await session.flush()
    return message


async def update(session: AsyncSession, message: Message, **fields) -> Message:
    """Overwrite the given columns on ``message`` and flush."""
    for name, value in fields.items():
        setattr(message, name, value)
    await session.flush()
    return message
