"""Message service layer (the storage adapter).

Wraps the repository helpers with transaction handling and translates any
store failure into ``DependencyError`` so callers only ever see found,
not-found or a dependency failure. Writes commit before returning.
"""
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from message_api.core.errors import DependencyError
from message_api.core.timeutil import try_parse_iso, utcnow
from message_api.models.message import Message
from message_api.repositories import message as message_repo
from message_api.schemas.message import MessageEdit, MessageIn
from message_api.services.status import DB, DependencyStatusRegistry, dependency_status
from message_api.services.validation import EDITABLE, missing_properties

__all__ = [
    "create_message",
    "create_reply",
    "get_message",
    "get_all_messages",
    "get_notes",
    "get_messages_in_thread",
    "edit_message",
    "delete_message",
    "check_db",
    "status",
]

logger = logging.getLogger("message_api.storage")


@contextmanager
def _store_call(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        dependency_status.mark_down(DB)
        logger.error(
            f"storage.{operation}.failed",
            extra={"operation": operation, "error": repr(e), **context},
        )
        raise DependencyError(DB, f"{operation} failed") from e
    dependency_status.mark_up(DB)


async def create_message(session: AsyncSession, candidate: MessageIn) -> Message:
    """Persist a new message; the store assigns ``id`` and ``created_time``."""
    logger.debug("storage.create", extra={"group_id": candidate.group_id, "guid": candidate.guid})
    with _store_call("create", group_id=candidate.group_id):
        msg = await message_repo.create(
            session,
            user_id=candidate.user_id,  # type: ignore[arg-type]
            group_id=candidate.group_id,  # type: ignore[arg-type]
            timestamp=candidate.timestamp,  # type: ignore[arg-type]
            event_time=try_parse_iso(candidate.timestamp),
            message_text=candidate.message_text,  # type: ignore[arg-type]
            parent_message=message_repo.parse_id(candidate.parent_message),
            guid=candidate.guid,
        )
        await session.commit()
    return msg


async def create_reply(session: AsyncSession, parent: Message, candidate: MessageIn) -> Message:
    """Persist ``candidate`` as a reply: it joins the parent's group and thread.

    Threads are one level deep, so replying to a reply attaches to its root.
    """
    root_id = parent.parent_message or parent.id
    reply = candidate.model_copy(
        update={"group_id": parent.group_id, "parent_message": str(root_id)}
    )
    return await create_message(session, reply)


async def get_message(session: AsyncSession, message_id: str | uuid.UUID) -> Message | None:
    with _store_call("get", message_id=str(message_id)):
        return await message_repo.get_by_id(session, message_id)


async def get_all_messages(
    session: AsyncSession,
    group_id: str,
    start: datetime | None,
    end: datetime | None = None,
) -> Sequence[Message]:
    with _store_call("list", group_id=group_id):
        return await message_repo.list_for_group(session, group_id, start, end)


async def get_notes(
    session: AsyncSession,
    group_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
) -> Sequence[Message]:
    """Like ``get_all_messages`` but only root messages (no replies)."""
    with _store_call("notes", group_id=group_id):
        return await message_repo.list_for_group(session, group_id, start, end, roots_only=True)


async def get_messages_in_thread(session: AsyncSession, parent_id: str | uuid.UUID) -> Sequence[Message]:
    with _store_call("thread", parent_id=str(parent_id)):
        return await message_repo.list_thread(session, parent_id)


async def edit_message(session: AsyncSession, message: Message, edits: MessageEdit) -> Message:
    """Overwrite messagetext and/or timestamp; modified_time is always bumped.

    Blank values are never written.
    """
    filled = [f for f in EDITABLE if not missing_properties(edits, (f,))]
    fields: dict[str, Any] = {"modified_time": utcnow()}
    if "message_text" in filled:
        fields["message_text"] = edits.message_text
    if "timestamp" in filled:
        fields["timestamp"] = edits.timestamp
        fields["event_time"] = try_parse_iso(edits.timestamp)
    with _store_call("edit", message_id=str(message.id)):
        msg = await message_repo.update(session, message, **fields)
        await session.commit()
    return msg


async def delete_message(session: AsyncSession, message: Message, deleted_at: datetime | None = None) -> Message:
    """Soft delete: flag the row, keep it in the store."""
    when = deleted_at or utcnow()
    with _store_call("delete", message_id=str(message.id)):
        msg = await message_repo.update(session, message, delete_flag=when, modified_time=when)
        await session.commit()
    return msg


async def check_db(session: AsyncSession) -> bool:
    """Simple DB connectivity check.
    Uses a lightweight SELECT 1 statement and returns True if the DB responds.
    Driver connect errors (refused, DNS, timeout) arrive as plain OSError,
    not SQLAlchemyError, so any failure counts as unreachable.
    """
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


async def status(session: AsyncSession, registry: DependencyStatusRegistry = dependency_status) -> dict[str, Any]:
    """Live store connectivity merged with the recorded dependency state."""
    if await check_db(session):
        registry.mark_up(DB)
    else:
        registry.mark_down(DB)
    return registry.snapshot()
