import logging
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from message_api.api import deps
from message_api.core.errors import UNAUTHORIZED_DETAIL, MessageValidationError
from message_api.core.timeutil import get_iso_date
from message_api.models.message import Message
from message_api.schemas.message import (
    MessageCreated,
    MessageEditEnvelope,
    MessageEnvelope,
    MessageEnvelopeIn,
    MessageList,
    MessageRead,
)
from message_api.services import message as message_service
from message_api.services.profiles import ProfileResolver
from message_api.services.validation import require_valid, validate_edits, validate_for_create, validate_for_reply

router = APIRouter(tags=["messages"])
logger = logging.getLogger("message_api.api.messages")


def _time_range(starttime: Optional[str], endtime: Optional[str]):
    try:
        return get_iso_date(starttime), get_iso_date(endtime)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid time value")


async def _render(
    messages: Sequence[Message], resolver: ProfileResolver, token: Optional[str]
) -> list[MessageRead]:
    profiles = await resolver.resolve([m.user_id for m in messages], token)
    rendered = []
    for m in messages:
        read = MessageRead.model_validate(m)
        read.user = profiles.users.get(m.user_id)
        rendered.append(read)
    return rendered


def _no_messages() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"messages": []})


def _require_author(message: Message, actor_id: str) -> None:
    if message.user_id != actor_id:
        logger.warning(
            "messages.author.mismatch",
            extra={"message_id": str(message.id), "actor_id": actor_id},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL)


@router.get("/read/{msgid}", response_model=MessageEnvelope, summary="Get a message")
async def read_message_route(
    message: Message = Depends(deps.authorized_message),
    resolver: ProfileResolver = Depends(deps.get_profile_resolver),
    token: Optional[str] = Depends(deps.get_session_token),
):
    rendered = await _render([message], resolver, token)
    return MessageEnvelope(message=rendered[0])


@router.get("/all/{groupid}", response_model=MessageList, summary="List a group's messages in a time range")
async def list_messages_route(
    group_id: str = Depends(deps.authorized_group),
    starttime: Optional[str] = Query(None),
    endtime: Optional[str] = Query(None),
    session: AsyncSession = Depends(deps.get_db),
    resolver: ProfileResolver = Depends(deps.get_profile_resolver),
    token: Optional[str] = Depends(deps.get_session_token),
):
    start, end = _time_range(starttime, endtime)
    rows = await message_service.get_all_messages(session, group_id, start, end)
    if not rows:
        return _no_messages()
    return MessageList(messages=await _render(rows, resolver, token))


@router.get("/notes/{groupid}", response_model=MessageList, summary="List a group's root messages")
async def list_notes_route(
    group_id: str = Depends(deps.authorized_group),
    starttime: Optional[str] = Query(None),
    endtime: Optional[str] = Query(None),
    session: AsyncSession = Depends(deps.get_db),
    resolver: ProfileResolver = Depends(deps.get_profile_resolver),
    token: Optional[str] = Depends(deps.get_session_token),
):
    start, end = _time_range(starttime, endtime)
    rows = await message_service.get_notes(session, group_id, start, end)
    if not rows:
        return _no_messages()
    return MessageList(messages=await _render(rows, resolver, token))


@router.get("/thread/{msgid}", response_model=MessageList, summary="List a message and its replies")
async def thread_route(
    message: Message = Depends(deps.authorized_message),
    session: AsyncSession = Depends(deps.get_db),
    resolver: ProfileResolver = Depends(deps.get_profile_resolver),
    token: Optional[str] = Depends(deps.get_session_token),
):
    rows = await message_service.get_messages_in_thread(session, message.id)
    if not rows:
        return _no_messages()
    return MessageList(messages=await _render(rows, resolver, token))


@router.post("/send/{groupid}", response_model=MessageCreated, status_code=status.HTTP_201_CREATED,
             summary="Start a new thread in a group")
async def send_message_route(
    payload: MessageEnvelopeIn,
    group_id: str = Depends(deps.authorized_group),
    actor_id: str = Depends(deps.get_actor_id),
    session: AsyncSession = Depends(deps.get_db),
):
    """Start a thread in ``groupid``; answers 201 with the new id.

    Any ``userid``, ``groupid`` or ``parentmessage`` in the body is ignored:
    the author is the session actor, the group is the authorized path group
    and the message is always a thread root.
    """
    candidate = payload.message.model_copy(
        update={"user_id": actor_id, "group_id": group_id, "parent_message": None}
    )
    try:
        require_valid(validate_for_create(candidate))
    except MessageValidationError as e:
        logger.warning("messages.send.invalid", extra={"group_id": group_id, "missing": e.missing})
        raise HTTPException(status_code=400, detail=e.missing)
    msg = await message_service.create_message(session, candidate)
    logger.info("messages.send.created", extra={"group_id": group_id, "message_id": str(msg.id)})
    return MessageCreated(id=msg.id)


@router.post("/reply/{msgid}", response_model=MessageCreated, status_code=status.HTTP_201_CREATED,
             summary="Reply to a message")
async def reply_route(
    payload: MessageEnvelopeIn,
    parent: Message = Depends(deps.authorized_message),
    actor_id: str = Depends(deps.get_actor_id),
    session: AsyncSession = Depends(deps.get_db),
):
    """Reply to ``msgid``; answers 201 with the new id.

    Any ``userid``, ``groupid`` or ``parentmessage`` in the body is ignored:
    the author is the session actor and the reply joins the parent's group
    and thread.
    """
    candidate = payload.message.model_copy(
        update={
            "user_id": actor_id,
            "group_id": parent.group_id,
            "parent_message": str(parent.parent_message or parent.id),
        }
    )
    try:
        require_valid(validate_for_reply(candidate))
    except MessageValidationError as e:
        logger.warning("messages.reply.invalid", extra={"parent_id": str(parent.id), "missing": e.missing})
        raise HTTPException(status_code=400, detail=e.missing)
    msg = await message_service.create_reply(session, parent, candidate)
    logger.info("messages.reply.created", extra={"parent_id": str(parent.id), "message_id": str(msg.id)})
    return MessageCreated(id=msg.id)


@router.put("/edit/{msgid}", response_model=MessageEnvelope, summary="Edit a message")
async def edit_message_route(
    payload: MessageEditEnvelope,
    message: Message = Depends(deps.authorized_message),
    actor_id: str = Depends(deps.get_actor_id),
    session: AsyncSession = Depends(deps.get_db),
):
    _require_author(message, actor_id)
    try:
        require_valid(validate_edits(payload.message))
    except MessageValidationError as e:
        raise HTTPException(status_code=400, detail=e.missing)
    edited = await message_service.edit_message(session, message, payload.message)
    return MessageEnvelope(message=MessageRead.model_validate(edited))


@router.delete("/remove/{msgid}", response_model=MessageCreated, summary="Delete a message")
async def remove_message_route(
    message: Message = Depends(deps.authorized_message),
    actor_id: str = Depends(deps.get_actor_id),
    session: AsyncSession = Depends(deps.get_db),
):
    _require_author(message, actor_id)
    deleted = await message_service.delete_message(session, message)
    logger.info("messages.remove.deleted", extra={"message_id": str(deleted.id)})
    return MessageCreated(id=deleted.id)
