"""Wire schemas for messages.

Clients speak the historical lower-case field names (``userid``,
``messagetext`` ...); Python code uses snake_case through aliases.
"""
import uuid
from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_serializer

from message_api.core.timeutil import utc_iso
from .base import ORMBase


def _wire(python_name: str, wire_name: str) -> dict[str, Any]:
    return {
        "validation_alias": AliasChoices(python_name, wire_name),
        "serialization_alias": wire_name,
    }


class MessageIn(BaseModel):
    """Candidate message as posted by a client.

    Every field is optional here; required fields are checked by the
    validator so that a missing field is a 400 listing what is missing.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    guid: str | None = None
    parent_message: str | None = Field(default=None, **_wire("parent_message", "parentmessage"))
    user_id: str | None = Field(default=None, **_wire("user_id", "userid"))
    group_id: str | None = Field(default=None, **_wire("group_id", "groupid"))
    timestamp: str | None = None
    message_text: str | None = Field(default=None, **_wire("message_text", "messagetext"))


class MessageEnvelopeIn(BaseModel):
    message: MessageIn


class MessageEdit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: str | None = None
    message_text: str | None = Field(default=None, **_wire("message_text", "messagetext"))


class MessageEditEnvelope(BaseModel):
    message: MessageEdit


class MessageRead(ORMBase):
    id: uuid.UUID
    guid: str | None = None
    parent_message: uuid.UUID | None = Field(default=None, **_wire("parent_message", "parentmessage"))
    user_id: str = Field(**_wire("user_id", "userid"))
    group_id: str = Field(**_wire("group_id", "groupid"))
    timestamp: str
    created_time: datetime = Field(**_wire("created_time", "createdtime"))
    modified_time: datetime | None = Field(default=None, **_wire("modified_time", "modifiedtime"))
    message_text: str = Field(**_wire("message_text", "messagetext"))
    # Author profile, attached when the profile service resolved it.
    user: dict[str, Any] | None = None

    @field_serializer("created_time", "modified_time")
    def _serialize_time(self, value: datetime | None) -> str | None:
        return utc_iso(value)


class MessageEnvelope(BaseModel):
    message: MessageRead


class MessageList(BaseModel):
    messages: list[MessageRead]


class MessageCreated(BaseModel):
    id: uuid.UUID


class DependencyReport(BaseModel):
    up: list[str] = []
    down: list[str] = []


class StatusRead(BaseModel):
    running: bool
    statuscode: int
    deps: DependencyReport
