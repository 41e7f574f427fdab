"""Required-field checks applied before anything is persisted."""
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from message_api.core.errors import MessageValidationError

__all__ = [
    "CREATE_REQUIRED",
    "REPLY_REQUIRED",
    "missing_properties",
    "validate_for_create",
    "validate_for_reply",
    "is_valid_for_create",
    "EDITABLE",
    "provided_edits",
    "validate_edits",
    "require_valid",
]

CREATE_REQUIRED = ("user_id", "group_id", "timestamp", "message_text")
REPLY_REQUIRED = CREATE_REQUIRED + ("parent_message",)
EDITABLE = ("message_text", "timestamp")

# Reported back to the client under the names it sent.
_WIRE_NAMES = {
    "user_id": "userid",
    "group_id": "groupid",
    "message_text": "messagetext",
    "parent_message": "parentmessage",
}


def _as_mapping(candidate: Any) -> Mapping[str, Any]:
    if candidate is None:
        return {}
    if isinstance(candidate, BaseModel):
        return candidate.model_dump()
    if isinstance(candidate, Mapping):
        return candidate
    return vars(candidate)


def missing_properties(candidate: Any, properties: Iterable[str]) -> dict[str, str]:
    data = _as_mapping(candidate)
    missing: dict[str, str] = {}
    for prop in properties:
        value = data.get(prop)
        if value is None and prop in _WIRE_NAMES:
            value = data.get(_WIRE_NAMES[prop])
        if not isinstance(value, str) or not value.strip():
            missing[_WIRE_NAMES.get(prop, prop)] = "property is required"
    return missing


def validate_for_create(candidate: Any) -> dict[str, str]:
    """Return the required fields ``candidate`` lacks; empty means valid.

    Only userid, groupid, timestamp and messagetext are checked. They must be
    non-empty strings; every other field is ignored.
    """
    return missing_properties(candidate, CREATE_REQUIRED)


def validate_for_reply(candidate: Any) -> dict[str, str]:
    return missing_properties(candidate, REPLY_REQUIRED)


def is_valid_for_create(candidate: Any) -> bool:
    return not validate_for_create(candidate)


def provided_edits(edits: Any) -> tuple[str, ...]:
    """Editable fields present in ``edits`` (blank values count as present)."""
    data = _as_mapping(edits)
    return tuple(
        f for f in EDITABLE
        if data.get(f) is not None or data.get(_WIRE_NAMES.get(f, f)) is not None
    )


def validate_edits(edits: Any) -> dict[str, str]:
    """An edit must change at least one of messagetext or timestamp.

    Every field it does carry must be a non-empty string, same as on create.
    """
    provided = provided_edits(edits)
    if not provided:
        return {"messagetext": "messagetext or timestamp is required"}
    return missing_properties(edits, provided)


def require_valid(missing: dict[str, str]) -> None:
    """Raise ``MessageValidationError`` when a check reported missing fields."""
    if missing:
        raise MessageValidationError(missing)
