# Re-export primary service layer entry points for convenience.
from .message import (
    create_message,
    create_reply,
    get_message,
    get_all_messages,
    get_notes,
    get_messages_in_thread,
    edit_message,
    delete_message,
    status,
)
from .gate import (
    GateOutcome,
    GateResult,
    authorize_for_group,
    authorize_for_message,
    require_allowed,
)
from .validation import (
    validate_for_create,
    validate_for_reply,
    is_valid_for_create,
    validate_edits,
    require_valid,
)

__all__ = [
    # storage
    "create_message",
    "create_reply",
    "get_message",
    "get_all_messages",
    "get_notes",
    "get_messages_in_thread",
    "edit_message",
    "delete_message",
    "status",
    # gate
    "GateOutcome",
    "GateResult",
    "authorize_for_group",
    "authorize_for_message",
    "require_allowed",
    # validation
    "validate_for_create",
    "validate_for_reply",
    "is_valid_for_create",
    "validate_edits",
    "require_valid",
]
