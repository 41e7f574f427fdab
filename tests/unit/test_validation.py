import pytest
from message_api.core.errors import MessageValidationError
from message_api.schemas.message import MessageIn, MessageEdit
from message_api.services.validation import (
    validate_for_create,
    validate_for_reply,
    is_valid_for_create,
    validate_edits,
    require_valid,
)

from helpers import NOTE, candidate

REQUIRED = ["userid", "groupid", "timestamp", "messagetext"]


@pytest.mark.unit
def test_complete_message_is_valid():
    assert validate_for_create(candidate(NOTE)) == {}
    assert is_valid_for_create(candidate(NOTE))


@pytest.mark.unit
@pytest.mark.parametrize("field", REQUIRED)
def test_missing_field_is_invalid(field):
    data = {k: v for k, v in NOTE.items() if k != field}
    assert validate_for_create(candidate(data)) == {field: "property is required"}


@pytest.mark.unit
@pytest.mark.parametrize("field", REQUIRED)
def test_empty_or_blank_field_is_invalid(field):
    assert not is_valid_for_create(candidate(NOTE, **{field: ""}))
    assert not is_valid_for_create(candidate(NOTE, **{field: "   "}))


@pytest.mark.unit
def test_other_fields_are_ignored():
    assert is_valid_for_create(candidate(NOTE, parentmessage="", guid=None))


@pytest.mark.unit
def test_plain_mappings_with_wire_names():
    assert validate_for_create(dict(NOTE)) == {}
    assert validate_for_create({"userid": "1"}) == {
        "groupid": "property is required",
        "timestamp": "property is required",
        "messagetext": "property is required",
    }


@pytest.mark.unit
def test_reply_requires_parent():
    assert validate_for_reply(candidate(NOTE)) == {"parentmessage": "property is required"}
    assert validate_for_reply(candidate(NOTE, parentmessage="abc")) == {}


@pytest.mark.unit
def test_edits_need_one_editable_field():
    assert validate_edits(MessageEdit()) != {}
    assert validate_edits(MessageEdit(messagetext="")) != {}
    assert validate_edits(MessageEdit(messagetext="changed")) == {}
    assert validate_edits(MessageEdit(timestamp="2013-11-29T00:00:00Z")) == {}


@pytest.mark.unit
def test_require_valid_raises_with_missing_fields():
    require_valid({})
    with pytest.raises(MessageValidationError) as exc:
        require_valid(validate_for_create(candidate(NOTE, messagetext="")))
    assert exc.value.missing == {"messagetext": "property is required"}


@pytest.mark.unit
def test_edits_reject_blank_provided_fields():
    assert validate_edits(MessageEdit(messagetext="   ", timestamp="2014-01-01T00:00:00Z")) == {
        "messagetext": "property is required"
    }
    assert validate_edits(MessageEdit(messagetext="ok", timestamp="   ")) == {
        "timestamp": "property is required"
    }
    assert validate_edits({"messagetext": "ok"}) == {}
