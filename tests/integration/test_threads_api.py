import uuid

import pytest

from message_api.services import message as message_service

from conftest import ACTOR
from helpers import NOTE, candidate


async def _send(client, headers, **overrides) -> str:
    r = await client.post("/send/999", json={"message": {**NOTE, **overrides}}, headers=headers)
    assert r.status_code == 201
    return r.json()["id"]


async def _reply(client, headers, parent_id: str, text: str) -> str:
    body = {"message": {"timestamp": "2013-11-29T10:00:00Z", "messagetext": text}}
    r = await client.post(f"/reply/{parent_id}", json=body, headers=headers)
    assert r.status_code == 201
    return r.json()["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reply_joins_thread(client, actor_headers):
    root_id = await _send(client, actor_headers)
    reply_id = await _reply(client, actor_headers, root_id, "first reply")

    r = await client.get(f"/read/{reply_id}", headers=actor_headers)
    msg = r.json()["message"]
    assert msg["parentmessage"] == root_id
    assert msg["groupid"] == "999"
    assert msg["userid"] == ACTOR

    r = await client.get(f"/thread/{root_id}", headers=actor_headers)
    assert r.status_code == 200
    assert {m["id"] for m in r.json()["messages"]} == {root_id, reply_id}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reply_to_reply_attaches_to_root(client, actor_headers):
    root_id = await _send(client, actor_headers)
    reply_id = await _reply(client, actor_headers, root_id, "first reply")
    nested_id = await _reply(client, actor_headers, reply_id, "nested reply")

    r = await client.get(f"/read/{nested_id}", headers=actor_headers)
    assert r.json()["message"]["parentmessage"] == root_id

    r = await client.get(f"/thread/{root_id}", headers=actor_headers)
    assert len(r.json()["messages"]) == 3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reply_to_unknown_message_is_not_found(client, actor_headers):
    body = {"message": {"timestamp": "2013-11-29T10:00:00Z", "messagetext": "hi"}}
    r = await client.post(f"/reply/{uuid.uuid4()}", json=body, headers=actor_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reply_without_text_is_rejected(client, actor_headers):
    root_id = await _send(client, actor_headers)
    r = await client.post(f"/reply/{root_id}", json={"message": {"timestamp": "2013-11-29"}}, headers=actor_headers)
    assert r.status_code == 400
    assert "messagetext" in r.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_by_author(client, actor_headers):
    msg_id = await _send(client, actor_headers)
    r = await client.put(f"/edit/{msg_id}", json={"message": {"messagetext": "edited"}}, headers=actor_headers)
    assert r.status_code == 200
    msg = r.json()["message"]
    assert msg["messagetext"] == "edited"
    assert msg["timestamp"] == NOTE["timestamp"]
    assert msg["modifiedtime"] is not None

    r = await client.get(f"/read/{msg_id}", headers=actor_headers)
    assert r.json()["message"]["messagetext"] == "edited"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_needs_a_change(client, actor_headers):
    msg_id = await _send(client, actor_headers)
    r = await client.put(f"/edit/{msg_id}", json={"message": {}}, headers=actor_headers)
    assert r.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_author_may_edit_or_remove(client, db_session):
    msg = await message_service.create_message(db_session, candidate(NOTE, userid="someone-else"))
    headers = {"X-User-Id": ACTOR}

    r = await client.put(f"/edit/{msg.id}", json={"message": {"messagetext": "x"}}, headers=headers)
    assert r.status_code == 401
    r = await client.delete(f"/remove/{msg.id}", headers=headers)
    assert r.status_code == 401

    r = await client.get(f"/read/{msg.id}", headers=headers)
    assert r.json()["message"]["messagetext"] == NOTE["messagetext"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_removed_message_disappears(client, actor_headers):
    root_id = await _send(client, actor_headers)
    reply_id = await _reply(client, actor_headers, root_id, "going away")

    r = await client.delete(f"/remove/{reply_id}", headers=actor_headers)
    assert r.status_code == 200
    assert r.json() == {"id": reply_id}

    r = await client.get(f"/read/{reply_id}", headers=actor_headers)
    assert r.status_code == 404
    r = await client.get(f"/thread/{root_id}", headers=actor_headers)
    assert [m["id"] for m in r.json()["messages"]] == [root_id]
    r = await client.get("/all/999", headers=actor_headers)
    assert [m["id"] for m in r.json()["messages"]] == [root_id]

    r = await client.delete(f"/remove/{reply_id}", headers=actor_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "edits, field",
    [
        ({"messagetext": "   ", "timestamp": "2014-01-01T00:00:00Z"}, "messagetext"),
        ({"messagetext": "ok", "timestamp": "   "}, "timestamp"),
    ],
)
async def test_edit_with_blank_field_is_rejected(client, actor_headers, edits, field):
    msg_id = await _send(client, actor_headers)
    r = await client.put(f"/edit/{msg_id}", json={"message": edits}, headers=actor_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == {field: "property is required"}

    msg = (await client.get(f"/read/{msg_id}", headers=actor_headers)).json()["message"]
    assert msg["messagetext"] == NOTE["messagetext"]
    assert msg["timestamp"] == NOTE["timestamp"]
    assert msg["modifiedtime"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reply_ignores_author_group_and_parent_in_body(client, actor_headers):
    root_id = await _send(client, actor_headers)
    other_id = await _send(client, actor_headers)
    body = {"message": {"userid": "someone-else", "groupid": "elsewhere", "parentmessage": other_id,
                        "timestamp": "2013-11-29T10:00:00Z", "messagetext": "hi"}}
    r = await client.post(f"/reply/{root_id}", json=body, headers=actor_headers)
    assert r.status_code == 201

    msg = (await client.get(f"/read/{r.json()['id']}", headers=actor_headers)).json()["message"]
    assert msg["userid"] == ACTOR
    assert msg["groupid"] == "999"
    assert msg["parentmessage"] == root_id
