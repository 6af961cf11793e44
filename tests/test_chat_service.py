import asyncio
import json

import pytest
from fastapi import HTTPException

from backend.services.broadcast_hub import Connection
from backend.services.chat_service import send_message
from backend.services.llm_services import CompletionClient
from conftest import FakeCompletion


def _listener(hub):
    conn = Connection()
    hub.register(conn)
    conn.open()
    return conn


def _events(conn):
    out = []
    while not conn.outbox.empty():
        item = conn.outbox.get_nowait()
        if item is not None:
            out.append(json.loads(item))
    return out


def test_success_persists_both_messages_logs_and_publishes(store, hub, seeded):
    chat = seeded["chat"]
    listener = _listener(hub)
    completion = FakeCompletion(reply="Hi there")

    result = asyncio.run(send_message(store, hub, completion, seeded["user"], chat["id"], "Hi"))

    assert [m["role"] for m in result] == ["user", "assistant"]
    assert result[1]["content"] == "Hi there"

    stored = store.get_messages(chat["id"])
    assert [(m["role"], m["content"]) for m in stored] == [("user", "Hi"), ("assistant", "Hi there")]

    logs = store.get_logs()
    assert len(logs) == 1
    assert logs[0]["status"] == "success"
    assert logs[0]["message_sent"] == "Hi"
    assert logs[0]["message_received"] == "Hi there"
    assert logs[0]["model_name"] == "GPT-4o mini"
    assert logs[0]["provider_url"] == "https://openrouter.ai/api/v1"
    assert logs[0]["chat_title"] == "First chat"
    assert logs[0]["username"] == "alice"

    events = _events(listener)
    assert len(events) == 1
    assert events[0]["type"] == "message"
    assert events[0]["chatId"] == chat["id"]
    assert events[0]["message"]["id"] == result[1]["id"]


def test_failure_keeps_user_message_and_logs_error(store, hub, seeded):
    chat = seeded["chat"]
    listener = _listener(hub)
    completion = FakeCompletion(fail="Provider returned HTTP 401: bad key")

    result = asyncio.run(send_message(store, hub, completion, seeded["user"], chat["id"], "Hi"))

    assert len(result) == 1
    assert result[0]["role"] == "user"
    assert [m["role"] for m in store.get_messages(chat["id"])] == ["user"]

    logs = store.get_logs()
    assert len(logs) == 1
    assert logs[0]["status"] == "error"
    assert logs[0]["message_received"] == "No response generated"
    assert "401" in logs[0]["error_message"]

    assert _events(listener) == []


def test_unknown_chat_is_not_found(store, hub, seeded):
    completion = FakeCompletion()

    with pytest.raises(HTTPException) as exc:
        asyncio.run(send_message(store, hub, completion, seeded["user"], "ffffffffffffffffffffffff", "Hi"))

    assert exc.value.status_code == 404
    assert completion.calls == []
    assert store.get_logs() == []


def test_someone_elses_chat_is_not_found(store, hub, seeded):
    intruder = {"_id": "u2", "user_id": "u2", "username": "mallory", "sid": "s2"}

    with pytest.raises(HTTPException) as exc:
        asyncio.run(send_message(store, hub, FakeCompletion(), intruder, seeded["chat"]["id"], "Hi"))

    assert exc.value.status_code == 404
    assert store.get_messages(seeded["chat"]["id"]) == []


def test_chat_system_prompt_is_sent_with_the_message(store, hub, seeded):
    prompt = store.create_prompt("u1", {"name": "Pirate", "content": "Talk like a pirate."})
    store.update_chat(seeded["chat"]["id"], {"system_prompt_id": prompt["id"]})
    completion = FakeCompletion()

    asyncio.run(send_message(store, hub, completion, seeded["user"], seeded["chat"]["id"], "Hi"))

    assert completion.calls == [("Hi", seeded["model"]["id"], "Talk like a pirate.")]


def test_failure_log_survives_a_deleted_model(store, hub, seeded):
    store.delete_model(seeded["model"]["id"])
    completion = FakeCompletion(fail="Model not found")

    asyncio.run(send_message(store, hub, completion, seeded["user"], seeded["chat"]["id"], "Hi"))

    log = store.get_logs()[0]
    assert log["status"] == "error"
    assert log["model_name"] is None
    assert log["provider_url"] is None


def test_bad_provider_url_is_logged_as_an_error(store, hub, seeded):
    chat = seeded["chat"]
    store.update_provider(seeded["provider"]["id"], {"base_url": "http://localhost:notaport/v1"})
    listener = _listener(hub)

    result = asyncio.run(send_message(store, hub, CompletionClient(store, timeout=5), seeded["user"], chat["id"], "Hi"))

    assert [m["role"] for m in result] == ["user"]
    logs = store.get_logs()
    assert [entry["status"] for entry in logs] == ["error"]
    assert "Provider request failed" in logs[0]["error_message"]
    assert _events(listener) == []
