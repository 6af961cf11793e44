from contextlib import ExitStack


def _connect(stack, client):
    ws = stack.enter_context(client.websocket_connect("/ws"))
    greeting = ws.receive_json()
    assert greeting["type"] == "connected"
    return ws


def test_document_update_reaches_the_other_client(client, hub):
    with ExitStack() as stack:
        alice = _connect(stack, client)
        bob = _connect(stack, client)
        assert len(hub) == 2

        alice.send_json({"type": "document_update", "chatId": "c1", "content": "# Title", "version": 3})

        assert bob.receive_json() == {"type": "document_update", "chatId": "c1", "content": "# Title", "version": 3}


def test_new_assistant_message_is_announced(client, hub, auth, chat_setup):
    chat_id = chat_setup["chat"]["id"]
    with ExitStack() as stack:
        watcher = _connect(stack, client)

        r = client.post("/api/messages", headers=auth, json={"chat_id": chat_id, "content": "Hi"})
        assistant = r.json()[1]

        event = watcher.receive_json()
        assert event["type"] == "message"
        assert event["chatId"] == chat_id
        assert event["message"]["id"] == assistant["id"]
        assert event["message"]["content"] == "Hello from the model"


def test_failed_completion_announces_nothing(client, hub, auth, chat_setup, completion):
    completion.fail = "Provider returned HTTP 500"
    with ExitStack() as stack:
        watcher = _connect(stack, client)
        client.post("/api/messages", headers=auth, json={"chat_id": chat_setup["chat"]["id"], "content": "Hi"})

        # a relay sent afterwards is the next thing the watcher sees
        other = _connect(stack, client)
        other.send_json({"type": "document_update", "chatId": "marker"})

        assert watcher.receive_json()["chatId"] == "marker"


def test_disconnect_unregisters(client, hub):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        assert len(hub) == 1
    assert len(hub) == 0
