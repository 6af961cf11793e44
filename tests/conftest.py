import mongomock
import pytest
from fastapi.testclient import TestClient

from backend.database.mongodb import get_db
from backend.database.store import DomainStore
from backend.main import app
from backend.services.broadcast_hub import BroadcastHub, get_hub
from backend.services.llm_services import CompletionError, get_completion_client


class FakeCompletion:
    """Stands in for CompletionClient; set `fail` to make every call raise."""

    def __init__(self, reply: str = "Hello from the model", fail: str | None = None):
        self.reply = reply
        self.fail = fail
        self.calls = []

    async def complete(self, prompt_text, model_id, system_prompt=None):
        self.calls.append((prompt_text, model_id, system_prompt))
        if self.fail:
            raise CompletionError(self.fail)
        return self.reply


@pytest.fixture
def mongo_db():
    """A fresh in-memory database for each test."""
    return mongomock.MongoClient()["test_db"]


@pytest.fixture
def store(mongo_db):
    return DomainStore(mongo_db)


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def seeded(store):
    """One user's provider, model and chat, created straight through the store."""
    provider = store.create_provider("u1", {
        "name": "OpenRouter",
        "base_url": "https://openrouter.ai/api/v1",
        "api_key": "sk-or-1234567890abcdef",
    })
    model = store.create_model({"name": "GPT-4o mini", "provider_id": provider["id"], "model_id": "openai/gpt-4o-mini"})
    chat = store.create_chat("u1", {"name": "First chat", "model_id": model["id"]})
    return {"user": {"_id": "u1", "user_id": "u1", "username": "alice", "sid": "s1"},
            "provider": provider, "model": model, "chat": chat}


@pytest.fixture
def client(mongo_db, hub, completion):
    app.dependency_overrides[get_db] = lambda: mongo_db
    app.dependency_overrides[get_hub] = lambda: hub
    app.dependency_overrides[get_completion_client] = lambda: completion
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def signup_and_login(client, username="alice", password="secret123") -> dict:
    r = client.post("/api/register", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/api/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth(client):
    return signup_and_login(client)


@pytest.fixture
def chat_setup(client, auth):
    """Provider, model and chat created through the API for the logged-in user."""
    provider = client.post("/api/providers", headers=auth, json={
        "name": "Local",
        "base_url": "http://localhost:11434/v1/",
        "api_key": "sk-local-abcdefghijkl",
    }).json()
    model = client.post("/api/models", headers=auth, json={
        "name": "Llama", "provider_id": provider["id"], "model_id": "llama3",
    }).json()
    chat = client.post("/api/chats", headers=auth, json={"name": "Chat", "model_id": model["id"]}).json()
    return {"provider": provider, "model": model, "chat": chat}
