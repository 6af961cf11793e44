import asyncio
import json

import httpx
import pytest

from backend.services.llm_services import CompletionClient, CompletionError


def _client(store, handler):
    return CompletionClient(store, timeout=5, transport=httpx.MockTransport(handler))


def _ok(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def test_complete_posts_to_provider_and_returns_text(store, seeded):
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return _ok("pong")

    text = asyncio.run(_client(store, handler).complete("ping", seeded["model"]["id"]))

    assert text == "pong"
    assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-or-1234567890abcdef"
    assert seen["body"] == {
        "model": "openai/gpt-4o-mini",
        "messages": [{"role": "user", "content": "ping"}],
        "stream": False,
    }


def test_system_prompt_goes_first(store, seeded):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return _ok("ok")

    asyncio.run(_client(store, handler).complete("ping", seeded["model"]["id"], system_prompt="Be brief."))

    assert bodies[0]["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "ping"},
    ]


def test_empty_content_becomes_placeholder(store, seeded):
    text = asyncio.run(_client(store, lambda r: _ok(None)).complete("ping", seeded["model"]["id"]))
    assert text == "No response generated"


@pytest.mark.parametrize("response", [
    httpx.Response(401, json={"error": "invalid api key"}),
    httpx.Response(200, text="<html>not json</html>"),
    httpx.Response(200, json={"error": "no choices here"}),
    httpx.Response(200, json={"choices": []}),
])
def test_provider_failures_raise_completion_error(store, seeded, response):
    with pytest.raises(CompletionError):
        asyncio.run(_client(store, lambda r: response).complete("ping", seeded["model"]["id"]))


def test_network_error_raises_completion_error(store, seeded):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CompletionError) as exc:
        asyncio.run(_client(store, handler).complete("ping", seeded["model"]["id"]))
    assert "connection refused" in str(exc.value)


def test_missing_model_or_provider(store, seeded):
    client = _client(store, lambda r: _ok("unused"))

    with pytest.raises(CompletionError, match="Model not found"):
        asyncio.run(client.complete("ping", "ffffffffffffffffffffffff"))

    store.delete_provider(seeded["provider"]["id"])
    with pytest.raises(CompletionError, match="Provider not found"):
        asyncio.run(client.complete("ping", seeded["model"]["id"]))


def test_unusable_base_url_raises_completion_error(store, seeded):
    # stored before URL validation existed, or written straight to the db
    store.update_provider(seeded["provider"]["id"], {"base_url": "http://localhost:notaport/v1"})
    client = CompletionClient(store, timeout=5)

    with pytest.raises(CompletionError, match="Provider request failed"):
        asyncio.run(client.complete("ping", seeded["model"]["id"]))


def test_incomplete_provider_record_raises_completion_error(store, seeded):
    store.providers.update_one({}, {"$unset": {"api_key": ""}})

    with pytest.raises(CompletionError, match="misconfigured"):
        asyncio.run(_client(store, lambda r: _ok("unused")).complete("ping", seeded["model"]["id"]))
