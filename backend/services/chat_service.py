"""
Chat Orchestrator

One round trip: user message in -> persisted -> completion -> assistant
message persisted, interaction logged, subscribers notified.

The user message is always kept. A failed completion is recorded in the
interaction log and the caller only gets its own message back.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException

from backend.database.store import DomainStore
from backend.models.event_model import MessageEvent
from backend.models.log_model import InteractionLog
from backend.services.broadcast_hub import BroadcastHub
from backend.services.llm_services import CompletionClient, CompletionError

logger = logging.getLogger("chat_service")


# ---------------- Ownership lookups ----------------
def get_owned_chat(store: DomainStore, chat_id: str, user_id: str) -> dict:
    chat = store.get_chat(chat_id)
    if not chat or chat.get("user_id") != str(user_id):
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat


def _system_prompt_text(store: DomainStore, chat: dict) -> Optional[str]:
    if not chat.get("system_prompt_id"):
        return None
    prompt = store.get_prompt(chat["system_prompt_id"])
    return prompt["content"] if prompt else None


def _log_entry(store: DomainStore, chat: dict, username: str, sent: str, **result) -> InteractionLog:
    model = store.get_model(chat["model_id"])
    provider = store.get_provider(model["provider_id"]) if model else None
    return InteractionLog(
        username=username,
        model_name=model["name"] if model else None,
        provider_url=provider["base_url"] if provider else None,
        chat_title=chat.get("name"),
        message_sent=sent,
        **result,
    )


# ---------------- Send message ----------------
async def send_message(
    store: DomainStore,
    hub: BroadcastHub,
    completion: CompletionClient,
    user: Dict[str, str],
    chat_id: str,
    content: str,
) -> List[dict]:
    """
    Returns [user_message, assistant_message] on success and
    [user_message] when the completion failed.
    """
    chat = get_owned_chat(store, chat_id, user["user_id"])

    user_msg = store.create_message(chat["id"], "user", content)

    try:
        answer = await completion.complete(content, chat["model_id"], _system_prompt_text(store, chat))
    except CompletionError as e:
        logger.error(f"Completion failed for chat {chat['id']}: {e}")
        entry = _log_entry(store, chat, user["username"], content, status="error", error_message=str(e))
        store.create_log(entry.model_dump())
        return [user_msg]

    asst_msg = store.create_message(chat["id"], "assistant", answer)
    entry = _log_entry(store, chat, user["username"], content, message_received=answer, status="success")
    store.create_log(entry.model_dump())

    hub.publish(MessageEvent(chatId=chat["id"], message=asst_msg).model_dump())
    return [user_msg, asst_msg]
