from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.database.store import DomainStore, get_store
from backend.models.chat_model import ChatIn, ChatUpdate, MessageIn, MessageOut
from backend.routes.model_routes import get_owned_model
from backend.services.broadcast_hub import BroadcastHub, get_hub
from backend.services.chat_service import get_owned_chat, send_message
from backend.services.llm_services import CompletionClient, get_completion_client
from backend.utils.jwt_handler import require_user

router = APIRouter(prefix="/api", tags=["Chats"])

logger = logging.getLogger("chat_routes")


# ---------------- Helpers ----------------
def _check_prompt(store: DomainStore, prompt_id: str | None, user: dict) -> None:
    """System prompts may be the user's own or shared."""
    if not prompt_id:
        return
    prompt = store.get_prompt(prompt_id)
    if not prompt or (prompt.get("user_id") != user["user_id"] and not prompt.get("is_shared")):
        raise HTTPException(status_code=404, detail="Prompt not found")


# ---------------- Chats ----------------
@router.get("/chats")
def list_chats(user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return store.get_chats(user["user_id"])


@router.post("/chats", status_code=201)
def create_chat(body: ChatIn, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    get_owned_model(store, body.model_id, user)
    _check_prompt(store, body.system_prompt_id, user)
    chat = store.create_chat(user["user_id"], body.model_dump())
    logger.info(f"Chat {chat['id']} created by {user['username']} (document={chat['is_document']})")
    return chat


@router.get("/chats/{chat_id}")
def get_chat(chat_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return get_owned_chat(store, chat_id, user["user_id"])


#-- document edits land here; socket events only tell other clients to re-fetch --#
@router.patch("/chats/{chat_id}")
def update_chat(
    chat_id: str,
    body: ChatUpdate,
    user=Depends(require_user),
    store: DomainStore = Depends(get_store),
):
    chat = get_owned_chat(store, chat_id, user["user_id"])
    changes = body.model_dump(exclude_unset=True)
    if "model_id" in changes:
        get_owned_model(store, changes["model_id"], user)
    if "system_prompt_id" in changes:
        _check_prompt(store, changes["system_prompt_id"], user)
    return store.update_chat(chat["id"], changes)


@router.delete("/chats/{chat_id}", status_code=204)
def delete_chat(chat_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    chat = get_owned_chat(store, chat_id, user["user_id"])
    store.delete_chat(chat["id"])
    return Response(status_code=204)


# ---------------- Messages ----------------
@router.get("/chats/{chat_id}/messages", response_model=List[MessageOut])
def list_messages(chat_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    chat = get_owned_chat(store, chat_id, user["user_id"])
    return store.get_messages(chat["id"])


@router.post("/messages", response_model=List[MessageOut], status_code=201)
async def post_message(
    body: MessageIn,
    user=Depends(require_user),
    store: DomainStore = Depends(get_store),
    hub: BroadcastHub = Depends(get_hub),
    completion: CompletionClient = Depends(get_completion_client),
):
    """
    Send a user message and wait for the assistant's reply.

    Returns both messages on success. When the provider call fails, only
    the user's own message comes back; the failure is in /api/logs.
    """
    return await send_message(store, hub, completion, user, body.chat_id, body.content)


# ---------------- Interaction logs ----------------
@router.get("/logs")
def list_logs(user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return store.get_logs(username=user["username"])
