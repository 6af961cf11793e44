# backend/database/store.py
"""
Domain Store

CRUD over the MongoDB collections that back providers, models, prompts,
chats, messages and interaction logs.

- Every record handed out carries its ObjectId as a string under "id".
- Foreign keys (user_id, provider_id, model_id, chat_id, system_prompt_id)
  are stored as strings.
- Lookups return None for missing records and for malformed ids; they
  never raise for "not found".
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from backend.database.mongodb import get_db

logger = logging.getLogger("domain_store")


def _oid(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _out(doc: Optional[dict]) -> Optional[dict]:
    """Mongo document -> plain record with a string "id"."""
    if doc is None:
        return None
    rec = {k: v for k, v in doc.items() if k != "_id"}
    rec["id"] = str(doc["_id"])
    return rec


class DomainStore:
    def __init__(self, db: Database):
        self.db = db
        self.providers = db["providers"]
        self.models = db["models"]
        self.prompts = db["prompts"]
        self.chats = db["chats"]
        self.messages = db["messages"]
        self.logs = db["logs"]

    # ---------------- Indexes ----------------
    def ensure_indexes(self) -> None:
        self.providers.create_index([("user_id", ASCENDING)])
        self.models.create_index([("provider_id", ASCENDING)])
        self.prompts.create_index([("user_id", ASCENDING), ("is_shared", ASCENDING)])
        self.chats.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        self.messages.create_index([("chat_id", ASCENDING), ("created_at", ASCENDING)])
        self.logs.create_index([("username", ASCENDING), ("timestamp", DESCENDING)])

    # ---------------- Generic helpers ----------------
    def _get(self, collection, record_id) -> Optional[dict]:
        oid = _oid(record_id)
        if oid is None:
            return None
        return _out(collection.find_one({"_id": oid}))

    def _insert(self, collection, doc: dict) -> dict:
        res = collection.insert_one(doc)
        doc["_id"] = res.inserted_id
        return _out(doc)

    def _update(self, collection, record_id, changes: Dict[str, Any]) -> Optional[dict]:
        oid = _oid(record_id)
        if oid is None:
            return None
        changes = {k: v for k, v in changes.items() if k not in ("id", "_id")}
        if changes:
            collection.update_one({"_id": oid}, {"$set": changes})
        return _out(collection.find_one({"_id": oid}))

    def _delete(self, collection, record_id) -> int:
        oid = _oid(record_id)
        if oid is None:
            return 0
        return collection.delete_one({"_id": oid}).deleted_count

    # ---------------- Providers ----------------
    def get_providers(self, user_id: str) -> List[dict]:
        cur = self.providers.find({"user_id": str(user_id)}).sort("_id", ASCENDING)
        return [_out(p) for p in cur]

    def get_provider(self, provider_id) -> Optional[dict]:
        return self._get(self.providers, provider_id)

    def create_provider(self, user_id: str, data: Dict[str, Any]) -> dict:
        doc = {**data, "user_id": str(user_id), "is_active": True}
        return self._insert(self.providers, doc)

    def update_provider(self, provider_id, changes: Dict[str, Any]) -> Optional[dict]:
        return self._update(self.providers, provider_id, changes)

    def delete_provider(self, provider_id) -> int:
        return self._delete(self.providers, provider_id)

    # ---------------- Models ----------------
    def get_models(self, provider_id) -> List[dict]:
        cur = self.models.find({"provider_id": str(provider_id)}).sort("_id", ASCENDING)
        return [_out(m) for m in cur]

    def get_model(self, model_id) -> Optional[dict]:
        return self._get(self.models, model_id)

    def create_model(self, data: Dict[str, Any]) -> dict:
        doc = {**data, "provider_id": str(data["provider_id"])}
        doc["is_default"] = bool(doc.get("is_default") or False)
        return self._insert(self.models, doc)

    def update_model(self, model_id, changes: Dict[str, Any]) -> Optional[dict]:
        return self._update(self.models, model_id, changes)

    def delete_model(self, model_id) -> int:
        return self._delete(self.models, model_id)

    # ---------------- System prompts ----------------
    def get_prompts(self, user_id: str) -> List[dict]:
        cur = self.prompts.find(
            {"$or": [{"user_id": str(user_id)}, {"is_shared": True}]}
        ).sort("_id", ASCENDING)
        return [_out(p) for p in cur]

    def get_prompt(self, prompt_id) -> Optional[dict]:
        return self._get(self.prompts, prompt_id)

    def create_prompt(self, user_id: str, data: Dict[str, Any]) -> dict:
        doc = {**data, "user_id": str(user_id)}
        doc["is_shared"] = bool(doc.get("is_shared") or False)
        return self._insert(self.prompts, doc)

    def update_prompt(self, prompt_id, changes: Dict[str, Any]) -> Optional[dict]:
        return self._update(self.prompts, prompt_id, changes)

    def delete_prompt(self, prompt_id) -> int:
        return self._delete(self.prompts, prompt_id)

    # ---------------- Chats ----------------
    def get_chats(self, user_id: str) -> List[dict]:
        cur = self.chats.find({"user_id": str(user_id)}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return [_out(c) for c in cur]

    def get_chat(self, chat_id) -> Optional[dict]:
        return self._get(self.chats, chat_id)

    def create_chat(self, user_id: str, data: Dict[str, Any]) -> dict:
        doc = {
            "name": data["name"],
            "user_id": str(user_id),
            "model_id": str(data["model_id"]),
            "system_prompt_id": str(data["system_prompt_id"]) if data.get("system_prompt_id") else None,
            "is_document": bool(data.get("is_document") or False),
            "content": data.get("content"),
            "metadata": data.get("metadata"),
            "created_at": _now(),
        }
        return self._insert(self.chats, doc)

    def update_chat(self, chat_id, changes: Dict[str, Any]) -> Optional[dict]:
        return self._update(self.chats, chat_id, changes)

    def delete_chat(self, chat_id) -> int:
        deleted = self._delete(self.chats, chat_id)
        if deleted:
            res = self.messages.delete_many({"chat_id": str(chat_id)})
            logger.info(f"Chat {chat_id} deleted with {res.deleted_count} messages")
        return deleted

    # ---------------- Messages ----------------
    def get_messages(self, chat_id) -> List[dict]:
        cur = self.messages.find({"chat_id": str(chat_id)}).sort(
            [("created_at", ASCENDING), ("_id", ASCENDING)]
        )
        return [_out(m) for m in cur]

    def create_message(self, chat_id, role: str, content: str) -> dict:
        doc = {
            "chat_id": str(chat_id),
            "role": role,
            "content": content,
            "created_at": _now(),
        }
        return self._insert(self.messages, doc)

    # ---------------- Interaction logs ----------------
    def create_log(self, entry: Dict[str, Any]) -> dict:
        doc = dict(entry)
        doc.setdefault("timestamp", _now())
        doc.setdefault("error_message", None)
        return self._insert(self.logs, doc)

    def get_logs(self, username: Optional[str] = None) -> List[dict]:
        query = {"username": username} if username else {}
        cur = self.logs.find(query).sort([("timestamp", DESCENDING), ("_id", DESCENDING)])
        return [_out(entry) for entry in cur]


def get_store(db: Database = Depends(get_db)) -> DomainStore:
    """FastAPI dependency: a DomainStore over the shared database."""
    return DomainStore(db)
