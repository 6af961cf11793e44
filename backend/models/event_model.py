# models/event_model.py
"""
Socket event payloads.

These describe the payload contract only. Consumers filter on chatId and
treat every event as a hint to re-fetch, never as complete state.
"""
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Literal, Union

DOCUMENT_UPDATE = "document_update"
MESSAGE = "message"
CONNECTED = "connected"


class DocumentUpdateEvent(BaseModel):
    # edit payload fields ride along untouched
    model_config = ConfigDict(extra="allow")

    type: Literal["document_update"]
    chatId: Union[str, int]


class MessageEvent(BaseModel):
    type: Literal["message"] = MESSAGE
    chatId: str
    message: Dict[str, Any]
