# models/chat_model.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional
from datetime import datetime


class ChatIn(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(min_length=1)
    model_id: str
    system_prompt_id: Optional[str] = None
    is_document: bool = False
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ChatUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = Field(default=None, min_length=1)
    model_id: Optional[str] = None
    system_prompt_id: Optional[str] = None
    is_document: Optional[bool] = None
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    # system_prompt_id, content and metadata may be cleared with null
    @field_validator("name", "model_id", "is_document")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class MessageIn(BaseModel):
    chat_id: str
    role: str = Field(default="user", pattern="^user$")
    content: str = Field(min_length=1)


class MessageOut(BaseModel):
    id: str
    chat_id: str
    role: str
    content: str
    created_at: datetime
