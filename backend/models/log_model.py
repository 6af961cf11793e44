# models/log_model.py
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime, timezone

NO_RESPONSE = "No response generated"


class InteractionLog(BaseModel):
    """One record per completion attempt, successful or not."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    username: str
    model_name: Optional[str] = None
    provider_url: Optional[str] = None
    chat_title: Optional[str] = None
    message_sent: str
    message_received: str = NO_RESPONSE
    status: Literal["success", "error"]
    error_message: Optional[str] = None
