# models/prompt_model.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class PromptIn(BaseModel):
    name: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_shared: bool = False


class PromptUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    is_shared: Optional[bool] = None

    @field_validator("name", "content", "is_shared")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v
