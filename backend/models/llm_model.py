# models/llm_model.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class ModelIn(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(min_length=1)
    provider_id: str
    model_id: str = Field(min_length=1)  # identifier sent to the provider, e.g. "gpt-4o-mini"
    is_default: bool = False


class ModelUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = Field(default=None, min_length=1)
    model_id: Optional[str] = Field(default=None, min_length=1)
    is_default: Optional[bool] = None

    @field_validator("name", "model_id", "is_default")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ModelOut(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: str
    name: str
    provider_id: str
    model_id: str
    is_default: bool = False
