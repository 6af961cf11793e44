# models/provider_model.py
import httpx
from pydantic import AfterValidator, BaseModel, Field, field_validator
from typing import Annotated, Optional


def _clean_url(value: str) -> str:
    value = value.strip().rstrip("/")
    try:
        httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ValueError(f"invalid base_url: {e}") from e
    return value


# providers are addressed as "<base_url>/chat/completions"
BaseUrl = Annotated[str, Field(pattern=r"^https?://"), AfterValidator(_clean_url)]


class ProviderIn(BaseModel):
    name: str = Field(min_length=1)
    base_url: BaseUrl
    api_key: str = Field(min_length=1)


class ProviderUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    base_url: Optional[BaseUrl] = None
    api_key: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None

    # omit a field to leave it alone; null is not a value for any of them
    @field_validator("name", "base_url", "api_key", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ProviderOut(BaseModel):
    id: str
    name: str
    base_url: str
    api_key: str  # always masked
    user_id: str
    is_active: bool = True
