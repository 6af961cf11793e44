# models/user_model.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone


class UserData(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=6, max_length=64)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username cannot be blank")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if " " in value:
            raise ValueError("Password cannot contain spaces")
        # return plain password; hashing happens in routes
        return value


class LoginIn(BaseModel):
    username: str
    password: str
