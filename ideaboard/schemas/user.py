from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOGIN_PATTERN = r"^[A-Za-z0-9._@+-]+$"


class UserCreate(BaseModel):
    login: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=LOGIN_PATTERN,
        json_schema_extra={"example": "facilitator@example.com"},
    )
    password: str = Field(
        ..., min_length=8, json_schema_extra={"example": "SecurePassword123!"}
    )

    @field_validator("login", mode="before")
    @classmethod
    def normalize_login(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class TokenRequest(BaseModel):
    username: str
    password: str


class User(BaseModel):
    user_id: str
    login: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    login_successful: bool
    user_id: str
    login: str
