from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    full_name: str = ""


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    full_name: str = ""
    role: Literal["user", "admin"] = "user"
    active: bool = Field(default=True, validation_alias=AliasChoices("is_active", "active"))
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserInfo
