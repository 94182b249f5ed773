"""Pydantic schemas for the login / profile endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from assistify.schemas.chat import READ_CONFIG

EMAIL_PATTERN = r"^[\w-]+(\.[\w-]+)*@([\w-]+\.)+[a-zA-Z]{2,7}$"


class LoginRequest(BaseModel):
    """Body for POST /user/login."""

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=320)


class LoginResponse(BaseModel):
    model_config = READ_CONFIG

    message: str = "Verification email sent"
    verify_token: str


class VerifyRequest(BaseModel):
    """Body for POST /user/verify; otp may arrive as a number."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    verify_token: str = Field(..., min_length=1)
    otp: Union[str, int]


class UserRead(BaseModel):
    model_config = READ_CONFIG

    id: uuid.UUID
    email: str
    created_at: datetime
    updated_at: datetime


class VerifyResponse(BaseModel):
    model_config = READ_CONFIG

    message: str = "Logged In Successfully"
    token: str
    user: UserRead


class ProfileResponse(BaseModel):
    model_config = READ_CONFIG

    user: UserRead
