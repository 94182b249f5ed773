"""
Login endpoints: two-step email OTP exchange and the caller's profile.

POST /user/login   mail a code, return a short-lived verifyToken
POST /user/verify  exchange verifyToken + otp for a session token
GET  /user/me      the authenticated user
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from assistify.dependencies import get_auth_service, get_current_user
from assistify.models import User
from assistify.schemas.user import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    UserRead,
    VerifyRequest,
    VerifyResponse,
)
from assistify.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/login", response_model=LoginResponse)
async def log_in(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    verify_token = await auth.request_login(body.email)
    return LoginResponse(verify_token=verify_token)


@router.post("/verify", response_model=VerifyResponse)
async def verify(
    body: VerifyRequest,
    auth: AuthService = Depends(get_auth_service),
) -> VerifyResponse:
    token, user = await auth.verify_login(body.verify_token, body.otp)
    return VerifyResponse(token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=ProfileResponse)
async def my_profile(user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(user=UserRead.model_validate(user))
