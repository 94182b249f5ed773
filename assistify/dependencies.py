"""
FastAPI dependencies.

Services are built once in the lifespan (see assistify.main) and kept on
app.state; these accessors hand them to the routers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from assistify.errors import Unauthenticated
from assistify.models import User
from assistify.services.auth import AuthService
from assistify.services.conversations import ConversationService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_conversation_service(request: Request) -> ConversationService:
    return request.app.state.conversation_service


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the caller from "Authorization: Bearer <jwt>" (or a bare "token" header)."""
    credential = _bearer_token(authorization) or token
    if not credential:
        raise Unauthenticated("You are not authorized to access this resource.")
    return await auth.authenticate(credential)
