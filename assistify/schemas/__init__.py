"""Pydantic schemas package."""

from assistify.schemas.chat import (
    AppendConversationRequest,
    AppendConversationResponse,
    ChatCreatedResponse,
    ChatRead,
    ConversationRead,
    MessageResponse,
)
from assistify.schemas.user import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    UserRead,
    VerifyRequest,
    VerifyResponse,
)

__all__ = [
    "AppendConversationRequest", "AppendConversationResponse",
    "ChatCreatedResponse", "ChatRead", "ConversationRead", "MessageResponse",
    "LoginRequest", "LoginResponse", "ProfileResponse", "UserRead",
    "VerifyRequest", "VerifyResponse",
]
