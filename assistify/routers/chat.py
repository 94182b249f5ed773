"""
Chat endpoints: thread CRUD and conversation turns for the authenticated user.

POST   /chat/new   create a chat
GET    /chat/all   list the caller's chats, newest first
POST   /chat/{id}  add a conversation turn (answer generated when not supplied)
GET    /chat/{id}  list a chat's conversations, oldest first
DELETE /chat/{id}  delete a chat and its conversations
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from assistify.dependencies import get_conversation_service, get_current_user
from assistify.models import User
from assistify.schemas.chat import (
    AppendConversationRequest,
    AppendConversationResponse,
    ChatCreatedResponse,
    ChatRead,
    ConversationRead,
    MessageResponse,
)
from assistify.services.conversations import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "/new",
    response_model=ChatCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_chat(
    user: User = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> ChatCreatedResponse:
    chat = await service.create_chat(user.id)
    return ChatCreatedResponse(chat=ChatRead.model_validate(chat))


@router.get("/all", response_model=list[ChatRead])
async def list_chats(
    user: User = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> list[ChatRead]:
    chats = await service.list_chats(user.id)
    return [ChatRead.model_validate(c) for c in chats]


@router.post(
    "/{chat_id}",
    response_model=AppendConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_conversation(
    chat_id: str,
    body: AppendConversationRequest,
    user: User = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> AppendConversationResponse:
    """
    Append a question/answer turn.

    Uses body.answer when given; otherwise the answer is generated server-side.
    Either way it is sanitized before it is stored. The conversation and the
    chat's latestMessage are written in one transaction.
    """
    result = await service.append(
        user.id,
        chat_id,
        body.question,
        answer=body.answer,
        system_prompt=body.system_prompt,
    )
    return AppendConversationResponse(
        conversation=ConversationRead.model_validate(result.conversation),
        updated_chat=ChatRead.model_validate(result.chat),
    )


@router.get("/{chat_id}", response_model=list[ConversationRead])
async def list_conversations(
    chat_id: str,
    limit: Optional[int] = Query(default=None),
    skip: Optional[int] = Query(default=None),
    user: User = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> list[ConversationRead]:
    """Paginated conversations of a chat (limit defaults to 100, capped at 1000)."""
    conversations = await service.list_conversations(user.id, chat_id, limit=limit, skip=skip)
    return [ConversationRead.model_validate(c) for c in conversations]


@router.delete("/{chat_id}", response_model=MessageResponse)
async def delete_chat(
    chat_id: str,
    user: User = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> MessageResponse:
    await service.delete_chat(user.id, chat_id)
    return MessageResponse(message="Chat and its conversations deleted successfully")
