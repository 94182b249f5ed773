"""
Conversation service: chat ownership checks and the append workflow.

append() runs every turn through the same stages:

  validate   question must be non-blank text, chat id must be a UUID
  authorize  chat must exist (NotFound) and belong to the caller (Forbidden)
  generate   only when the client sent no answer; any failure aborts here
  sanitize   strip markdown / HTML from the answer
  persist    conversation insert + chat pointer update, one transaction

Nothing is written before the persist stage, so an error in any earlier
stage leaves the database untouched.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from assistify.errors import Forbidden, InvalidInput, NotFound
from assistify.models import Chat, Conversation
from assistify.services.generation import CompletionClient
from assistify.services.sanitizer import sanitize_answer
from assistify.services.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class AppendResult:
    conversation: Conversation
    chat: Chat


def parse_chat_id(raw: Any) -> uuid.UUID:
    """Return the chat id as a UUID, or raise InvalidInput."""
    if isinstance(raw, uuid.UUID):
        return raw
    if not raw or not isinstance(raw, str):
        raise InvalidInput("Missing id parameter")
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise InvalidInput("Invalid chat ID format")


def _validate_question(question: Any) -> str:
    if not isinstance(question, str) or not question.strip():
        raise InvalidInput("question is required and must be a non-empty string")
    return question


class ConversationService:
    """Chat and conversation operations on behalf of an authenticated user."""

    def __init__(self, storage: Storage, generator: CompletionClient) -> None:
        self._storage = storage
        self._generator = generator

    async def _owned_chat(self, user_id: uuid.UUID, chat_id: Any, action: str) -> Chat:
        chat_uuid = parse_chat_id(chat_id)
        chat = await self._storage.get_chat(chat_uuid)
        if chat is None:
            raise NotFound("No chat found")
        if chat.user_id != user_id:
            logger.warning("User %s denied %s on chat %s", user_id, action, chat_uuid)
            raise Forbidden(f"You are not authorized to {action} this chat")
        return chat

    async def create_chat(self, user_id: uuid.UUID) -> Chat:
        chat = await self._storage.create_chat(user_id)
        logger.info("Created chat %s for user %s", chat.id, user_id)
        return chat

    async def list_chats(self, user_id: uuid.UUID) -> list[Chat]:
        return await self._storage.list_chats(user_id)

    async def append(
        self,
        user_id: uuid.UUID,
        chat_id: Any,
        question: Any,
        answer: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> AppendResult:
        """
        Add one question/answer turn to a chat.

        When answer is empty the model is asked, with system_prompt replacing
        the default plain-text instruction. The stored answer is always
        sanitized; latest_message gets the question as sent.
        """
        question = _validate_question(question)
        chat = await self._owned_chat(user_id, chat_id, "add conversation to")

        raw_answer = answer
        if not raw_answer:
            raw_answer = await self._generator.generate(question, system_prompt)

        final_answer = sanitize_answer(raw_answer)

        conversation, updated_chat = await self._storage.append_conversation(
            chat.id, question, final_answer
        )
        return AppendResult(conversation=conversation, chat=updated_chat)

    async def list_conversations(
        self,
        user_id: uuid.UUID,
        chat_id: Any,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[Conversation]:
        """Oldest-first page of a chat's conversations; NotFound when there are none."""
        if limit is not None and limit < 1:
            raise InvalidInput("limit must be a positive integer")
        chat = await self._owned_chat(user_id, chat_id, "view")

        limit = min(limit if limit is not None else DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        skip = max(skip or 0, 0)

        conversations = await self._storage.list_conversations(
            chat.id, limit=limit, offset=skip
        )
        if not conversations:
            raise NotFound("No conversation found")
        return conversations

    async def delete_chat(self, user_id: uuid.UUID, chat_id: Any) -> None:
        chat = await self._owned_chat(user_id, chat_id, "delete")
        await self._storage.delete_chat(chat.id)
        logger.info("Deleted chat %s and its conversations", chat.id)
