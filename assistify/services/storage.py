"""
Storage: every read and write against users, chats and conversations.

Each method opens its own session from the sessionmaker, so each method is
one transactional scope. The only writes to conversations are
append_conversation (insert + chat pointer update) and delete_chat (cascade);
both commit as a unit or roll back completely.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assistify.errors import AppError, NotFound, PersistenceError
from assistify.models import Chat, Conversation, User
from assistify.models.user import utcnow

logger = logging.getLogger(__name__)


async def _rollback_quietly(session: AsyncSession) -> None:
    """Roll back; a failing rollback is logged so the original error surfaces."""
    try:
        await session.rollback()
    except Exception as exc:
        logger.error("Rollback failed: %s", exc)


class Storage:
    """Async repository over the assistify tables."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    # ── Users ────────────────────────────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        async with self._sessionmaker() as session:
            return await session.get(User, user_id)

    async def find_or_create_user(self, email: str) -> User:
        """Return the user for an email, creating it on first login."""
        async with self._sessionmaker() as session:
            user = await session.scalar(select(User).where(User.email == email))
            if user is not None:
                return user

            user = User(email=email)
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                # Lost a race with a concurrent first login for the same email
                await _rollback_quietly(session)
                user = await session.scalar(select(User).where(User.email == email))
                if user is None:
                    raise
            except Exception as exc:
                await _rollback_quietly(session)
                logger.error("Failed to create user: %s", exc)
                raise PersistenceError("Failed to create user", diagnostic=str(exc)) from exc
            return user

    # ── Chats ────────────────────────────────────────────────────────────────

    async def create_chat(self, user_id: uuid.UUID) -> Chat:
        async with self._sessionmaker() as session:
            chat = Chat(user_id=user_id)
            session.add(chat)
            try:
                await session.commit()
            except Exception as exc:
                await _rollback_quietly(session)
                logger.error("Failed to create chat for user %s: %s", user_id, exc)
                raise PersistenceError("Failed to create chat", diagnostic=str(exc)) from exc
            return chat

    async def list_chats(self, user_id: uuid.UUID) -> list[Chat]:
        """Chats owned by a user, newest first."""
        async with self._sessionmaker() as session:
            result = await session.scalars(
                select(Chat)
                .where(Chat.user_id == user_id)
                .order_by(Chat.created_at.desc())
            )
            return list(result)

    async def get_chat(self, chat_id: uuid.UUID) -> Optional[Chat]:
        async with self._sessionmaker() as session:
            return await session.get(Chat, chat_id)

    # ── Conversations ────────────────────────────────────────────────────────

    async def list_conversations(
        self, chat_id: uuid.UUID, *, limit: int = 100, offset: int = 0
    ) -> list[Conversation]:
        """Conversations of a chat, oldest first."""
        async with self._sessionmaker() as session:
            result = await session.scalars(
                select(Conversation)
                .where(Conversation.chat_id == chat_id)
                .order_by(Conversation.created_at.asc())
                .offset(offset)
                .limit(limit)
            )
            return list(result)

    async def count_conversations(self, chat_id: uuid.UUID) -> int:
        async with self._sessionmaker() as session:
            total = await session.scalar(
                select(func.count())
                .select_from(Conversation)
                .where(Conversation.chat_id == chat_id)
            )
            return total or 0

    async def _lock_chat(self, session: AsyncSession, chat_id: uuid.UUID) -> Chat:
        # Must run before the insert: the FK check on conversations takes a
        # KEY SHARE lock on the chat row, which a later FOR UPDATE would wait on.
        chat = await session.get(Chat, chat_id, with_for_update=True)
        if chat is None:
            raise NotFound("No chat found")
        return chat

    async def _touch_chat(self, session: AsyncSession, chat: Chat, question: str) -> None:
        """Point the chat at its newest question. Runs inside the append transaction."""
        chat.latest_message = question
        chat.updated_at = utcnow()
        await session.flush()

    async def append_conversation(
        self, chat_id: uuid.UUID, question: str, answer: str
    ) -> tuple[Conversation, Chat]:
        """
        Insert a conversation and update the chat's latest_message atomically.

        The chat row is locked first, so concurrent appends to one chat queue
        up instead of deadlocking. Both writes commit together or not at all.
        Any failure rolls back the transaction and raises PersistenceError
        (NotFound if the chat is gone).
        """
        async with self._sessionmaker() as session:
            try:
                chat = await self._lock_chat(session, chat_id)

                conversation = Conversation(chat_id=chat_id, question=question, answer=answer)
                session.add(conversation)
                await session.flush()

                await self._touch_chat(session, chat, question)
                await session.commit()
            except AppError:
                await _rollback_quietly(session)
                raise
            except Exception as exc:
                await _rollback_quietly(session)
                logger.error("Failed to append conversation to chat %s: %s", chat_id, exc)
                raise PersistenceError(
                    "Failed to add conversation", diagnostic=str(exc)
                ) from exc

        logger.info("Appended conversation %s to chat %s", conversation.id, chat_id)
        return conversation, chat

    async def delete_chat(self, chat_id: uuid.UUID) -> None:
        """Delete a chat and all its conversations in one transaction."""
        async with self._sessionmaker() as session:
            try:
                await session.execute(
                    delete(Conversation).where(Conversation.chat_id == chat_id)
                )
                await session.execute(delete(Chat).where(Chat.id == chat_id))
                await session.commit()
            except Exception as exc:
                await _rollback_quietly(session)
                logger.error("Failed to delete chat %s: %s", chat_id, exc)
                raise PersistenceError("Failed to delete chat", diagnostic=str(exc)) from exc
