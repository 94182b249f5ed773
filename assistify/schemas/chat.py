"""Pydantic schemas for the chat endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Read from ORM rows by attribute name, written (and re-read) in camelCase
READ_CONFIG = ConfigDict(
    from_attributes=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ChatRead(BaseModel):
    """A chat thread as returned to its owner."""

    model_config = READ_CONFIG

    id: uuid.UUID
    user: uuid.UUID = Field(validation_alias=AliasChoices("user_id", "user"))
    latest_message: str
    created_at: datetime
    updated_at: datetime


class ConversationRead(BaseModel):
    """One stored question/answer turn."""

    model_config = READ_CONFIG

    id: uuid.UUID
    chat: uuid.UUID = Field(validation_alias=AliasChoices("chat_id", "chat"))
    question: str
    answer: str
    created_at: datetime


class AppendConversationRequest(BaseModel):
    """
    Body for POST /chat/{id}.

    answer is optional: when absent the server asks the model. systemPrompt
    replaces the default plain-text instruction for that call only.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question: Optional[str] = None
    answer: Optional[str] = None
    system_prompt: Optional[str] = None


class AppendConversationResponse(BaseModel):
    model_config = READ_CONFIG

    message: str = "Conversation added successfully"
    conversation: ConversationRead
    updated_chat: ChatRead


class ChatCreatedResponse(BaseModel):
    model_config = READ_CONFIG

    chat: ChatRead


class MessageResponse(BaseModel):
    message: str
