"""SQLAlchemy ORM models package."""

from assistify.database import Base
from assistify.models.user import User
from assistify.models.chat import Chat, DEFAULT_LATEST_MESSAGE
from assistify.models.conversation import Conversation

__all__ = ["Base", "User", "Chat", "Conversation", "DEFAULT_LATEST_MESSAGE"]
