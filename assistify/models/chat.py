"""Chat ORM model: a conversation thread owned by one user."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from assistify.database import Base
from assistify.models.user import utcnow

DEFAULT_LATEST_MESSAGE = "New Conversation"


class Chat(Base):
    """
    A thread of question/answer turns.

    latest_message always holds the question of the most recently appended
    conversation; it is only written together with that conversation insert.
    """

    __tablename__ = "chats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    latest_message = Column(Text, nullable=False, default=DEFAULT_LATEST_MESSAGE)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="chats")
    conversations = relationship(
        "Conversation", back_populates="chat", passive_deletes=True
    )
