"""Interview session and chat message models."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, and_, func
from sqlalchemy.orm import DynamicMapped, Mapped, mapped_column, relationship

from database import Base
from models.interview import generate_token


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    interview_id: Mapped[int] = mapped_column(ForeignKey("interviews.id", ondelete="CASCADE"), index=True)
    session_token: Mapped[str] = mapped_column(String(128), unique=True, index=True, default=generate_token)
    tokens_used: Mapped[int] = mapped_column(Integer, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    interview: Mapped["Interview"] = relationship("Interview", back_populates="sessions")  # noqa: F821
    messages: Mapped[list[ChatMessage]] = relationship(
        "ChatMessage", back_populates="session", cascade="all, delete-orphan"
    )
    # Participant-visible messages only; system directives never appear here.
    transcript: DynamicMapped[ChatMessage] = relationship(
        "ChatMessage",
        primaryjoin=lambda: and_(
            InterviewSession.id == ChatMessage.session_id,
            ChatMessage.role != MessageRole.SYSTEM,
        ),
        order_by=lambda: [ChatMessage.created_at, ChatMessage.id],
        viewonly=True,
    )

    def __repr__(self):
        return f"<InterviewSession {self.session_token[:8]} ({self.tokens_used} tokens)>"


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("interview_sessions.id", ondelete="CASCADE"), index=True)
    role: Mapped[MessageRole] = mapped_column(
        Enum(
            MessageRole,
            native_enum=False,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        )
    )
    content: Mapped[str] = mapped_column(Text)
    tokens_used: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    session: Mapped[InterviewSession] = relationship("InterviewSession", back_populates="messages")
