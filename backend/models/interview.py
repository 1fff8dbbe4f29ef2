"""Interview, participant, and aggregation result models."""

from __future__ import annotations

import secrets
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

LINK_TOKEN_LENGTH = 48


def generate_token(length: int = LINK_TOKEN_LENGTH) -> str:
    """URL-safe random token of exactly *length* characters."""
    return secrets.token_urlsafe(length)[:length]


class Interview(Base):
    __tablename__ = "interviews"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True, default=generate_token)
    interview_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    aggregation_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    welcome_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_limit: Mapped[int] = mapped_column(Integer, default=5000, server_default=text("5000"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_provider: Mapped[str] = mapped_column(String(50), default="openai")
    ai_model: Mapped[str] = mapped_column(String(100), default="gpt-4o")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    participants: Mapped[list[InterviewParticipant]] = relationship(
        "InterviewParticipant", back_populates="interview", cascade="all, delete-orphan",
        order_by="InterviewParticipant.id",
    )
    sessions: Mapped[list["InterviewSession"]] = relationship(  # noqa: F821
        "InterviewSession", back_populates="interview", cascade="all, delete-orphan"
    )
    aggregations: Mapped[list[AggregationResult]] = relationship(
        "AggregationResult", back_populates="interview", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Interview {self.name}>"


class InterviewParticipant(Base):
    __tablename__ = "interview_participants"

    id: Mapped[int] = mapped_column(primary_key=True)
    interview_id: Mapped[int] = mapped_column(ForeignKey("interviews.id", ondelete="CASCADE"))
    email: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    interview: Mapped[Interview] = relationship("Interview", back_populates="participants")


class AggregationResult(Base):
    __tablename__ = "aggregation_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    interview_id: Mapped[int] = mapped_column(ForeignKey("interviews.id", ondelete="CASCADE"))
    result: Mapped[str] = mapped_column(Text)
    session_count: Mapped[int] = mapped_column(Integer, default=0)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    interview: Mapped[Interview] = relationship("Interview", back_populates="aggregations")
