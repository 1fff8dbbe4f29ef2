"""Public chat schemas."""

from datetime import datetime

from pydantic import BaseModel

from schemas.interview import MessageOut


class ChatTurnIn(BaseModel):
    session_token: str | None = None
    message: str | None = None


class ChatTurnOut(BaseModel):
    session_token: str
    reply: str
    tokens_used: int
    token_limit: int
    is_completed: bool

    model_config = {"from_attributes": True}


class PublicInterviewOut(BaseModel):
    name: str
    welcome_message: str | None = None
    is_active: bool
    token_limit: int

    model_config = {"from_attributes": True}


class PublicSessionOut(BaseModel):
    session_token: str
    tokens_used: int
    token_limit: int
    is_completed: bool
    started_at: datetime
    completed_at: datetime | None = None


class ChatHistoryOut(BaseModel):
    session: PublicSessionOut
    welcome_message: str | None = None
    messages: list[MessageOut]
