"""Interview, participant, session, and results schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from models.conversation import MessageRole

Provider = Literal["openai", "anthropic"]


class InterviewIn(BaseModel):
    name: str
    interview_prompt: str | None = None
    aggregation_prompt: str | None = None
    welcome_message: str | None = None
    token_limit: int = Field(5000, ge=1)
    is_active: bool = False
    ai_provider: Provider = "openai"
    ai_model: str = Field("gpt-4o", min_length=1, max_length=100)


class InterviewUpdate(BaseModel):
    name: str | None = None
    interview_prompt: str | None = None
    aggregation_prompt: str | None = None
    welcome_message: str | None = None
    token_limit: int | None = Field(None, ge=1)
    is_active: bool | None = None
    ai_provider: Provider | None = None
    ai_model: str | None = Field(None, min_length=1, max_length=100)


class InterviewOut(BaseModel):
    id: int
    name: str
    token: str
    interview_prompt: str | None = None
    aggregation_prompt: str | None = None
    welcome_message: str | None = None
    token_limit: int
    is_active: bool
    ai_provider: str
    ai_model: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ParticipantIn(BaseModel):
    email: str = ""


class ParticipantOut(BaseModel):
    id: int
    interview_id: int
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageOut(BaseModel):
    id: int
    role: MessageRole
    content: str
    tokens_used: int
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionOut(BaseModel):
    id: int
    session_token: str
    tokens_used: int
    is_completed: bool
    started_at: datetime
    completed_at: datetime | None = None
    message_count: int = 0


class AggregationOut(BaseModel):
    id: int
    result: str
    session_count: int
    generated_at: datetime

    model_config = {"from_attributes": True}


class ResultsOut(BaseModel):
    sessions: list[SessionOut]
    latest_aggregation: AggregationOut | None = None


class GenerateSummaryOut(BaseModel):
    result: str
    session_count: int
