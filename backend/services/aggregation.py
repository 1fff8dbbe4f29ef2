"""Cross-session summaries generated by the completion API."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from config import settings
from models.conversation import InterviewSession, MessageRole
from models.interview import AggregationResult, Interview
from services import llm
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATION_PROMPT = (
    "Analyze the following interview transcripts and provide a comprehensive summary of key themes, "
    "common responses, notable insights, and any patterns you observe across participants. "
    "Structure your analysis clearly."
)

_SPEAKER_LABELS = {
    MessageRole.USER: "Participant",
    MessageRole.ASSISTANT: "Interviewer",
}


def get_interview(db: Session, interview_id: int) -> Interview:
    interview = db.get(Interview, interview_id)
    if not interview:
        raise NotFoundError("Interview not found.")
    return interview


def format_transcript(session: InterviewSession) -> str | None:
    """Render one labeled transcript block, or None when the session has no messages."""
    lines = [f"{_SPEAKER_LABELS[m.role]}: {m.content}" for m in session.transcript]
    if not lines:
        return None
    started = session.started_at.strftime("%Y-%m-%d") if session.started_at else ""
    return f"--- Session {session.id} ({started}) ---\n" + "\n".join(lines)


def build_transcripts(db: Session, interview: Interview) -> list[str]:
    sessions = (
        db.query(InterviewSession)
        .filter(InterviewSession.interview_id == interview.id)
        .order_by(InterviewSession.started_at, InterviewSession.id)
        .all()
    )
    if not sessions:
        raise ValidationError("No interview sessions found.")

    transcripts = [block for block in (format_transcript(s) for s in sessions) if block]
    if not transcripts:
        raise ValidationError("No conversation data found.")
    return transcripts


def generate_summary(db: Session, interview_id: int) -> AggregationResult:
    """Summarise every non-empty session transcript of an interview and store the result."""
    interview = get_interview(db, interview_id)
    transcripts = build_transcripts(db, interview)

    prompt = [
        (MessageRole.SYSTEM, interview.aggregation_prompt or DEFAULT_AGGREGATION_PROMPT),
        (MessageRole.USER, "Here are the interview transcripts:\n\n" + "\n\n".join(transcripts)),
    ]
    completion = llm.complete(
        interview.ai_provider,
        interview.ai_model or "gpt-4o",
        prompt,
        max_tokens=settings.AGGREGATION_MAX_TOKENS,
    )

    result = AggregationResult(
        interview_id=interview.id,
        result=completion.text,
        session_count=len(transcripts),
    )
    db.add(result)
    db.commit()
    db.refresh(result)
    logger.info(
        "Generated summary for interview %d over %d sessions (%d tokens)",
        interview.id, len(transcripts), completion.total_tokens,
    )
    return result


def latest_summary(db: Session, interview: Interview) -> AggregationResult | None:
    return (
        db.query(AggregationResult)
        .filter(AggregationResult.interview_id == interview.id)
        .order_by(AggregationResult.generated_at.desc(), AggregationResult.id.desc())
        .first()
    )


def list_sessions(db: Session, interview: Interview) -> list[InterviewSession]:
    """All sessions of an interview, newest first."""
    return (
        db.query(InterviewSession)
        .filter(InterviewSession.interview_id == interview.id)
        .order_by(InterviewSession.started_at.desc(), InterviewSession.id.desc())
        .all()
    )
