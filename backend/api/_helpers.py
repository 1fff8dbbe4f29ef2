"""Shared helpers for API routers."""

from __future__ import annotations

from sqlalchemy.orm import Session

from models.conversation import InterviewSession
from models.interview import Interview
from services.errors import NotFoundError


def get_session_in_interview(interview: Interview, session_id: int, db: Session) -> InterviewSession:
    """Look up a session by id, requiring it to belong to *interview*."""
    session = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == session_id, InterviewSession.interview_id == interview.id)
        .first()
    )
    if not session:
        raise NotFoundError("Session not found.")
    return session


def serialize_session(session: InterviewSession) -> dict:
    """Serialize an InterviewSession to SessionOut shape."""
    return {
        "id": session.id,
        "session_token": session.session_token,
        "tokens_used": session.tokens_used,
        "is_completed": session.is_completed,
        "started_at": session.started_at,
        "completed_at": session.completed_at,
        "message_count": session.transcript.count(),
    }


def serialize_public_session(session: InterviewSession, interview: Interview) -> dict:
    """Serialize an InterviewSession to PublicSessionOut shape."""
    return {
        "session_token": session.session_token,
        "tokens_used": session.tokens_used,
        "token_limit": interview.token_limit,
        "is_completed": session.is_completed,
        "started_at": session.started_at,
        "completed_at": session.completed_at,
    }
