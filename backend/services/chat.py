"""Participant chat turns: session resolution, budget gates, model call, usage accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import and_, case, update
from sqlalchemy.orm import Session

from config import settings
from logging_config import bind_session, chat_context
from models.conversation import ChatMessage, InterviewSession, MessageRole
from models.interview import Interview
from services import llm
from services.errors import ForbiddenError, NotFoundError, ServiceUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_INTERVIEW_PROMPT = (
    "You are a professional interviewer. Conduct a structured interview with the participant. "
    "Ask questions one at a time, listen carefully to responses, and follow up appropriately. "
    "Be professional, friendly, and thorough."
)

CLOSING_MESSAGE = (
    "Thank you for your time. This interview session has reached its limit and is now complete."
)


@dataclass
class ChatTurnResult:
    session_token: str
    reply: str
    tokens_used: int
    token_limit: int
    is_completed: bool


def get_interview_by_token(db: Session, link_token: str) -> Interview:
    interview = db.query(Interview).filter(Interview.token == link_token).first()
    if not interview:
        raise NotFoundError("Interview not found.")
    return interview


def get_active_interview(db: Session, link_token: str) -> Interview:
    interview = get_interview_by_token(db, link_token)
    if not interview.is_active:
        raise ForbiddenError("This interview is not currently active.")
    return interview


def find_session(db: Session, interview: Interview, session_token: str) -> InterviewSession | None:
    """Look up a session by token, scoped to *interview*."""
    return (
        db.query(InterviewSession)
        .filter(
            InterviewSession.session_token == session_token,
            InterviewSession.interview_id == interview.id,
        )
        .first()
    )


def start_session(db: Session, interview: Interview) -> InterviewSession:
    session = InterviewSession(interview_id=interview.id)
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("Started session %s for interview %d", session.session_token[:8], interview.id)
    return session


def mark_completed(db: Session, session: InterviewSession) -> None:
    if not session.is_completed:
        session.is_completed = True
        session.completed_at = datetime.now(timezone.utc)
        db.commit()


def record_usage(db: Session, session: InterviewSession, tokens: int, token_limit: int) -> None:
    """Add *tokens* to the session counter in one conditional UPDATE.

    The same statement flips ``is_completed`` (and stamps ``completed_at``) when the
    new total reaches *token_limit*, so concurrent turns cannot lose increments or
    leave a session open past its budget. Caller commits.
    """
    tokens = max(tokens, 0)
    new_total = InterviewSession.tokens_used + tokens
    crossed = new_total >= token_limit
    db.execute(
        update(InterviewSession)
        .where(InterviewSession.id == session.id)
        .values(
            tokens_used=new_total,
            is_completed=case((crossed, True), else_=InterviewSession.is_completed),
            completed_at=case(
                (and_(crossed, InterviewSession.completed_at.is_(None)), datetime.now(timezone.utc)),
                else_=InterviewSession.completed_at,
            ),
        )
        .execution_options(synchronize_session=False)
    )


def build_prompt(interview: Interview, session: InterviewSession, message: str | None) -> list[tuple[MessageRole, str]]:
    messages: list[tuple[MessageRole, str]] = [
        (MessageRole.SYSTEM, interview.interview_prompt or DEFAULT_INTERVIEW_PROMPT)
    ]
    messages.extend((m.role, m.content) for m in session.transcript)
    if message:
        messages.append((MessageRole.USER, message))
    return messages


def handle_turn(
    db: Session,
    link_token: str,
    session_token: str | None = None,
    message: str | None = None,
) -> ChatTurnResult:
    """Run one chat turn for the interview behind *link_token*.

    Creates a session when *session_token* is missing or unknown. Raises
    NotFoundError / ForbiddenError for the interview and session gates and
    ServiceUnavailableError when the completion API is unusable.
    """
    interview = get_active_interview(db, link_token)
    with chat_context(interview.id):
        return _run_turn(db, interview, session_token, message)


def _run_turn(
    db: Session, interview: Interview, session_token: str | None, message: str | None
) -> ChatTurnResult:
    session = find_session(db, interview, session_token) if session_token else None
    if session is None:
        session = start_session(db, interview)
    bind_session(session.session_token)

    if session.is_completed:
        raise ForbiddenError("This interview session has ended.")

    if session.tokens_used >= interview.token_limit:
        mark_completed(db, session)
        logger.info("Session reached its budget (%d/%d)", session.tokens_used, interview.token_limit)
        return ChatTurnResult(
            session_token=session.session_token,
            reply=CLOSING_MESSAGE,
            tokens_used=session.tokens_used,
            token_limit=interview.token_limit,
            is_completed=True,
        )

    prompt = build_prompt(interview, session, message)

    # No message is written when no API key is configured
    if not llm.get_api_key(interview.ai_provider):
        raise ServiceUnavailableError("AI service not configured.")

    if message:
        db.add(ChatMessage(session_id=session.id, role=MessageRole.USER, content=message))
        db.commit()

    completion = llm.complete(
        interview.ai_provider,
        interview.ai_model or "gpt-4o",
        prompt,
        max_tokens=settings.CHAT_MAX_TOKENS,
    )

    db.add(
        ChatMessage(
            session_id=session.id,
            role=MessageRole.ASSISTANT,
            content=completion.text,
            tokens_used=completion.total_tokens,
        )
    )
    record_usage(db, session, completion.total_tokens, interview.token_limit)
    db.commit()
    db.refresh(session)

    logger.info(
        "Turn complete: +%d tokens (%d/%d)%s",
        completion.total_tokens, session.tokens_used, interview.token_limit,
        ", session completed" if session.is_completed else "",
    )
    return ChatTurnResult(
        session_token=session.session_token,
        reply=completion.text,
        tokens_used=session.tokens_used,
        token_limit=interview.token_limit,
        is_completed=session.is_completed,
    )


def get_session_history(db: Session, link_token: str, session_token: str) -> tuple[Interview, InterviewSession]:
    """Resolve a session for resuming a conversation. Works for inactive interviews too."""
    interview = get_interview_by_token(db, link_token)
    session = find_session(db, interview, session_token)
    if not session:
        raise NotFoundError("Session not found.")
    return interview, session
