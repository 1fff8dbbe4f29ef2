"""Public, link-token scoped chat router for interview participants."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api._helpers import serialize_public_session
from database import get_db
from schemas.chat import ChatHistoryOut, ChatTurnIn, ChatTurnOut, PublicInterviewOut
from services.chat import get_interview_by_token, get_session_history, handle_turn
from services.errors import ValidationError

router = APIRouter()


@router.get("/{link_token}/", response_model=PublicInterviewOut)
def get_public_interview(link_token: str, db: Session = Depends(get_db)):
    return get_interview_by_token(db, link_token)


@router.post("/{link_token}/chat/", response_model=ChatTurnOut)
def send_chat_message(
    link_token: str,
    payload: ChatTurnIn,
    db: Session = Depends(get_db),
):
    message = payload.message.strip() if payload.message else None
    return handle_turn(db, link_token, session_token=payload.session_token, message=message or None)


@router.get("/{link_token}/chat/", response_model=ChatHistoryOut)
def get_chat_history(
    link_token: str,
    session: str | None = None,
    db: Session = Depends(get_db),
):
    """Return a session's visible messages so a participant can resume the conversation."""
    if not session:
        raise ValidationError("Session token required.")
    interview, chat_session = get_session_history(db, link_token, session)
    return {
        "session": serialize_public_session(chat_session, interview),
        "welcome_message": interview.welcome_message,
        "messages": chat_session.transcript.all(),
    }
