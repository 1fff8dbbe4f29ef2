"""Interview participant (email list) router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from models.interview import Interview, InterviewParticipant
from models.user import AdminUser
from schemas.interview import ParticipantIn, ParticipantOut
from services.aggregation import get_interview
from services.errors import NotFoundError, ValidationError

router = APIRouter()


def normalize_email(email: str | None) -> str:
    normalized = (email or "").strip().lower()
    if not normalized:
        raise ValidationError("Email is required.")
    return normalized


def _get_participant(interview: Interview, participant_id: int, db: Session) -> InterviewParticipant:
    participant = (
        db.query(InterviewParticipant)
        .filter(
            InterviewParticipant.id == participant_id,
            InterviewParticipant.interview_id == interview.id,
        )
        .first()
    )
    if not participant:
        raise NotFoundError("Participant not found.")
    return participant


def _list(interview: Interview, db: Session) -> list[InterviewParticipant]:
    return (
        db.query(InterviewParticipant)
        .filter(InterviewParticipant.interview_id == interview.id)
        .order_by(InterviewParticipant.id)
        .all()
    )


@router.get("/{interview_id}/participants/", response_model=list[ParticipantOut])
def list_participants(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    return _list(get_interview(db, interview_id), db)


@router.post("/{interview_id}/participants/", response_model=list[ParticipantOut], status_code=201)
def add_participant(
    interview_id: int,
    payload: ParticipantIn,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    db.add(InterviewParticipant(interview_id=interview.id, email=normalize_email(payload.email)))
    db.commit()
    return _list(interview, db)


@router.patch("/{interview_id}/participants/{participant_id}/", response_model=ParticipantOut)
def update_participant(
    interview_id: int,
    participant_id: int,
    payload: ParticipantIn,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    email = normalize_email(payload.email)
    participant = _get_participant(get_interview(db, interview_id), participant_id, db)
    participant.email = email
    db.commit()
    db.refresh(participant)
    return participant


@router.delete("/{interview_id}/participants/{participant_id}/", status_code=204)
def delete_participant(
    interview_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    participant = _get_participant(get_interview(db, interview_id), participant_id, db)
    db.delete(participant)
    db.commit()
