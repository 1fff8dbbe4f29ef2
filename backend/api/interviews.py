"""Interview CRUD, results, summary generation, and CSV download router."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from api._helpers import get_session_in_interview, serialize_session
from auth import get_current_user
from database import get_db
from models.interview import Interview, generate_token
from models.user import AdminUser
from schemas.interview import (
    GenerateSummaryOut,
    InterviewIn,
    InterviewOut,
    InterviewUpdate,
    MessageOut,
    ResultsOut,
)
from services.aggregation import generate_summary, get_interview, latest_summary, list_sessions
from services.errors import ConflictError, ValidationError
from services.export import export_interview_csv

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Interview.id).filter(Interview.name == name)
    if exclude_id is not None:
        query = query.filter(Interview.id != exclude_id)
    if query.first():
        raise ConflictError("An interview with this name already exists.")


@router.get("/", response_model=list[InterviewOut])
def list_interviews(
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    return db.query(Interview).order_by(Interview.created_at, Interview.id).all()


@router.post("/", response_model=InterviewOut, status_code=201)
def create_interview(
    payload: InterviewIn,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    data = payload.model_dump()
    data["name"] = (data["name"] or "").strip()
    if not data["name"]:
        raise ValidationError("Name is required.")
    _ensure_unique_name(db, data["name"])

    interview = Interview(**data)
    db.add(interview)
    db.commit()
    db.refresh(interview)
    logger.info("Created interview %d '%s'", interview.id, interview.name)
    return interview


@router.get("/{interview_id}/", response_model=InterviewOut)
def get_interview_detail(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    return get_interview(db, interview_id)


@router.patch("/{interview_id}/", response_model=InterviewOut)
def update_interview(
    interview_id: int,
    payload: InterviewUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    updates = payload.model_dump(exclude_unset=True)
    # Nullable text fields may be cleared; the rest keep their value when sent as null
    for attr in ("name", "token_limit", "is_active", "ai_provider", "ai_model"):
        if attr in updates and updates[attr] is None:
            del updates[attr]

    if "name" in updates:
        updates["name"] = updates["name"].strip()
        if not updates["name"]:
            raise ValidationError("Name is required.")
        _ensure_unique_name(db, updates["name"], exclude_id=interview.id)

    for attr, value in updates.items():
        setattr(interview, attr, value)
    db.commit()
    db.refresh(interview)
    return interview


@router.delete("/{interview_id}/", status_code=204)
def delete_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    db.delete(interview)
    db.commit()
    logger.info("Deleted interview %d", interview_id)


@router.post("/{interview_id}/regenerate-token/", response_model=InterviewOut)
def regenerate_link_token(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    interview.token = generate_token()
    db.commit()
    db.refresh(interview)
    return interview


# ── Results ───────────────────────────────────────────────────────────────────


@router.get("/{interview_id}/results/", response_model=ResultsOut)
def get_results(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    return {
        "sessions": [serialize_session(s) for s in list_sessions(db, interview)],
        "latest_aggregation": latest_summary(db, interview),
    }


@router.post("/{interview_id}/results/", response_model=GenerateSummaryOut)
def create_summary(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    result = generate_summary(db, interview_id)
    return {"result": result.result, "session_count": result.session_count}


@router.get("/{interview_id}/sessions/{session_id}/", response_model=list[MessageOut])
def get_session_messages(
    interview_id: int,
    session_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    return get_session_in_interview(interview, session_id, db).transcript.all()


@router.get("/{interview_id}/download/")
def download_csv(
    interview_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    interview = get_interview(db, interview_id)
    filename, content = export_interview_csv(db, interview)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
