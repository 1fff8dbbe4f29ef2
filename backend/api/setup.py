"""First-run setup wizard endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import build_database_url, settings
from database import Store, get_db
from schemas.auth import (
    SetupPrefillResponse,
    SetupRequest,
    SetupResetRequest,
    SetupResetResponse,
    SetupResponse,
    SetupStatusResponse,
)
from services import setup as setup_service
from services.errors import ConflictError, ServiceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_setup_cookie(response: Response, value: str, max_age: int) -> None:
    response.set_cookie(
        setup_service.SETUP_COOKIE_NAME,
        value,
        httponly=True,
        secure=not settings.DEBUG and settings.APP_URL.startswith("https://"),
        samesite="lax",
        path="/",
        max_age=max_age,
    )


@router.get("/status/", response_model=SetupStatusResponse)
def setup_status(request: Request, db: Session = Depends(get_db)):
    cookie = request.cookies.get(setup_service.SETUP_COOKIE_NAME)
    return {"needs_setup": not setup_service.is_setup_complete(db, cookie)}


@router.get("/prefill/", response_model=SetupPrefillResponse)
def setup_prefill():
    return setup_service.prefill()


@router.post("/", response_model=SetupResponse, responses={409: {"description": "Setup already completed"}})
def run_setup(
    payload: SetupRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    if setup_service.setup_already_completed(db):
        raise ConflictError("Setup already completed.")

    database_url = ""
    new_store: Store | None = None
    if payload.db_host:
        if not payload.db_name:
            raise ValidationError("Database name is required.")
        database_url = build_database_url(
            payload.db_host,
            payload.db_port or settings.DB_PORT,
            payload.db_user or "",
            payload.db_password or "",
            payload.db_name,
            settings.DB_DRIVER,
        )
        new_store = Store.from_url(database_url)

    if new_store is not None:
        try:
            with new_store.session() as target_db:
                user = setup_service.provision(target_db, payload.admin_username, payload.admin_password)
        except SQLAlchemyError as exc:
            new_store.dispose()
            logger.exception("Setup could not initialise database %s", new_store.url)
            raise ServiceUnavailableError(f"Could not initialise the database: {exc.__class__.__name__}") from exc
        previous = request.app.state.store
        request.app.state.store = new_store
        previous.dispose()
        logger.info("Switched application store to %s", new_store.url)
    else:
        user = setup_service.provision(db, payload.admin_username, payload.admin_password)

    setup_service.write_local_config(
        database_url=database_url,
        openai_api_key=payload.openai_api_key or "",
        anthropic_api_key=payload.anthropic_api_key or "",
        app_url=payload.app_url or "",
    )
    _set_setup_cookie(response, setup_service.sign_setup_cookie(), setup_service.SETUP_COOKIE_MAX_AGE)
    return {"success": True, "username": user.username}


@router.post("/reset/", response_model=SetupResetResponse)
def reset_setup(
    payload: SetupResetRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    if payload.confirm != setup_service.RESET_CONFIRMATION:
        raise ValidationError(
            f"Missing confirmation. Send {{\"confirm\": \"{setup_service.RESET_CONFIRMATION}\"}}."
        )

    errors = setup_service.reset_setup(db)
    _set_setup_cookie(response, "", 0)
    return {
        "success": True,
        "errors": errors or None,
        "message": (
            "Setup state cleared. If SETUP_COMPLETE is set as an environment variable, "
            "remove it from your deployment and restart."
        ),
    }
