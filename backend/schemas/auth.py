"""Auth and setup wizard schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    key: str


class MeResponse(BaseModel):
    username: str


# ── Setup wizard schemas ──────────────────────────────────────────────────────


class SetupRequest(BaseModel):
    admin_username: str = Field(min_length=1, max_length=255)
    admin_password: str = Field(min_length=8)
    db_host: str | None = Field(None, min_length=1)
    db_port: int | None = Field(None, ge=1, le=65535)
    db_user: str | None = None
    db_password: str | None = None
    db_name: str | None = Field(None, min_length=1)
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    app_url: str | None = Field(None, min_length=1)


class SetupResponse(BaseModel):
    success: bool = True
    username: str


class SetupStatusResponse(BaseModel):
    needs_setup: bool


class SetupPrefillResponse(BaseModel):
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_password_set: bool
    db_name: str
    app_url: str


class SetupResetRequest(BaseModel):
    confirm: str | None = None


class SetupResetResponse(BaseModel):
    success: bool = True
    errors: list[str] | None = None
    message: str
