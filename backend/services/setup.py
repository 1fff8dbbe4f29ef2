"""First-run setup wizard: schema bootstrap, admin provisioning, and the setup-complete markers."""

from __future__ import annotations

import logging

import bcrypt
from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import ENV_FILE, append_env_values, load_conf, save_conf, settings
import models  # noqa: F401  (registers all models with Base)
from database import Base
from models.system import SETUP_COMPLETE_KEY, SystemConfig
from models.user import AdminUser

logger = logging.getLogger(__name__)

SETUP_COOKIE_NAME = "__setup_complete"
SETUP_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
RESET_CONFIRMATION = "RESET_SETUP"

_COOKIE_PAYLOAD = b"setup_complete"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def _fernet() -> Fernet:
    return Fernet(settings.FIELD_ENCRYPTION_KEY.encode())


def sign_setup_cookie() -> str:
    return _fernet().encrypt(_COOKIE_PAYLOAD).decode()


def verify_setup_cookie(value: str | None) -> bool:
    if not value:
        return False
    try:
        return _fernet().decrypt(value.encode(), ttl=SETUP_COOKIE_MAX_AGE) == _COOKIE_PAYLOAD
    except (InvalidToken, ValueError):
        return False


def setup_marked_in_db(db: Session) -> bool:
    """True when the ``setup_complete`` config row says so. A missing table counts as not set up."""
    try:
        return SystemConfig.get_value(db, SETUP_COMPLETE_KEY) == "true"
    except SQLAlchemyError:
        db.rollback()
        logger.debug("system_config not readable yet, treating setup as incomplete", exc_info=True)
        return False


def setup_already_completed(db: Session) -> bool:
    return settings.SETUP_COMPLETE or setup_marked_in_db(db)


def is_setup_complete(db: Session, cookie: str | None) -> bool:
    return settings.SETUP_COMPLETE or verify_setup_cookie(cookie) or setup_marked_in_db(db)


def prefill() -> dict:
    """Current database settings for pre-filling the wizard form; the password is masked."""
    return {
        "db_host": settings.DB_HOST,
        "db_port": settings.DB_PORT,
        "db_user": settings.DB_USER,
        "db_password": "••••••••" if settings.DB_PASSWORD else "",
        "db_password_set": bool(settings.DB_PASSWORD),
        "db_name": settings.DB_NAME,
        "app_url": settings.APP_URL,
    }


def provision(db: Session, admin_username: str, admin_password: str) -> AdminUser:
    """Create missing tables, upsert the admin user, and persist the setup-complete row."""
    Base.metadata.create_all(bind=db.get_bind())

    user = db.query(AdminUser).filter(AdminUser.username == admin_username).first()
    if user:
        user.password_hash = hash_password(admin_password)
    else:
        user = AdminUser(username=admin_username, password_hash=hash_password(admin_password))
        db.add(user)

    SystemConfig.set_value(db, SETUP_COMPLETE_KEY, "true")
    db.commit()
    db.refresh(user)
    logger.info("Setup completed, admin user '%s' provisioned", admin_username)
    return user


def write_local_config(
    *,
    database_url: str = "",
    openai_api_key: str = "",
    anthropic_api_key: str = "",
    app_url: str = "",
) -> None:
    """Best-effort: persist conf.json and API keys to .env, and apply keys in-process."""
    if openai_api_key:
        settings.OPENAI_API_KEY = openai_api_key
    if anthropic_api_key:
        settings.ANTHROPIC_API_KEY = anthropic_api_key

    try:
        conf = load_conf()
        conf.setup_completed = True
        if database_url:
            conf.database_url = database_url
        if app_url:
            conf.app_url = app_url
        save_conf(conf)

        secrets_to_write = {}
        if openai_api_key:
            secrets_to_write["OPENAI_API_KEY"] = openai_api_key
        if anthropic_api_key:
            secrets_to_write["ANTHROPIC_API_KEY"] = anthropic_api_key
        append_env_values(ENV_FILE, secrets_to_write)
    except OSError:
        # Read-only filesystems: the database row is the source of truth
        logger.warning("Failed to write local configuration during setup", exc_info=True)


def reset_setup(db: Session) -> list[str]:
    """Clear the setup-complete markers without touching interview data.

    Returns a list of non-fatal error messages.
    """
    errors: list[str] = []
    try:
        SystemConfig.delete_value(db, SETUP_COMPLETE_KEY)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        errors.append(f"DB reset failed: {exc}")

    try:
        conf = load_conf()
        if conf.setup_completed:
            conf.setup_completed = False
            save_conf(conf)
    except OSError as exc:
        logger.warning("Failed to update conf.json during setup reset", exc_info=True)
        errors.append(f"conf.json reset failed: {exc}")

    logger.info("Setup state cleared%s", f" with {len(errors)} error(s)" if errors else "")
    return errors
