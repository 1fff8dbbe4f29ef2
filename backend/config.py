"""Pydantic settings loaded from .env, with conf.json overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

BASE_DIR = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# conf.json: runtime config written by the setup wizard (separate from .env secrets)
# ---------------------------------------------------------------------------


def get_interviewer_dir() -> Path:
    """Resolve the data directory. INTERVIEWER_DIR env var or ~/.config/interviewer."""
    d = os.environ.get("INTERVIEWER_DIR", "")
    return Path(d).expanduser() if d else Path.home() / ".config" / "interviewer"


class InterviewerConfig(BaseModel):
    setup_completed: bool = False
    database_url: str = ""
    log_level: str = ""
    log_file: str = ""
    app_url: str = ""


_logger = logging.getLogger(__name__)


def load_conf() -> InterviewerConfig:
    """Load conf.json from the data directory."""
    conf_path = get_interviewer_dir() / "conf.json"
    if conf_path.exists():
        try:
            return InterviewerConfig.model_validate_json(conf_path.read_text())
        except Exception:
            _logger.warning("Failed to parse %s, using defaults", conf_path, exc_info=True)
    return InterviewerConfig()


def save_conf(config: InterviewerConfig) -> None:
    """Save conf.json to the data directory."""
    data_dir = get_interviewer_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "conf.json").write_text(config.model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# .env helpers
# ---------------------------------------------------------------------------


def append_env_values(env_file: Path, values: dict[str, str]) -> None:
    """Append KEY=value lines to *env_file* and export them into os.environ."""
    lines_to_append: list[str] = []
    for key, value in values.items():
        os.environ[key] = value
        lines_to_append.append(f"{key}={value}")

    if lines_to_append:
        env_file.parent.mkdir(parents=True, exist_ok=True)
        with open(env_file, "a") as f:
            f.write("\n" + "\n".join(lines_to_append) + "\n")


def _ensure_secrets(env_file: Path) -> None:
    """Generate FIELD_ENCRYPTION_KEY if missing, append to .env."""
    from cryptography.fernet import Fernet

    if not os.environ.get("FIELD_ENCRYPTION_KEY"):
        append_env_values(env_file, {"FIELD_ENCRYPTION_KEY": Fernet.generate_key().decode()})


def build_database_url(
    host: str,
    port: int | None,
    user: str,
    password: str,
    name: str,
    driver: str = "postgresql+psycopg2",
) -> str:
    """Assemble a SQLAlchemy URL from discrete connection parameters."""
    url = URL.create(
        drivername=driver,
        username=user or None,
        password=password or None,
        host=host,
        port=port,
        database=name,
    )
    return url.render_as_string(hide_password=False)


# ---------------------------------------------------------------------------
# Bootstrap: load .env, generate secrets, load conf.json
# ---------------------------------------------------------------------------

ENV_FILE = BASE_DIR.parent / ".env"
load_dotenv(ENV_FILE)
_ensure_secrets(ENV_FILE)
_conf = load_conf()

# ---------------------------------------------------------------------------
# Settings (pydantic-settings): .env / env vars override conf.json defaults
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    DEBUG: bool = False
    SETUP_COMPLETE: bool = False

    DATABASE_URL: str = _conf.database_url
    DB_DRIVER: str = "postgresql+psycopg2"
    DB_HOST: str = ""
    DB_PORT: int = 5432
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_NAME: str = "interview_app"

    FIELD_ENCRYPTION_KEY: str = ""

    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    CHAT_MAX_TOKENS: int = 500
    AGGREGATION_MAX_TOKENS: int = 2000

    CORS_ALLOW_ALL_ORIGINS: bool = True
    APP_URL: str = _conf.app_url or "http://localhost:8000"

    LOG_LEVEL: str = _conf.log_level or "INFO"
    LOG_FILE: str = _conf.log_file or ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    model_config = ConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "Settings":
        if not self.DATABASE_URL:
            if self.DB_HOST:
                self.DATABASE_URL = build_database_url(
                    self.DB_HOST, self.DB_PORT, self.DB_USER, self.DB_PASSWORD, self.DB_NAME, self.DB_DRIVER
                )
            else:
                self.DATABASE_URL = f"sqlite:///{BASE_DIR / 'db.sqlite3'}"
        return self


settings = Settings()
