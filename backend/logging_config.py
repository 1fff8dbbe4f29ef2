"""Process logging, with chat-turn lines tagged by interview and session.

A participant turn runs inside ``chat_context(interview_id)``; once the session
is known, ``bind_session`` adds it. Any record logged in between carries a
``[Interview 3][Session V1StGXR8]`` tag, and both values are cleared again when
the turn ends, whether it returns or raises.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

interview_id_var: ContextVar[str] = ContextVar("interview_id", default="")
session_token_var: ContextVar[str] = ContextVar("session_token", default="")

LOG_FORMAT = "%(asctime)s [%(role)s]%(context)s[%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

STREAM_HANDLER = "interviewer.stream"
FILE_HANDLER = "interviewer.file"

QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "openai", "anthropic")


@contextmanager
def chat_context(interview_id: int | str) -> Iterator[None]:
    interview_token = interview_id_var.set(str(interview_id))
    session_token = session_token_var.set("")
    try:
        yield
    finally:
        session_token_var.reset(session_token)
        interview_id_var.reset(interview_token)


def bind_session(session_token: str) -> None:
    """Tag the rest of the current chat turn with *session_token*."""
    session_token_var.set(session_token)


def describe_context() -> str:
    interview_id = interview_id_var.get()
    session_token = session_token_var.get()
    tag = f"[Interview {interview_id}]" if interview_id else ""
    if session_token:
        tag += f"[Session {session_token[:8]}]"
    return tag


class ContextFilter(logging.Filter):
    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.context = describe_context()  # type: ignore[attr-defined]
        return True


def setup_logging(role: str = "Server") -> None:
    """Attach the stderr handler (and a rotating file handler when LOG_FILE is set).

    Calling it again is a no-op, so app factories built in tests can share a process.
    """
    from config import settings

    root = logging.getLogger()
    if any(h.name == STREAM_HANDLER for h in root.handlers):
        return
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.name = STREAM_HANDLER
    handlers: list[logging.Handler] = [stream_handler]
    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.name = FILE_HANDLER
        handlers.append(file_handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    context_filter = ContextFilter(role)
    for handler in handlers:
        handler.addFilter(context_filter)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn installs its own handlers; route its records through ours instead
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
