"""Tests for logging setup and the chat-turn log context."""

from __future__ import annotations

import logging

import pytest

from config import settings
from logging_config import (
    DATE_FORMAT,
    FILE_HANDLER,
    LOG_FORMAT,
    STREAM_HANDLER,
    ContextFilter,
    bind_session,
    chat_context,
    describe_context,
    interview_id_var,
    session_token_var,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _clean_root_logger():
    """Remove any handlers we add during tests so they don't leak."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    root.handlers = [h for h in before if h.name not in (STREAM_HANDLER, FILE_HANDLER)]
    yield
    for h in root.handlers:
        if h not in before:
            h.close()
    root.handlers = before
    root.setLevel(level)


def _format(msg="Turn complete", role="Server"):
    record = logging.LogRecord("services.chat", logging.INFO, "", 88, msg, (), None)
    ContextFilter(role).filter(record)
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT).format(record)


# ── Chat context ──────────────────────────────────────────────────────────────


def test_no_context_outside_a_turn():
    assert describe_context() == ""
    line = _format(msg="Created interview")
    assert "[Server][INFO] services.chat:88 - Created interview" in line


def test_chat_context_tags_interview_then_session():
    with chat_context(3):
        assert _format().count("[Server][Interview 3][INFO]") == 1
        bind_session("V1StGXR8_Z5jdHi6B-myT")
        line = _format()
    assert "[Server][Interview 3][Session V1StGXR8][INFO]" in line
    assert "Z5jdHi6B" not in line


def test_chat_context_resets_on_exit():
    with chat_context(3):
        bind_session("V1StGXR8_Z5jdHi6B-myT")
    assert interview_id_var.get() == ""
    assert session_token_var.get() == ""


def test_chat_context_resets_on_error():
    with pytest.raises(RuntimeError):
        with chat_context(3):
            bind_session("V1StGXR8_Z5jdHi6B-myT")
            raise RuntimeError("boom")
    assert describe_context() == ""


def test_nested_turn_does_not_inherit_session():
    with chat_context(3):
        bind_session("V1StGXR8_Z5jdHi6B-myT")
        with chat_context(4):
            assert describe_context() == "[Interview 4]"
        assert describe_context() == "[Interview 3][Session V1StGXR8]"


# ── setup_logging ─────────────────────────────────────────────────────────────


def test_setup_logging_is_idempotent(monkeypatch):
    monkeypatch.setattr(settings, "LOG_FILE", "")

    setup_logging("Server")
    setup_logging("Server")

    names = [h.name for h in logging.getLogger().handlers]
    assert names.count(STREAM_HANDLER) == 1
    assert FILE_HANDLER not in names
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("uvicorn").propagate is True


def test_setup_logging_writes_tagged_lines_to_file(monkeypatch, tmp_path):
    log_file = tmp_path / "logs" / "server.log"
    monkeypatch.setattr(settings, "LOG_FILE", str(log_file))
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")

    setup_logging("Server")
    with chat_context(7):
        logging.getLogger("services.chat").warning("written to file")
    for h in logging.getLogger().handlers:
        h.flush()

    assert FILE_HANDLER in [h.name for h in logging.getLogger().handlers]
    text = log_file.read_text()
    assert "[Server][Interview 7][WARNING] services.chat:" in text
    assert "written to file" in text
