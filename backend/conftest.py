"""Shared fixtures for all backend tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure backend/ is on sys.path
_backend_dir = str(Path(__file__).resolve().parent)
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

# Set signing key for tests so config.py never appends to a real .env
if not os.environ.get("FIELD_ENCRYPTION_KEY"):
    from cryptography.fernet import Fernet
    os.environ["FIELD_ENCRYPTION_KEY"] = Fernet.generate_key().decode()

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database import Base, Store
import models  # noqa: F401  (registers all models with Base)

# In-memory SQLite; StaticPool keeps every connection on the same database
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TEST_STORE = Store(TEST_ENGINE)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture(autouse=True)
def _isolate_interviewer_dir(tmp_path, monkeypatch):
    """Point INTERVIEWER_DIR and the .env target at tmp_path so tests never touch real config."""
    monkeypatch.setenv("INTERVIEWER_DIR", str(tmp_path / "interviewer"))
    monkeypatch.setattr("services.setup.ENV_FILE", tmp_path / ".env")


@pytest.fixture(autouse=True)
def _clean_log_context():
    """Start and end every test with no interview or session bound to the log context."""
    from logging_config import interview_id_var, session_token_var

    tokens = (interview_id_var.set(""), session_token_var.set(""))
    yield
    session_token_var.reset(tokens[1])
    interview_id_var.reset(tokens[0])


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TEST_STORE.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(db):
    """Test FastAPI app built around the test store, with get_db bound to the test session."""
    from main import create_app
    from database import get_db

    _app = create_app(store=TEST_STORE)

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    _app.dependency_overrides[get_db] = _override_get_db
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def admin_user(db):
    import bcrypt
    from models.user import AdminUser

    user = AdminUser(
        username="admin",
        password_hash=bcrypt.hashpw(b"testpass123", bcrypt.gensalt(rounds=4)).decode(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def api_key(db, admin_user):
    from models.user import APIKey

    key = APIKey(user_id=admin_user.id)
    db.add(key)
    db.commit()
    db.refresh(key)
    return key


@pytest.fixture
def auth_client(client, api_key):
    client.headers["Authorization"] = f"Bearer {api_key.key}"
    return client


@pytest.fixture
def interview(db):
    from models.interview import Interview

    iv = Interview(
        name="Q1 Feedback",
        interview_prompt="You are interviewing customers about Q1.",
        welcome_message="Welcome! Thanks for joining.",
        is_active=True,
    )
    db.add(iv)
    db.commit()
    db.refresh(iv)
    return iv


@pytest.fixture
def fake_llm(monkeypatch):
    """Configure an API key and replace the chat model factory with a mock.

    The mock replies with 1000 total tokens per call unless reconfigured.
    """
    from langchain_core.messages import AIMessage

    from config import settings

    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-ant-test")
    model = MagicMock()
    model.invoke.return_value = AIMessage(
        content="Thanks for joining. What is your role?",
        usage_metadata={"input_tokens": 900, "output_tokens": 100, "total_tokens": 1000},
    )
    with patch("services.llm.create_chat_model", return_value=model) as factory:
        model.factory = factory
        yield model
