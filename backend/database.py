"""SQLAlchemy store handle, declarative base, and request-scoped session dependency."""

from __future__ import annotations

from fastapi import Request
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Owns one engine (and its connection pool) plus the session factory bound to it.

    Built once by the application factory and reached by handlers through
    ``request.app.state.store``.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _set_sqlite_pragma)
        self.session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs) -> Store:
        if "sqlite" in url:
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_engine(url, echo=False, **engine_kwargs))

    @property
    def url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        """Create any missing tables."""
        import models  # noqa: F401  (registers all models with Base)

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    """FastAPI dependency that yields a SQLAlchemy session from the app's store."""
    db = request.app.state.store.session()
    try:
        yield db
    finally:
        db.close()
