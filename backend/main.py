"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Ensure backend/ is on sys.path for absolute imports
_backend_dir = str(Path(__file__).resolve().parent)
if _backend_dir not in sys.path:  # pragma: no cover
    sys.path.insert(0, _backend_dir)

try:
    __version__ = (Path(__file__).resolve().parent.parent / "VERSION").read_text().strip()
except Exception:  # pragma: no cover
    __version__ = "0.0.0-dev"

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import api_router
from config import settings
from database import Store
from services.errors import ServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure unified logging before anything else
    from logging_config import setup_logging
    setup_logging("Server")

    store: Store = app.state.store
    logger.info("Using database %s", store.url)

    # Create tables if they don't exist; the setup wizard does the same for new databases
    try:
        store.create_all()
    except Exception:
        logger.exception("Failed to create tables on startup")

    yield

    app.state.store.dispose()


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(store: Store | None = None) -> FastAPI:
    """Build the application around *store* (defaults to one built from settings.DATABASE_URL)."""
    app = FastAPI(title="Interview Desk API", version=__version__, lifespan=lifespan)
    app.state.store = store or Store.from_url(settings.DATABASE_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.CORS_ALLOW_ALL_ORIGINS else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    def health(request: Request):
        db_ok = request.app.state.store.ping()
        return {
            "status": "ok" if db_ok else "degraded",
            "database": db_ok,
            "version": __version__,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_config=None)
