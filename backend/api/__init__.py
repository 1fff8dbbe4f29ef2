"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.auth import router as auth_router
from api.chat import router as chat_router
from api.interviews import router as interviews_router
from api.participants import router as participants_router
from api.setup import router as setup_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(setup_router, prefix="/setup", tags=["setup"])
api_router.include_router(interviews_router, prefix="/interviews", tags=["interviews"])
api_router.include_router(participants_router, prefix="/interviews", tags=["participants"])
api_router.include_router(chat_router, prefix="/interview", tags=["chat"])
