"""FastAPI router wiring for the QueryDesk backend."""

from fastapi import APIRouter

from .v1 import data, sessions

api_router = APIRouter()
api_router.include_router(sessions.router, prefix="/api/session", tags=["session"])
api_router.include_router(data.router, prefix="/api", tags=["data"])
