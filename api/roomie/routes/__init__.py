from fastapi import APIRouter, FastAPI

from .chat import router as chat_router
from .match import router as match_router
from .profile import router as profile_router
from .safety import router as safety_router


def include_routers(app: FastAPI) -> None:
    app.include_router(profile_router, tags=["profiles"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(safety_router, tags=["safety"])


__all__ = ["include_routers", "APIRouter"]
