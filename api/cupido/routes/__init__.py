from fastapi import APIRouter, FastAPI

from .admin import router as admin_router
from .chat import router as chat_router
from .groups import router as groups_router
from .match import router as match_router
from .profile import router as profile_router
from .settings import router as settings_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(profile_router, tags=["profiles"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(groups_router, tags=["groups"])
    app.include_router(settings_router, tags=["settings"])
    app.include_router(admin_router, tags=["admin"])


__all__ = ["include_modular_routers", "APIRouter"]
