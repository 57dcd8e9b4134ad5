"""API routers."""

from app.routers.admin import router as admin_router
from app.routers.voice_notes import router as voice_notes_router

__all__ = ["admin_router", "voice_notes_router"]
