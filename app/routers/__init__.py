"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.journals import router as journals_router
from app.routers.mood import router as mood_router
from app.routers.transcribe import router as transcribe_router

__all__ = ["auth_router", "transcribe_router", "journals_router", "mood_router"]
