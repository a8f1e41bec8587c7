"""API routers."""

from app.routers.subtitles import router as subtitles_router
from app.routers.transcripts import router as transcripts_router

__all__ = ["subtitles_router", "transcripts_router"]
