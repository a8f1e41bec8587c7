"""External subtitle lookup endpoint.

Always answers with HTTP 200: a JSON array of cues on success, or an
``{"error": ..., "url": ...}`` object when nothing can be served.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import NotFoundError, PipelineError
from app.schemas.transcript import SubtitleCue, SubtitleError
from app.services.transcript import get_transcript_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subtitles"])


@router.get("/subtitles", response_model=list[SubtitleCue] | SubtitleError)
def get_subtitles(url: str = "", db: Session = Depends(get_db)) -> list[SubtitleCue] | SubtitleError:
    """Resolve the most recent transcript for `url` and return its cues."""
    if not url:
        return SubtitleError(error="Missing url parameter", url=url)

    service = get_transcript_service()
    try:
        transcript = service.get_latest_by_url(db, url)
        segments = service.get_segments(db, transcript.id)
    except NotFoundError:
        return SubtitleError(error="Transcript not found", url=url)
    except PipelineError as e:
        logger.error("Subtitle lookup for %s failed: %s", url, e)
        return SubtitleError(error="Failed to load transcript", url=url)

    return [SubtitleCue(start=seg.start_time_sec, text=seg.text_content) for seg in segments]
