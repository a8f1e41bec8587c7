"""Invocation surface consumed by the desktop shell.

Every command is a coroutine. Failures surface as ``CommandError`` whose
message is meant to be shown to the user as-is.
"""

import logging
from collections.abc import Callable
from urllib.parse import urlparse

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.database import SessionLocal
from app.errors import NotFoundError, PipelineError
from app.models.transcript import Segment, Transcript
from app.services.audio import get_audio_service, to_float
from app.services.transcript import get_transcript_service
from app.services.transcription import get_inference_service

logger = logging.getLogger(__name__)

# Overridden in tests to share the fixture session
_session_factory: Callable[[], Session] | None = None


class CommandError(Exception):
    """Human-readable failure of a command."""

    def __init__(self, message: str, not_found: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.not_found = not_found


def _new_session() -> Session:
    return (_session_factory or SessionLocal)()


def _with_session(fn, *args):
    db = _new_session()
    try:
        return fn(db, *args)
    finally:
        db.close()


def _existing_segments(db: Session, transcript_id: int) -> list[Segment]:
    service = get_transcript_service()
    service.get_transcript(db, transcript_id)
    return service.get_segments(db, transcript_id)


def _command_error(e: PipelineError) -> CommandError:
    return CommandError(str(e), not_found=isinstance(e, NotFoundError))


def validate_url(url: str) -> str:
    url = (url or "").strip()
    if any(ord(c) < 32 or ord(c) == 127 for c in url):
        raise CommandError(f"Invalid URL: {url!r} contains control characters")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise CommandError(f"Invalid URL: {url!r}")
    return url


async def transcribe(url: str) -> tuple[int, list[Segment]]:
    """Acquire, convert, infer and persist. Returns (transcript_id, stored segments)."""
    url = validate_url(url)
    service = get_transcript_service()
    try:
        samples = await get_audio_service().acquire(url)
        float_samples = to_float(samples)
        segments = await run_in_threadpool(get_inference_service().transcribe, float_samples)
        transcript_id = await run_in_threadpool(_with_session, service.save, url, segments)
        stored = await run_in_threadpool(_with_session, service.get_segments, transcript_id)
    except PipelineError as e:
        logger.error("Transcription of %s failed: %s", url, e)
        raise _command_error(e) from e
    return transcript_id, stored


async def list_transcripts() -> list[Transcript]:
    try:
        return await run_in_threadpool(_with_session, get_transcript_service().list_transcripts)
    except PipelineError as e:
        raise _command_error(e) from e


async def get_transcript(transcript_id: int) -> Transcript:
    try:
        return await run_in_threadpool(_with_session, get_transcript_service().get_transcript, transcript_id)
    except PipelineError as e:
        raise _command_error(e) from e


async def get_segments(transcript_id: int) -> list[Segment]:
    try:
        return await run_in_threadpool(_with_session, _existing_segments, transcript_id)
    except PipelineError as e:
        raise _command_error(e) from e


async def delete_transcript(transcript_id: int) -> None:
    try:
        await run_in_threadpool(_with_session, get_transcript_service().delete_transcript, transcript_id)
    except PipelineError as e:
        raise _command_error(e) from e
