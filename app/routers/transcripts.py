"""Transcript API endpoints used by the desktop shell."""

from fastapi import APIRouter, HTTPException

from app import commands
from app.commands import CommandError
from app.schemas.transcript import (
    SegmentResponse,
    TranscribeRequest,
    TranscriptDetailResponse,
    TranscriptListResponse,
    TranscriptResponse,
)

router = APIRouter(prefix="/api/v1/transcripts", tags=["Transcripts"])


def _http_error(e: CommandError, status_code: int = 500) -> HTTPException:
    return HTTPException(status_code=404 if e.not_found else status_code, detail=e.message)


@router.post("/", response_model=TranscriptDetailResponse)
async def create_transcript(body: TranscribeRequest) -> TranscriptDetailResponse:
    """Transcribe a remote media URL and store the result."""
    try:
        transcript_id, segments = await commands.transcribe(body.url)
        transcript = await commands.get_transcript(transcript_id)
    except CommandError as e:
        raise _http_error(e, status_code=400) from None
    return TranscriptDetailResponse(
        **TranscriptResponse.model_validate(transcript).model_dump(),
        segments=[SegmentResponse.model_validate(s) for s in segments],
    )


@router.get("/", response_model=TranscriptListResponse)
async def list_transcripts() -> TranscriptListResponse:
    """List transcripts, most recent first."""
    try:
        items = await commands.list_transcripts()
    except CommandError as e:
        raise _http_error(e) from None
    return TranscriptListResponse(
        items=[TranscriptResponse.model_validate(t) for t in items],
        total=len(items),
    )


@router.get("/{transcript_id}", response_model=TranscriptResponse)
async def get_transcript(transcript_id: int) -> TranscriptResponse:
    """Get a single transcript by ID."""
    try:
        transcript = await commands.get_transcript(transcript_id)
    except CommandError as e:
        raise _http_error(e) from None
    return TranscriptResponse.model_validate(transcript)


@router.get("/{transcript_id}/segments", response_model=list[SegmentResponse])
async def get_segments(transcript_id: int) -> list[SegmentResponse]:
    """Get the segments of a transcript ordered by start time."""
    try:
        segments = await commands.get_segments(transcript_id)
    except CommandError as e:
        raise _http_error(e) from None
    return [SegmentResponse.model_validate(s) for s in segments]


@router.delete("/{transcript_id}")
async def delete_transcript(transcript_id: int) -> dict:
    """Delete a transcript together with its segments."""
    try:
        await commands.delete_transcript(transcript_id)
    except CommandError as e:
        raise _http_error(e) from None
    return {"detail": "Transcript deleted"}
