"""Transcript store: transactional writes and reads of transcripts and segments."""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFoundError, PersistenceError
from app.models.transcript import Segment, Transcript
from app.services.transcription import TranscribedSegment

logger = logging.getLogger(__name__)


class TranscriptService:
    """Handles transcript persistence, retrieval and deletion."""

    def save(self, db: Session, url: str, segments: Iterable[TranscribedSegment]) -> int:
        """Insert a transcript and all its segments in one transaction. Returns the transcript id."""
        try:
            transcript = Transcript(url=url, duration=0)
            db.add(transcript)
            db.flush()
            transcript_id = transcript.id

            count = 0
            for seg in segments:
                db.add(
                    Segment(
                        transcript_id=transcript_id,
                        start_time_sec=seg.start,
                        end_time_sec=seg.end,
                        text_content=seg.text,
                    )
                )
                count += 1

            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to save transcript for {url}: {e}") from e

        logger.info("Saved transcript %d with %d segments for %s", transcript_id, count, url)
        return transcript_id

    def list_transcripts(self, db: Session) -> list[Transcript]:
        """All transcripts, most recent first."""
        try:
            return list(db.scalars(select(Transcript).order_by(Transcript.created_at.desc(), Transcript.id.desc())))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list transcripts: {e}") from e

    def get_transcript(self, db: Session, transcript_id: int) -> Transcript:
        try:
            transcript = db.get(Transcript, transcript_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load transcript {transcript_id}: {e}") from e
        if transcript is None:
            raise NotFoundError(f"Transcript {transcript_id} not found")
        return transcript

    def get_segments(self, db: Session, transcript_id: int) -> list[Segment]:
        """Segments of a transcript ordered by start time. Empty if the transcript is gone."""
        try:
            return list(
                db.scalars(
                    select(Segment)
                    .where(Segment.transcript_id == transcript_id)
                    .order_by(Segment.start_time_sec, Segment.id)
                )
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load segments for transcript {transcript_id}: {e}") from e

    def get_latest_by_url(self, db: Session, url: str) -> Transcript:
        """Most recently created transcript for a URL."""
        try:
            transcript = db.scalars(
                select(Transcript)
                .where(Transcript.url == url)
                .order_by(Transcript.created_at.desc(), Transcript.id.desc())
                .limit(1)
            ).first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to look up transcript for {url}: {e}") from e
        if transcript is None:
            raise NotFoundError(f"No transcript found for {url}")
        return transcript

    def delete_transcript(self, db: Session, transcript_id: int) -> None:
        """Delete a transcript's segments, then the transcript, in one transaction."""
        try:
            if db.get(Transcript, transcript_id) is None:
                raise NotFoundError(f"Transcript {transcript_id} not found")
            db.execute(delete(Segment).where(Segment.transcript_id == transcript_id))
            db.execute(delete(Transcript).where(Transcript.id == transcript_id))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to delete transcript {transcript_id}: {e}") from e
        logger.info("Deleted transcript %d", transcript_id)

    def count_rows(self, db: Session) -> tuple[int, int]:
        """Return (transcript_count, segment_count)."""
        transcripts = db.scalar(select(func.count(Transcript.id))) or 0
        segments = db.scalar(select(func.count(Segment.id))) or 0
        return transcripts, segments


_transcript_service: TranscriptService | None = None


def get_transcript_service() -> TranscriptService:
    """Get singleton transcript service instance."""
    global _transcript_service
    if _transcript_service is None:
        _transcript_service = TranscriptService()
    return _transcript_service
