"""Transcript and segment models."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Text, func

from app.database import Base


class Transcript(Base):
    """One completed transcription run for a source URL."""

    __tablename__ = "transcripts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())


class Segment(Base):
    """Timestamped span of recognized speech within a transcript."""

    __tablename__ = "segments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transcript_id = Column(Integer, ForeignKey("transcripts.id"), nullable=False, index=True)
    start_time_sec = Column(Float, nullable=False)
    end_time_sec = Column(Float, nullable=False)
    text_content = Column(Text, nullable=False)
