"""Pydantic schemas for transcript endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class SegmentResponse(BaseModel):
    id: int
    transcript_id: int
    start: float = Field(validation_alias="start_time_sec")
    end: float = Field(validation_alias="end_time_sec")
    text: str = Field(validation_alias="text_content")

    model_config = {"from_attributes": True}


class TranscriptResponse(BaseModel):
    id: int
    url: str
    duration: int
    created_at: datetime

    model_config = {"from_attributes": True}


class TranscriptDetailResponse(TranscriptResponse):
    segments: list[SegmentResponse] = []


class TranscriptListResponse(BaseModel):
    items: list[TranscriptResponse]
    total: int


class TranscribeRequest(BaseModel):
    url: str


class SubtitleCue(BaseModel):
    """External lookup shape: start time and text only."""

    start: float
    text: str


class SubtitleError(BaseModel):
    error: str
    url: str | None = None
